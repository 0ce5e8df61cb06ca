import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from devsweep import __version__
from devsweep.config import load_config
from devsweep.errors import ConfigError
from devsweep.runner import CleanupRunner, RunReport
from devsweep.tasks import build_default_tasks
from devsweep.ui import confirm, console, welcome_banner

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devsweep",
        description="Reclaim disk space by clearing developer caches and stale artifacts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Steps:
  npm & yarn cache, Gradle cache, Expo & Metro cache, ~/.cache,
  node_modules under your home (asks first), apt cache, journal logs,
  disabled Snap revisions, then a free-space report.

Examples:
  devsweep
  devsweep --dry-run
  devsweep --volume /dev/nvme0n1p2

Environment Variables:
  DEVSWEEP_CONFIG          YAML config file
  DEVSWEEP_VOLUME          Volume to report free space for (device or path)
  DEVSWEEP_LOG_RETENTION   journalctl --vacuum-time value (default 7d)
  DEVSWEEP_NO_SUDO         Set to 1 to never prefix commands with sudo
        """,
    )
    parser.add_argument("--version", "-V", action="version", version=f"devsweep {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show detailed output")
    parser.add_argument("--volume", help="Device or path to report free space for (default: /)")
    parser.add_argument("--config", type=Path, help="Path to a YAML config file")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be removed without removing it")
    return parser


def run(args: argparse.Namespace) -> RunReport:
    config = load_config(args.config).with_overrides(
        volume=args.volume,
        dry_run=True if args.dry_run else None,
    )
    logger.debug(f"Using config: {config}")

    welcome_banner(dry_run=config.dry_run)
    runner = CleanupRunner(build_default_tasks(config), volume=config.volume, confirm=confirm)
    return runner.run()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        run(args)
        return 0
    except KeyboardInterrupt:
        print("\n❌ Operation cancelled", file=sys.stderr)
        return 130
    except ConfigError as e:
        console.error("Invalid configuration", details=str(e))
        return 1
    except (ValueError, OSError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
