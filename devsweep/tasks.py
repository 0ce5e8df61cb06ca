"""
The default cleanup sequence.

Order matters only for readability of the output; every task is independent
and safe to repeat.
"""

from typing import List

from devsweep.cleaners import (
    CommandCleaner,
    CompositeCleaner,
    DependencySweep,
    PathCleaner,
    SnapRevisionCleaner,
)
from devsweep.config import SweepConfig
from devsweep.runner import CleanupTask


def build_default_tasks(config: SweepConfig) -> List[CleanupTask]:
    """Build the ordered task list for a workstation run.

    Args:
        config: Run configuration (home root, sudo usage, retention, dry-run).

    Returns:
        CleanupTask list in execution order.
    """
    home = config.home
    dry = config.dry_run
    sudo = config.use_sudo
    expo_metro = [home / ".expo", home / ".cache" / "expo", home / ".cache" / "metro"]

    return [
        CleanupTask(
            "Cleaning npm & yarn cache",
            CompositeCleaner([
                CommandCleaner(["npm", "cache", "clean", "--force"], dry_run=dry),
                CommandCleaner(["yarn", "cache", "clean"], dry_run=dry),
            ]),
        ),
        CleanupTask(
            "Cleaning Gradle cache",
            PathCleaner(
                [home / ".gradle" / "caches", home / ".gradle" / "daemon", home / ".gradle" / "native"],
                dry_run=dry,
            ),
        ),
        CleanupTask(
            "Cleaning Expo & Metro cache",
            PathCleaner(expo_metro, dry_run=dry),
        ),
        CleanupTask(
            "Cleaning user cache",
            PathCleaner([home / ".cache"], contents_only=True, exclude=expo_metro, dry_run=dry),
        ),
        CleanupTask(
            f"Finding and deleting {', '.join(config.dependency_dirs)}",
            DependencySweep(home, config.dependency_dirs, dry_run=dry),
            requires_confirmation=True,
        ),
        CleanupTask(
            "Cleaning apt cache",
            CompositeCleaner([
                CommandCleaner(["apt-get", "clean"], sudo=sudo, dry_run=dry),
                CommandCleaner(["apt-get", "autoremove", "-y"], sudo=sudo, dry_run=dry),
            ]),
        ),
        CleanupTask(
            f"Cleaning old logs (keeping {config.log_retention})",
            CommandCleaner(["journalctl", f"--vacuum-time={config.log_retention}"], sudo=sudo, dry_run=dry),
        ),
        CleanupTask(
            "Removing old Snap revisions",
            SnapRevisionCleaner(sudo=sudo, dry_run=dry),
        ),
    ]
