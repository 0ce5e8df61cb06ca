"""
Configuration for devsweep.

Settings are layered, later sources overriding earlier ones:

1. built-in defaults
2. a YAML file (``--config``, ``$DEVSWEEP_CONFIG`` or
   ``~/.config/devsweep/config.yaml``)
3. environment variables, after loading a ``.env`` file if one exists
4. command-line flags
"""

import logging
import os
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from devsweep.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "devsweep" / "config.yaml"
DEFAULT_VOLUME = "/"
DEFAULT_LOG_RETENTION = "7d"
DEFAULT_DEPENDENCY_DIRS = ["node_modules"]

# journalctl accepts a number followed by an optional time unit
RETENTION_PATTERN = re.compile(r"^\d+(s|m|h|d|w|months|years)?$")

ENV_PREFIX = "DEVSWEEP_"


@dataclass
class SweepConfig:
    """Everything a run needs, passed explicitly rather than read from the shell.

    Attributes:
        home: Root of the user's home tree
        volume: Block device or path whose free space is reported at the end
        log_retention: journalctl ``--vacuum-time`` value
        dependency_dirs: Directory names removed by the dependency sweep
        use_sudo: Prefix privileged commands with sudo when not root
        dry_run: Show what would happen without changing anything
    """
    home: Path = field(default_factory=Path.home)
    volume: str = DEFAULT_VOLUME
    log_retention: str = DEFAULT_LOG_RETENTION
    dependency_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_DEPENDENCY_DIRS))
    use_sudo: bool = True
    dry_run: bool = False

    def __post_init__(self):
        self.home = Path(self.home).expanduser()
        if not isinstance(self.volume, str) or not self.volume:
            raise ConfigError("volume must be a non-empty string")
        self.log_retention = str(self.log_retention)
        if not RETENTION_PATTERN.match(self.log_retention):
            raise ConfigError(f"log_retention '{self.log_retention}' is not a journalctl time span (e.g. 7d)")
        if not isinstance(self.use_sudo, bool):
            raise ConfigError("use_sudo must be true or false")
        if not isinstance(self.dependency_dirs, list) or not self.dependency_dirs:
            raise ConfigError("dependency_dirs must be a non-empty list of directory names")
        for name in self.dependency_dirs:
            if not isinstance(name, str) or not name or "/" in name:
                raise ConfigError(f"invalid dependency directory name: {name!r}")

    def with_overrides(self, **overrides: Any) -> "SweepConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def read_config_file(path: Path) -> Dict[str, Any]:
    """Read a YAML config file into a dict of known settings.

    Raises:
        ConfigError: If the file is unreadable, not a mapping, or has unknown keys.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of settings")

    known = {f.name for f in fields(SweepConfig)} - {"dry_run"}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown setting(s) in {path}: {', '.join(unknown)}")
    return data


def read_env(environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    settings: Dict[str, Any] = {}
    if environ.get(f"{ENV_PREFIX}HOME"):
        settings["home"] = environ[f"{ENV_PREFIX}HOME"]
    if environ.get(f"{ENV_PREFIX}VOLUME"):
        settings["volume"] = environ[f"{ENV_PREFIX}VOLUME"]
    if environ.get(f"{ENV_PREFIX}LOG_RETENTION"):
        settings["log_retention"] = environ[f"{ENV_PREFIX}LOG_RETENTION"]
    if environ.get(f"{ENV_PREFIX}DEPENDENCY_DIRS"):
        names = environ[f"{ENV_PREFIX}DEPENDENCY_DIRS"].split(",")
        settings["dependency_dirs"] = [n.strip() for n in names if n.strip()]
    if environ.get(f"{ENV_PREFIX}NO_SUDO"):
        settings["use_sudo"] = not _parse_bool(environ[f"{ENV_PREFIX}NO_SUDO"])
    return settings


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
    load_dotenv_file: bool = True,
) -> SweepConfig:
    """Build a SweepConfig from the config file and environment.

    Args:
        config_path: Explicit YAML file; it must exist when given.
        environ: Environment mapping, ``os.environ`` when None.
        load_dotenv_file: Load ``.env`` from the working directory first.

    Returns:
        The merged configuration.
    """
    if load_dotenv_file and environ is None:
        load_dotenv()
    env = os.environ if environ is None else environ

    settings: Dict[str, Any] = {}
    explicit = config_path or env.get(f"{ENV_PREFIX}CONFIG")
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        settings.update(read_config_file(path))
        logger.debug(f"Loaded config from {path}")
    elif DEFAULT_CONFIG_PATH.is_file():
        settings.update(read_config_file(DEFAULT_CONFIG_PATH))
        logger.debug(f"Loaded config from {DEFAULT_CONFIG_PATH}")

    settings.update(read_env(env))

    try:
        return SweepConfig(**settings)
    except TypeError as e:
        raise ConfigError(str(e)) from e
