"""
Cleaner implementations for devsweep.

Every cleanup step is a ``Cleaner`` whose ``run()`` returns a
``CleanerResult`` instead of raising. A missing tool, a missing path or a
rejected sudo prompt is reported on the result and the caller decides how
loudly to mention it.
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from rich.markup import escape
from rich.table import Table

from devsweep.errors import ErrorKind
from devsweep.scanner import PathMatch, dir_size, find_dependency_dirs, format_size
from devsweep.ui import console, spinner

logger = logging.getLogger(__name__)

# Lower-cased stderr fragments that mean the privileged call was refused
PERMISSION_MARKERS = (
    "permission denied",
    "are you root",
    "a password is required",
    "incorrect password",
    "not in the sudoers file",
    "access denied",
)


@dataclass
class CleanerResult:
    """Outcome of a single cleaner run.

    Attributes:
        ok: False only when the step was attempted and did not complete
        error: Why the step did not (fully) happen, if it didn't
        detail: Short human-readable explanation
        freed_bytes: Bytes removed from disk, when the cleaner can tell
        skipped: True when the operator declined the step
        actions: What was done (or, in dry-run mode, what would be done)
    """
    ok: bool = True
    error: Optional[ErrorKind] = None
    detail: str = ""
    freed_bytes: int = 0
    skipped: bool = False
    actions: List[str] = field(default_factory=list)

    @classmethod
    def failure(cls, kind: ErrorKind, detail: str = "", **kwargs) -> "CleanerResult":
        return cls(ok=False, error=kind, detail=detail, **kwargs)

    @classmethod
    def not_found(cls, detail: str = "") -> "CleanerResult":
        return cls(ok=True, error=ErrorKind.PATH_NOT_FOUND, detail=detail)

    @classmethod
    def tool_missing(cls, detail: str = "") -> "CleanerResult":
        return cls(ok=True, error=ErrorKind.TOOL_MISSING, detail=detail)

    @classmethod
    def declined(cls, detail: str = "") -> "CleanerResult":
        return cls(ok=True, skipped=True, detail=detail)

    @property
    def status(self) -> str:
        if self.skipped:
            return "skipped"
        if self.error is not None:
            return self.error.value
        if not self.actions:
            return "nothing to clean"
        return "cleaned"


class Cleaner:
    """Base class for a cleanup capability."""

    dry_run: bool = False

    def describe(self) -> str:
        raise NotImplementedError

    def plan(self) -> Optional[str]:
        """Prepare the task and return the confirmation question, or None if there is nothing to do."""
        return f"Run {self.describe()}?"

    def run(self) -> CleanerResult:
        raise NotImplementedError


def elevate(argv: Sequence[str], sudo: bool) -> List[str]:
    """Prefix ``argv`` with sudo unless already running as root."""
    cmd = list(argv)
    if sudo and os.geteuid() != 0:
        return ["sudo"] + cmd
    return cmd


def classify_failure(stderr: str) -> ErrorKind:
    text = (stderr or "").lower()
    if any(marker in text for marker in PERMISSION_MARKERS):
        return ErrorKind.PERMISSION_DENIED
    return ErrorKind.COMMAND_FAILED


def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree without following links."""
    if path.is_symlink() or not path.is_dir():
        path.unlink()
    else:
        shutil.rmtree(path)


class PathCleaner(Cleaner):
    """Deletes known, regenerable locations.

    With ``contents_only`` each path is treated as a directory whose visible
    children are removed while the directory itself is kept, like ``rm -rf
    dir/*`` in a shell. Paths in ``exclude`` belong to another task and are
    left alone.
    """

    def __init__(
        self,
        paths: Iterable[Path],
        contents_only: bool = False,
        exclude: Iterable[Path] = (),
        dry_run: bool = False,
    ):
        self.paths = [Path(p) for p in paths]
        self.contents_only = contents_only
        self.exclude = {Path(p) for p in exclude}
        self.dry_run = dry_run

    def describe(self) -> str:
        suffix = "/*" if self.contents_only else ""
        return ", ".join(f"{p}{suffix}" for p in self.paths)

    def _targets(self) -> List[Path]:
        targets = []
        for path in self.paths:
            if self.contents_only:
                if not path.is_dir():
                    continue
                try:
                    children = sorted(path.iterdir())
                except OSError as e:
                    logger.debug(f"Cannot list {path}: {e}")
                    continue
                targets.extend(c for c in children if not c.name.startswith(".") and c not in self.exclude)
            elif path.exists() or path.is_symlink():
                targets.append(path)
        return targets

    def run(self) -> CleanerResult:
        targets = self._targets()
        if not targets:
            if any(p.exists() for p in self.paths):
                return CleanerResult(detail="already empty")
            return CleanerResult.not_found(f"{self.describe()} not present")

        result = CleanerResult()
        for target in targets:
            size = dir_size(target)
            if self.dry_run:
                result.actions.append(f"would remove {target} ({format_size(size)})")
                result.freed_bytes += size
                continue
            try:
                remove_path(target)
            except PermissionError as e:
                logger.debug(f"Permission denied removing {target}: {e}")
                result.ok = False
                result.error = ErrorKind.PERMISSION_DENIED
                result.detail = str(e)
                continue
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.debug(f"Failed to remove {target}: {e}")
                result.ok = False
                if result.error is None:
                    result.error = ErrorKind.COMMAND_FAILED
                    result.detail = str(e)
                continue
            result.actions.append(f"removed {target}")
            result.freed_bytes += size
        return result


class CommandCleaner(Cleaner):
    """Delegates cleanup to an external tool such as ``npm`` or ``apt-get``."""

    def __init__(self, argv: Sequence[str], sudo: bool = False, dry_run: bool = False):
        if not argv:
            raise ValueError("argv must not be empty")
        self.argv = list(argv)
        self.sudo = sudo
        self.dry_run = dry_run

    @property
    def tool(self) -> str:
        return self.argv[0]

    def command(self) -> List[str]:
        return elevate(self.argv, self.sudo)

    def describe(self) -> str:
        return " ".join(self.command())

    def run(self) -> CleanerResult:
        if shutil.which(self.tool) is None:
            logger.debug(f"{self.tool} not installed, skipping")
            return CleanerResult.tool_missing(f"{self.tool} not found")

        cmd = self.command()
        if cmd[0] == "sudo" and shutil.which("sudo") is None:
            return CleanerResult.tool_missing("sudo not found")

        cmd_str = " ".join(cmd)
        if self.dry_run:
            return CleanerResult(actions=[f"would run: {cmd_str}"])

        logger.debug(f"Running: {cmd_str}")
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            return CleanerResult.tool_missing(f"Executable not found: {cmd[0]}")
        except PermissionError as e:
            return CleanerResult.failure(ErrorKind.PERMISSION_DENIED, str(e))

        if proc.returncode == 0:
            return CleanerResult(actions=[f"ran {cmd_str}"])

        stderr = (proc.stderr or "").strip()
        logger.debug(f"{cmd_str} exited {proc.returncode}: {stderr}")
        last_line = stderr.splitlines()[-1] if stderr else f"exit status {proc.returncode}"
        return CleanerResult.failure(classify_failure(stderr), last_line)


def parse_disabled_revisions(output: str) -> List[Tuple[str, str]]:
    """Pick ``(name, revision)`` pairs of disabled rows from ``snap list --all``.

    The first line is the column header; the notes column is last.
    """
    revisions = []
    for line in output.splitlines()[1:]:
        fields = line.split()
        if len(fields) < 4:
            continue
        if "disabled" in fields[-1].split(","):
            revisions.append((fields[0], fields[2]))
    return revisions


class SnapRevisionCleaner(Cleaner):
    """Removes superseded snap revisions kept around for rollback."""

    def __init__(self, sudo: bool = True, dry_run: bool = False):
        self.sudo = sudo
        self.dry_run = dry_run

    def describe(self) -> str:
        return "snap remove <name> --revision=<rev> (disabled revisions)"

    def list_disabled(self) -> List[Tuple[str, str]]:
        proc = subprocess.run(["snap", "list", "--all"], capture_output=True, text=True)
        if proc.returncode != 0:
            raise subprocess.CalledProcessError(proc.returncode, proc.args, proc.stdout, proc.stderr)
        return parse_disabled_revisions(proc.stdout)

    def run(self) -> CleanerResult:
        if shutil.which("snap") is None:
            return CleanerResult.tool_missing("snap not found")

        try:
            revisions = self.list_disabled()
        except subprocess.CalledProcessError as e:
            return CleanerResult.failure(classify_failure(e.stderr), f"snap list failed ({e.returncode})")
        except OSError as e:
            return CleanerResult.failure(ErrorKind.COMMAND_FAILED, str(e))

        result = CleanerResult()
        for name, revision in revisions:
            step = CommandCleaner(
                ["snap", "remove", name, f"--revision={revision}"],
                sudo=self.sudo,
                dry_run=self.dry_run,
            ).run()
            result.actions.extend(step.actions)
            if step.error is not None and result.error is None:
                result.ok = step.ok
                result.error = step.error
                result.detail = f"{name} rev {revision}: {step.detail}"
        return result


class CompositeCleaner(Cleaner):
    """Runs several cleaners as one task.

    A sub-cleaner whose tool or path is absent does not count against the
    task. The first real failure is kept; absence is reported only when no
    sub-cleaner had anything to act on.
    """

    ABSENT = (ErrorKind.PATH_NOT_FOUND, ErrorKind.TOOL_MISSING)

    def __init__(self, cleaners: Sequence[Cleaner]):
        self.cleaners = list(cleaners)

    def describe(self) -> str:
        return "; ".join(c.describe() for c in self.cleaners)

    def run(self) -> CleanerResult:
        result = CleanerResult()
        absent = []
        for cleaner in self.cleaners:
            step = cleaner.run()
            result.actions.extend(step.actions)
            result.freed_bytes += step.freed_bytes
            if step.error in self.ABSENT:
                absent.append(step)
            elif step.error is not None and result.error is None:
                result.ok = step.ok
                result.error = step.error
                result.detail = step.detail
        if result.error is None and len(absent) == len(self.cleaners):
            tools = [s.detail for s in absent if s.error == ErrorKind.TOOL_MISSING]
            if tools:
                return CleanerResult.tool_missing("; ".join(tools))
            return CleanerResult.not_found("nothing to clean")
        return result


def show_matches(matches: Sequence[PathMatch]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Size", justify="right", style="highlight", no_wrap=True)
    table.add_column("Directory", overflow="fold")
    for match in matches:
        table.add_row(format_size(match.size_bytes), escape(str(match.path)))
    console.print(table)


class DependencySweep(Cleaner):
    """Finds dependency directories under a root and deletes them.

    ``plan()`` scans and lists every match with its size and returns the
    question to put to the operator. ``run()`` then removes exactly the
    directories that were listed.
    """

    def __init__(self, root: Path, names: Sequence[str], dry_run: bool = False):
        self.root = Path(root)
        self.names = list(names)
        self.dry_run = dry_run
        self.matches: Optional[List[PathMatch]] = None

    def describe(self) -> str:
        return f"{', '.join(self.names)} under {self.root}"

    def scan(self) -> List[PathMatch]:
        with spinner(f"Searching {self.root} for {', '.join(self.names)} (this may take a while)"):
            self.matches = find_dependency_dirs(self.root, self.names)
        return self.matches

    def plan(self) -> Optional[str]:
        matches = self.scan()
        if not matches:
            return None

        show_matches(matches)
        total = sum(m.size_bytes for m in matches)
        console.secondary(f"👉 Above are {len(matches)} {', '.join(self.names)} folders, {format_size(total)} in total.")
        return f"Do you want to delete ALL {', '.join(self.names)} found in {self.root}?"

    def run(self) -> CleanerResult:
        matches = self.matches if self.matches is not None else self.scan()
        if not matches:
            return CleanerResult.not_found(f"no {', '.join(self.names)} directories found")

        if self.dry_run:
            return CleanerResult(
                actions=[f"would remove {m.path}" for m in matches],
                freed_bytes=sum(m.size_bytes for m in matches),
            )
        return PathCleaner([m.path for m in matches]).run()
