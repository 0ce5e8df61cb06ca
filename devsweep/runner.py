"""
Sequential cleanup runner.

Runs each task in order, never stopping on a failure, asks the operator
before any task flagged ``requires_confirmation`` and finishes with a
free-space report for the configured volume.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from rich.table import Table

from devsweep.cleaners import Cleaner, CleanerResult
from devsweep.errors import ErrorKind
from devsweep.scanner import format_size
from devsweep.ui import console, confirm as prompt_confirm, steps
from devsweep.volume import VolumeUsage, get_volume_usage, show_volume_report

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    "cleaned": "success",
    "nothing to clean": "muted",
    "skipped": "muted",
    ErrorKind.TOOL_MISSING.value: "secondary",
    ErrorKind.PERMISSION_DENIED.value: "warning",
    ErrorKind.COMMAND_FAILED.value: "warning",
}


@dataclass
class CleanupTask:
    name: str
    action: Cleaner
    requires_confirmation: bool = False


@dataclass
class TaskOutcome:
    name: str
    result: CleanerResult


@dataclass
class RunReport:
    """What happened during one run.

    Attributes:
        outcomes: One entry per task, in execution order
        volume: Identifier of the reported volume
        free_before: Free bytes on the volume before the first task
        usage_after: Volume usage after the last task, None if unavailable
    """
    outcomes: List[TaskOutcome] = field(default_factory=list)
    volume: str = "/"
    free_before: Optional[int] = None
    usage_after: Optional[VolumeUsage] = None

    @property
    def reclaimed_bytes(self) -> int:
        """Bytes the path-based cleaners measured before deleting."""
        return sum(o.result.freed_bytes for o in self.outcomes)

    @property
    def freed_on_volume(self) -> Optional[int]:
        if self.free_before is None or self.usage_after is None:
            return None
        return max(0, self.usage_after.free - self.free_before)

    def outcome(self, name: str) -> Optional[TaskOutcome]:
        for o in self.outcomes:
            if o.name == name:
                return o
        return None


class CleanupRunner:
    """Executes cleanup tasks one after another, best effort."""

    def __init__(
        self,
        tasks: Sequence[CleanupTask],
        volume: str = "/",
        confirm: Callable[[str], bool] = prompt_confirm,
        usage_probe: Callable[[str], Optional[VolumeUsage]] = get_volume_usage,
    ):
        """Initialize the runner.

        Args:
            tasks: Tasks in execution order
            volume: Device or path reported at the end of the run
            confirm: Asked once per confirmation-gated task; True means proceed
            usage_probe: Returns the usage of a volume, or None if unknown
        """
        self.tasks = list(tasks)
        self.volume = volume
        self.confirm = confirm
        self.usage_probe = usage_probe

    def _probe(self) -> Optional[VolumeUsage]:
        try:
            return self.usage_probe(self.volume)
        except Exception as e:
            logger.warning(f"Could not read usage of {self.volume}: {e}")
            return None

    def _run_task(self, task: CleanupTask) -> CleanerResult:
        try:
            if task.requires_confirmation:
                return self._run_confirmed(task)
            return task.action.run()
        except Exception as e:
            # A broken cleaner must not stop the remaining tasks
            logger.exception(f"Task '{task.name}' raised an unexpected error")
            return CleanerResult.failure(ErrorKind.COMMAND_FAILED, str(e))

    def _run_confirmed(self, task: CleanupTask) -> CleanerResult:
        question = task.action.plan()
        if question is None:
            return CleanerResult.not_found(f"nothing found: {task.action.describe()}")
        if task.action.dry_run:
            return task.action.run()
        if not self.confirm(question):
            logger.info(f"Operator declined '{task.name}'")
            return CleanerResult.declined(f"Skipped: {task.name}")
        return task.action.run()

    def _show_result(self, result: CleanerResult) -> None:
        for action in result.actions:
            console.command(action)
        if result.skipped:
            console.skipped(result.detail or "Skipped")
        elif result.error in (ErrorKind.PERMISSION_DENIED, ErrorKind.COMMAND_FAILED):
            console.warning(f"{result.status}: {result.detail}")
        elif result.error is not None:
            console.secondary(f"{result.status}: {result.detail}" if result.detail else result.status)
        elif not result.actions:
            console.secondary(result.detail or "nothing to clean")

    def _show_summary(self, report: RunReport) -> None:
        table = Table(show_header=True, header_style="bold", title="Cleanup summary", title_justify="left")
        table.add_column("Task")
        table.add_column("Status")
        table.add_column("Freed", justify="right", no_wrap=True)
        for o in report.outcomes:
            style = STATUS_STYLES.get(o.result.status, "primary")
            freed = format_size(o.result.freed_bytes) if o.result.freed_bytes else "-"
            table.add_row(o.name, f"[{style}]{o.result.status}[/]", freed)
        console.print(table)

    def run(self) -> RunReport:
        before = self._probe()
        report = RunReport(volume=self.volume, free_before=before.free if before else None)

        with steps("Cleanup", len(self.tasks)) as tracker:
            for task in self.tasks:
                tracker.step(task.name)
                result = self._run_task(task)
                self._show_result(result)
                report.outcomes.append(TaskOutcome(task.name, result))

        report.usage_after = self._probe()

        console.blank()
        self._show_summary(report)
        console.success("🎉 Cleanup complete!")
        if report.freed_on_volume is not None:
            console.info(f"Reclaimed {format_size(report.freed_on_volume)} on {self.volume}")
        show_volume_report(report.usage_after, self.volume)
        return report
