"""DevSweep Panels - Banner shown at the start of a run."""

from .console import console


def welcome_banner(dry_run: bool = False) -> None:
    banner = "[sweep]🚀 devsweep[/] [muted]- reclaiming disk space from developer caches[/]"
    if dry_run:
        banner += "\n[warning]Dry run: nothing will be removed[/]"
    console.print(banner)
