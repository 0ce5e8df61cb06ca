"""DevSweep Prompts - Interactive confirmation gate."""

from typing import Optional, List
from rich.markup import escape
from rich.panel import Panel
from .theme import ACTION_PANEL, SYMBOLS
from .console import console

AFFIRMATIVE = "y"


def is_affirmative(response: Optional[str]) -> bool:
    """Only the exact token ``y`` counts as yes; whitespace around it is ignored."""
    if response is None:
        return False
    return response.strip() == AFFIRMATIVE


def confirm(message: str, details: Optional[List[str]] = None) -> bool:
    content_lines = [f"[primary]{escape(message)}[/]"]
    if details:
        content_lines.append("")
        for detail in details:
            content_lines.append(f"  [muted]•[/] {escape(detail)}")
    content_lines.append("")
    content_lines.append("  [highlight]\\[y][/] [primary]Yes[/]  [muted]\\[n][/] [muted]No (default)[/]")
    console.print(Panel("\n".join(content_lines), title="[highlight]─ ACTION REQUIRED [/]", **ACTION_PANEL))
    
    try:
        response = console.input(f"  {SYMBOLS['prompt']} (y/n): ")
    except (KeyboardInterrupt, EOFError):
        console.blank()
        return False
    return is_affirmative(response)
