"""DevSweep Console - Themed console singleton with semantic message methods."""

from typing import Optional
from rich.console import Console as RichConsole
from rich.markup import escape
from .theme import SWEEP_THEME, SYMBOLS


class SweepConsole:
    """Themed console with semantic message methods."""
    
    _instance: Optional['SweepConsole'] = None
    
    def __new__(cls) -> 'SweepConsole':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._console = RichConsole(theme=SWEEP_THEME)
        return cls._instance
    
    @property
    def rich(self) -> RichConsole:
        return self._console
    
    def print(self, *args, **kwargs) -> None:
        self._console.print(*args, **kwargs)
    
    def input(self, prompt: str = "") -> str:
        return self._console.input(prompt)
    
    def success(self, message: str) -> None:
        self._console.print(f"[success_symbol]{SYMBOLS['success']}[/] [success]{escape(message)}[/]")
    
    def error(self, message: str, details: Optional[str] = None) -> None:
        self._console.print(f"[error_symbol]{SYMBOLS['error']}[/] [error]{escape(message)}[/]")
        if details:
            self._console.print(f"  [secondary]{escape(details)}[/]")
    
    def warning(self, message: str) -> None:
        self._console.print(f"[warning_symbol]{SYMBOLS['warning']}[/]  [warning]{escape(message)}[/]")
    
    def info(self, message: str) -> None:
        self._console.print(f"[info_symbol]{SYMBOLS['info']}[/] [info]{escape(message)}[/]")
    
    def command(self, cmd: str) -> None:
        self._console.print(f"  [command]{SYMBOLS['command']} {escape(cmd)}[/]")
    
    def step(self, message: str, current: int, total: int) -> None:
        self._console.print(f"[info_symbol]{SYMBOLS['step']}[/] [info]{escape(message)}[/] [secondary]({current}/{total})[/]")
    
    def skipped(self, message: str) -> None:
        self._console.print(f"{SYMBOLS['skip']} [muted]{escape(message)}[/]")
    
    def secondary(self, message: str) -> None:
        self._console.print(f"  [secondary]{escape(message)}[/]")
    
    def blank(self) -> None:
        self._console.print()


console = SweepConsole()
