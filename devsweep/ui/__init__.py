"""DevSweep UI - Terminal interface components."""

from .console import console, SweepConsole
from .theme import ACCENTS, ACTION_PANEL, COLORS, SYMBOLS, SWEEP_THEME
from .prompts import AFFIRMATIVE, confirm, is_affirmative
from .progress import spinner, steps, StepsProgress
from .panels import welcome_banner

__all__ = [
    "console", "SweepConsole", "ACCENTS", "ACTION_PANEL", "COLORS", "SYMBOLS", "SWEEP_THEME",
    "AFFIRMATIVE", "confirm", "is_affirmative",
    "spinner", "steps", "StepsProgress",
    "welcome_banner",
]
