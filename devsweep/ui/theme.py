"""
DevSweep UI Theme - the styles devsweep output is drawn with.
"""

from rich.style import Style
from rich.theme import Theme

# Message kinds. Each gets a text style and a plain "<kind>_symbol" style.
COLORS = {
    "success": "green3",
    "error": "red3",
    "warning": "gold3",
    "info": "dodger_blue2",
}

# Styles for the text around messages: commands, sizes, notes, the banner
ACCENTS = {
    "primary": Style(),
    "command": Style(color="dark_cyan", dim=True),
    "secondary": Style(color="grey50", dim=True),
    "muted": Style(color="grey62"),
    "highlight": Style(color="yellow1", bold=True),
    "sweep": Style(color="#14b8a6", bold=True),
}

SYMBOLS = {
    "success": "✓",
    "error": "✗",
    "warning": "⚠",
    "info": "●",
    "step": "●",
    "command": "→",
    "skip": "⏩",
    "prompt": "❯",
}


def _build_theme() -> Theme:
    styles = dict(ACCENTS)
    for kind, color in COLORS.items():
        styles[kind] = Style(color=color, bold=kind != "info")
        styles[f"{kind}_symbol"] = Style(color=color)
    return Theme(styles)


SWEEP_THEME = _build_theme()

# Border of the confirmation panel
ACTION_PANEL = {"border_style": "highlight", "title_align": "left", "padding": (1, 2)}
