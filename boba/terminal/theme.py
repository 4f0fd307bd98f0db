"""
Theme values for the terminal front end.

A theme is an immutable value handed to the renderer; nothing here is
module-level mutable state.
"""

import os
from dataclasses import dataclass, field

from ..formatter import ASCII_STYLE, BOX_STYLE, TableStyle

RESET = "\033[0m"


@dataclass(frozen=True)
class Theme:
    """ANSI color codes by role plus the table border style."""

    title: str = ""
    error: str = ""
    success: str = ""
    notice: str = ""
    dim: str = ""
    prompt: str = ""
    table_style: TableStyle = field(default=BOX_STYLE)

    def paint(self, role: str, text: str) -> str:
        code = getattr(self, role)
        if not code:
            return text
        return f"{code}{text}{RESET}"


DARK = Theme(
    title="\033[1;38;5;212m",
    error="\033[38;5;203m",
    success="\033[38;5;114m",
    notice="\033[38;5;221m",
    dim="\033[38;5;244m",
    prompt="\033[1;38;5;75m",
)

LIGHT = Theme(
    title="\033[1;38;5;127m",
    error="\033[38;5;160m",
    success="\033[38;5;28m",
    notice="\033[38;5;130m",
    dim="\033[38;5;242m",
    prompt="\033[1;38;5;25m",
)

PLAIN = Theme(table_style=ASCII_STYLE)


def theme_for(dark_mode: bool, environ=None) -> Theme:
    """Pick a theme; NO_COLOR in the environment disables colors."""
    environ = os.environ if environ is None else environ
    if environ.get("NO_COLOR"):
        return Theme()
    return DARK if dark_mode else LIGHT
