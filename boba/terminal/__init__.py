"""
Terminal front end for the interactive session.
"""

from .app import TerminalApp
from .theme import Theme, theme_for

__all__ = ["TerminalApp", "Theme", "theme_for"]
