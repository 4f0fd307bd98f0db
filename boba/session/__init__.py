"""
Interactive session: view variants, background jobs and the modal controller.
"""

from .controller import SessionController
from .views import (
    Connecting,
    CopyExportMenu,
    FreeQuery,
    HelpView,
    HistoryView,
    MainMenu,
    SessionView,
    TableBrowse,
    TableList,
)

__all__ = [
    "SessionController",
    "SessionView",
    "Connecting",
    "MainMenu",
    "FreeQuery",
    "TableList",
    "TableBrowse",
    "HistoryView",
    "CopyExportMenu",
    "HelpView",
]
