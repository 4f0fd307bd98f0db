"""
View variants of the interactive session.

Exactly one view is active at a time. Each variant is an immutable value
carrying only the state its screen needs; the controller replaces the
whole value on every transition.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from ..config import ConnectionConfig
from ..errors import DatabaseConnectionError, ExportError, QueryError
from ..executor import Outcome, QueryResult
from ..history import HistoryEntry
from ..pagination import PaginationWindow


@dataclass(frozen=True)
class Connecting:
    config: ConnectionConfig
    error: Optional[DatabaseConnectionError] = None
    busy: bool = False
    notice: Optional[str] = None


@dataclass(frozen=True)
class MainMenu:
    notice: Optional[str] = None


@dataclass(frozen=True)
class FreeQuery:
    input_text: str = ""
    outcome: Optional[Outcome] = None
    error: Optional[QueryError] = None
    busy: bool = False
    notice: Optional[str] = None


@dataclass(frozen=True)
class TableList:
    tables: Tuple[str, ...] = ()
    error: Optional[QueryError] = None
    busy: bool = False
    notice: Optional[str] = None


@dataclass(frozen=True)
class TableBrowse:
    table: str
    result: Optional[QueryResult] = None
    window: Optional[PaginationWindow] = None
    error: Optional[QueryError] = None
    busy: bool = False
    notice: Optional[str] = None

    def status_text(self) -> str:
        if self.result is None or self.window is None:
            return f"Loading {self.table}..." if self.busy else self.table
        if self.result.is_empty:
            return f"Table '{self.table}' has no rows"
        first, last = self.window.display_range(self.result.row_count)
        return (f"Rows {first}-{last} of {self.window.total} "
                f"(Page {self.window.page} of {self.window.pages})")


@dataclass(frozen=True)
class HistoryView:
    entries: Tuple[HistoryEntry, ...]
    return_to: Any
    notice: Optional[str] = None


@dataclass(frozen=True)
class CopyExportMenu:
    result: QueryResult
    return_to: Any
    message: Optional[str] = None
    error: Optional[ExportError] = None


@dataclass(frozen=True)
class HelpView:
    return_to: Any


SessionView = Union[Connecting, MainMenu, FreeQuery, TableList, TableBrowse,
                    HistoryView, CopyExportMenu, HelpView]

# Views that hand control back to the view that opened them.
MODAL_VIEWS = (HistoryView, CopyExportMenu, HelpView)
