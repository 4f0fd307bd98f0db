"""
Line-oriented terminal front end.

Reads stdin through a ``QSocketNotifier`` so keyboard input and query
completions are consumed by the same Qt event loop, maps each line to a
controller call for the active view, and redraws on every view change.
"""

import getpass
import logging
import sys
from typing import List, Optional, TextIO

import sqlparse
from PyQt6.QtCore import QCoreApplication, QObject, QSocketNotifier

from ..session.views import (
    Connecting,
    CopyExportMenu,
    FreeQuery,
    HelpView,
    HistoryView,
    MainMenu,
    TableBrowse,
    TableList,
)
from .screens import render_view
from .theme import Theme

logger = logging.getLogger(__name__)

PROMPT = "mysql> "
CONTINUATION_PROMPT = "    -> "

QUIT_WORDS = {"exit", "quit", "\\q"}


class TerminalApp(QObject):
    """Connects a SessionController to a terminal."""

    def __init__(self, controller, theme: Theme, output: TextIO = None,
                 input_stream: TextIO = None, parent=None):
        super().__init__(parent)
        self.controller = controller
        self.theme = theme
        self.output = output or sys.stdout
        self.input_stream = input_stream or sys.stdin
        self._buffer: List[str] = []
        self._notifier: Optional[QSocketNotifier] = None

        controller.view_changed.connect(self.draw)
        controller.quit_requested.connect(self._on_quit)

    def start(self) -> None:
        """Watch stdin and draw the initial view."""
        self._notifier = QSocketNotifier(self.input_stream.fileno(),
                                         QSocketNotifier.Type.Read, self)
        self._notifier.activated.connect(self._on_readable)
        self.draw(self.controller.view)

    def _on_readable(self, *args) -> None:
        line = self.input_stream.readline()
        if line == "":
            # EOF
            self.controller.quit()
            return
        self.handle_line(line.rstrip("\r\n"))

    def _on_quit(self) -> None:
        if self._notifier is not None:
            self._notifier.setEnabled(False)
        self._write(self.theme.paint("title", "Goodbye!"))
        app = QCoreApplication.instance()
        if app is not None:
            app.quit()

    # ------------------------------------------------------------------
    # Output

    def _write(self, text: str) -> None:
        self.output.write(text + "\n")
        self.output.flush()

    def prompt(self) -> str:
        view = self.controller.view
        if isinstance(view, FreeQuery):
            return CONTINUATION_PROMPT if self._buffer else PROMPT
        return "> "

    def draw(self, view) -> None:
        self._write("")
        self._write(render_view(view, self.theme))
        self.output.write(self.theme.paint("prompt", self.prompt()))
        self.output.flush()

    # ------------------------------------------------------------------
    # Input

    def handle_line(self, line: str) -> None:
        view = self.controller.view
        handler = {
            Connecting: self._connecting_input,
            MainMenu: self._main_menu_input,
            FreeQuery: self._free_query_input,
            TableList: self._table_list_input,
            TableBrowse: self._table_browse_input,
            HistoryView: self._history_input,
            CopyExportMenu: self._copy_export_input,
            HelpView: self._help_input,
        }[type(view)]
        handler(line)

    def _connecting_input(self, line: str) -> None:
        text = line.strip()
        if text.lower() in QUIT_WORDS or text.lower() == "q":
            self.controller.quit()
        elif text == "":
            self.controller.connect()
        elif text.lower() == "p":
            password = getpass.getpass("Password: ")
            self.controller.update_config(password=password)
        elif "=" in text:
            changes = {}
            for pair in text.split():
                key, _, value = pair.partition("=")
                if key in ("host", "port", "user", "database"):
                    changes[key] = value
            self.controller.update_config(**changes)
        else:
            self.controller.open_help()

    def _main_menu_input(self, line: str) -> None:
        choice = line.strip().lower()
        if choice == "1":
            self.controller.open_free_query()
        elif choice == "2":
            self.controller.open_table_list()
        elif choice == "3":
            self.controller.open_history()
        elif choice == "4":
            self.controller.show_status()
        elif choice == "5":
            self.controller.show_databases()
        elif choice in ("h", "?", "help"):
            self.controller.open_help()
        elif choice == "q" or choice in QUIT_WORDS:
            self.controller.quit()
        else:
            self.draw(self.controller.view)

    def _free_query_input(self, line: str) -> None:
        stripped = line.strip()
        if not self._buffer:
            command = stripped.lower()
            if command in QUIT_WORDS:
                self.controller.quit()
                return
            if command in ("\\b", "back"):
                self.controller.back()
                return
            if command in ("\\h", "help"):
                self.controller.open_help()
                return
            if command in ("\\g", "history"):
                self.controller.open_history()
                return
            if command == "\\e":
                self.controller.open_copy_export()
                return
            if command == "\\l":
                self.controller.show_databases()
                return
            if command in ("\\s", "status"):
                self.controller.show_status()
                return
            if command == "\\dt":
                self.controller.open_table_list()
                return
            if command in ("", ";"):
                self._run_pending_input()
                return
        if stripped.lower() in ("\\c", "clear"):
            self._buffer.clear()
            self._write("Query cleared.")
            self.output.write(self.theme.paint("prompt", self.prompt()))
            self.output.flush()
            return

        if stripped:
            self._buffer.append(stripped)
        if not stripped.endswith(";"):
            self.output.write(self.theme.paint("prompt", self.prompt()))
            self.output.flush()
            return

        text = " ".join(self._buffer)
        self._buffer.clear()
        statements = [s for s in sqlparse.split(text) if s.strip().rstrip(";").strip()]
        if len(statements) > 1:
            self.controller.submit_query(statements[0])
            logger.info("Ignored %d extra statement(s) on one line", len(statements) - 1)
        else:
            self.controller.submit_query(text)

    def _run_pending_input(self) -> None:
        """Run input the view holds but has not run yet (recalled or failed)."""
        view = self.controller.view
        if view.input_text.strip() and view.outcome is None and not view.busy:
            self.controller.submit_query(view.input_text)
            return
        self.output.write(self.theme.paint("prompt", self.prompt()))
        self.output.flush()

    def _table_list_input(self, line: str) -> None:
        text = line.strip().lower()
        tables = self.controller.view.tables
        if text in ("b", "back", ""):
            self.controller.back()
            return
        describe = text.startswith("d ")
        index = self._parse_index(text[2:] if describe else text, len(tables))
        if index is None:
            self.controller.open_help()
            return
        if describe:
            self.controller.describe_table(tables[index])
        else:
            self.controller.select_table(tables[index])

    def _table_browse_input(self, line: str) -> None:
        key = line.strip().lower()
        actions = {
            "n": self.controller.next_page,
            "p": self.controller.prev_page,
            "f": self.controller.first_page,
            "l": self.controller.last_page,
            "r": self.controller.refresh,
            "e": self.controller.open_copy_export,
            "b": self.controller.back,
            "h": self.controller.open_help,
            "q": self.controller.quit,
        }
        action = actions.get(key)
        if action is None:
            self.draw(self.controller.view)
        else:
            action()

    def _history_input(self, line: str) -> None:
        text = line.strip().lower()
        if text in ("b", "back", ""):
            self.controller.back()
            return
        index = self._parse_index(text, len(self.controller.view.entries))
        if index is None:
            self.draw(self.controller.view)
        else:
            self.controller.select_history(index)

    def _copy_export_input(self, line: str) -> None:
        parts = line.strip().lower().split()
        if not parts or parts[0] in ("b", "back"):
            self.controller.back()
            return
        fmt = parts[1] if len(parts) > 1 else "csv"
        if fmt == "md":
            fmt = "markdown"
        if parts[0] == "c":
            self.controller.copy(fmt)
        elif parts[0] == "s":
            self.controller.export(fmt)
        else:
            self.draw(self.controller.view)

    def _help_input(self, line: str) -> None:
        self.controller.back()

    @staticmethod
    def _parse_index(text: str, count: int) -> Optional[int]:
        """1-based menu number to a 0-based index, or None."""
        try:
            number = int(text.strip())
        except ValueError:
            return None
        if 1 <= number <= count:
            return number - 1
        return None
