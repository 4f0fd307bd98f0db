"""
Modal controller for the interactive session.

Public methods are the input events (menu choices, query submission, page
navigation, back, quit). Database work is handed to a job runner and its
completion comes back as a signal; everything here runs on the event-loop
thread. At most one job is in flight: further submissions are rejected with
a busy notice while navigation keeps working.
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from ..config import ConnectionConfig, SessionSettings
from ..connection import ConnectionManager
from ..errors import (
    BobaError,
    DatabaseConnectionError,
    ExportError,
    QueryError,
    QueryErrorKind,
)
from ..executor import QueryExecutor, QueryResult
from ..export import copy_text, export_result
from ..formatter import render
from ..history import HistoryLog
from ..pagination import PaginationWindow
from .views import (
    MODAL_VIEWS,
    Connecting,
    CopyExportMenu,
    FreeQuery,
    HelpView,
    HistoryView,
    MainMenu,
    TableBrowse,
    TableList,
)

logger = logging.getLogger(__name__)

BUSY_NOTICE = "Busy: a query is already running"

JOB_CONNECT = "connect"
JOB_QUERY = "query"
JOB_TABLES = "tables"
JOB_BROWSE = "browse"


@dataclass
class _Job:
    token: int
    kind: str
    view_type: type
    sql: Optional[str] = None
    table: Optional[str] = None
    started: float = 0.0


class SessionController(QObject):
    """Drives the session through its views."""

    view_changed = pyqtSignal(object)
    quit_requested = pyqtSignal()

    def __init__(self, adapter, runner=None, store=None,
                 settings: Optional[SessionSettings] = None,
                 config: Optional[ConnectionConfig] = None, parent=None):
        super().__init__(parent)
        self.adapter = adapter
        self.store = store
        self.settings = settings or SessionSettings()
        self.connections = ConnectionManager(adapter)
        self.executor = QueryExecutor(adapter)
        self.history = HistoryLog()
        self.last_result: Optional[QueryResult] = None
        self.running = True

        if runner is None:
            from .workers import ThreadedJobRunner
            runner = ThreadedJobRunner(self)
        self.runner = runner
        self.runner.finished.connect(self._on_job_finished)
        self.runner.failed.connect(self._on_job_failed)

        self._next_token = 0
        self._pending: Optional[_Job] = None
        self._timer: Optional[QTimer] = None

        self.view: Any = Connecting(config or ConnectionConfig())

    # ------------------------------------------------------------------
    # State helpers

    @property
    def busy(self) -> bool:
        return self._pending is not None

    def _set_view(self, view) -> None:
        self.view = view
        self.view_changed.emit(view)

    def _notify(self, notice: str) -> None:
        """Attach a one-line notice to the current view if it has room for one."""
        if hasattr(self.view, "notice"):
            self._set_view(replace(self.view, notice=notice))

    def _accepts(self, *view_types) -> bool:
        if not self.running:
            return False
        if not isinstance(self.view, view_types):
            logger.debug("Ignoring input for %s in %s", view_types, type(self.view).__name__)
            return False
        return True

    def _with_busy(self, view):
        if hasattr(view, "busy"):
            return replace(view, busy=self.busy)
        return view

    # ------------------------------------------------------------------
    # Jobs

    def _submit(self, kind: str, view_type: type, work, sql=None, table=None,
                timeout: bool = True) -> bool:
        if self._pending is not None:
            self._notify(BUSY_NOTICE)
            return False

        self._next_token += 1
        job = _Job(self._next_token, kind, view_type, sql, table, time.time())
        self._pending = job

        if timeout and self.settings.query_timeout > 0:
            self._timer = QTimer(self)
            self._timer.setSingleShot(True)
            self._timer.timeout.connect(lambda token=job.token: self._on_job_timeout(token))
            self._timer.start(int(self.settings.query_timeout * 1000))

        logger.debug("Submitting job %d (%s)", job.token, kind)
        self.runner.submit(job.token, work)
        return True

    def _take_job(self, token: int) -> Optional[_Job]:
        job = self._pending
        if job is None or job.token != token:
            logger.debug("Discarding stale completion for job %d", token)
            return None
        self._pending = None
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        return job

    def _update_origin(self, job: _Job, **changes) -> None:
        """Apply ``changes`` to the view that issued ``job``.

        If a modal view is open on top of it, the change goes to the modal's
        ``return_to``. If the user has moved elsewhere, nothing changes.
        """
        view = self.view
        if self._is_origin(view, job):
            self._set_view(replace(view, **changes))
        elif isinstance(view, MODAL_VIEWS) and self._is_origin(view.return_to, job):
            self._set_view(replace(view, return_to=replace(view.return_to, **changes)))
        else:
            logger.debug("Job %d completed after leaving %s", job.token, job.view_type.__name__)

    @staticmethod
    def _is_origin(view, job: _Job) -> bool:
        if not isinstance(view, job.view_type):
            return False
        if isinstance(view, TableBrowse):
            return view.table == job.table
        return True

    def _on_job_finished(self, token: int, outcome) -> None:
        job = self._take_job(token)
        if job is None:
            return

        if job.kind == JOB_CONNECT:
            self._connected(outcome)
            return

        duration = time.time() - job.started
        if job.kind == JOB_QUERY:
            self.history.append(job.sql)
            if isinstance(outcome, QueryResult):
                self.last_result = outcome
                row_count = outcome.row_count
            else:
                row_count = outcome.rows_affected
            self._log_query(job.sql, duration, row_count)
            self._update_origin(job, outcome=outcome, error=None, busy=False, notice=None)

        elif job.kind == JOB_TABLES:
            tables = tuple(row[0] for row in outcome.rows if row)
            self._update_origin(job, tables=tables, error=None, busy=False,
                                notice=None if tables else "No tables found in database")

        elif job.kind == JOB_BROWSE:
            result, window = outcome
            self.last_result = result
            self._log_query(job.sql, duration, result.row_count)
            self._update_origin(job, result=result, window=window, error=None,
                                busy=False, notice=None)

    def _on_job_failed(self, token: int, error: BobaError) -> None:
        job = self._take_job(token)
        if job is None:
            return

        if job.kind == JOB_CONNECT:
            logger.info("Connect failed: %s", error)
            self._update_origin(job, error=error, busy=False)
            return

        if job.kind == JOB_QUERY:
            self.history.append(job.sql)
        self._log_query(job.sql, time.time() - job.started, None, error)
        self._update_origin(job, error=error, busy=False)

    def _on_job_timeout(self, token: int) -> None:
        job = self._pending
        if job is None or job.token != token:
            return
        logger.warning("Job %d (%s) timed out after %.1fs", token, job.kind,
                       self.settings.query_timeout)
        error = QueryError(
            QueryErrorKind.TIMEOUT,
            f"Query timed out after {self.settings.query_timeout:g}s"
        )
        self._on_job_failed(token, error)

    def _log_query(self, sql, duration, row_count, error=None) -> None:
        if self.store is None or sql is None:
            return
        connection = self.connections.connection
        try:
            self.store.log_query(
                connection.name if connection else None,
                sql,
                duration=duration,
                row_count=row_count,
                status="error" if error else "success",
                error_message=str(error) if error else None,
            )
        except Exception as e:
            logger.warning("Failed to log query: %s", e)

    # ------------------------------------------------------------------
    # Connecting

    def update_config(self, **changes) -> None:
        if not self._accepts(Connecting):
            return
        try:
            config = self.view.config.with_updates(**changes)
        except (TypeError, ValueError) as e:
            self._set_view(replace(self.view, notice=f"Invalid value: {e}"))
            return
        self._set_view(replace(self.view, config=config, notice=None))

    def connect(self) -> bool:
        if not self._accepts(Connecting):
            return False
        config = self.view.config
        try:
            self.connections.validate(config)
        except DatabaseConnectionError as e:
            self._set_view(replace(self.view, error=e, busy=False))
            return False

        if not self._submit(JOB_CONNECT, Connecting,
                            lambda: self.connections.open(config), timeout=False):
            return False
        self._set_view(replace(self.view, busy=True, error=None, notice=None))
        return True

    def _connected(self, connection) -> None:
        self.connections.install(connection)
        if self.store is not None:
            try:
                self.store.save_connection(connection.name, connection.host, connection.port,
                                           connection.database, connection.user,
                                           connection.password)
            except Exception as e:
                logger.warning("Failed to save connection: %s", e)
        self._set_view(MainMenu(notice=f"Connected to {connection.name}"))

    # ------------------------------------------------------------------
    # Main menu

    def open_free_query(self, text: str = "") -> None:
        if not self._accepts(MainMenu):
            return
        self._set_view(FreeQuery(input_text=text, busy=self.busy))

    def open_table_list(self) -> bool:
        if not self._accepts(MainMenu, FreeQuery):
            return False
        if self.busy:
            self._notify(BUSY_NOTICE)
            return False
        connection = self.connections.connection
        sql = self.adapter.get_tables_query()
        self._set_view(TableList(busy=True))
        return self._submit(JOB_TABLES, TableList,
                            lambda: self.executor.list_tables(connection), sql=sql)

    def show_status(self) -> bool:
        """Run the server status query in the free query view."""
        return self._run_in_free_query(self.executor.status_sql())

    def show_databases(self) -> bool:
        """List the databases on the server in the free query view."""
        return self._run_in_free_query(self.executor.databases_sql())

    def _run_in_free_query(self, sql: str) -> bool:
        if not self._accepts(MainMenu, FreeQuery):
            return False
        if self.busy:
            self._notify(BUSY_NOTICE)
            return False
        self._set_view(FreeQuery())
        return self.submit_query(sql)

    # ------------------------------------------------------------------
    # Free query

    def submit_query(self, text: str) -> bool:
        if not self._accepts(FreeQuery):
            return False
        if self.busy:
            self._set_view(replace(self.view, input_text=text, notice=BUSY_NOTICE))
            return False
        sql = text.strip()
        if not sql:
            self._set_view(replace(self.view, input_text=text, notice="No query entered."))
            return False

        connection = self.connections.connection
        self._set_view(replace(self.view, input_text=text, outcome=None, busy=True,
                               error=None, notice=None))
        return self._submit(JOB_QUERY, FreeQuery,
                            lambda: self.executor.execute(connection, sql), sql=sql)

    # ------------------------------------------------------------------
    # Table list and browsing

    def select_table(self, table: str) -> bool:
        if not self._accepts(TableList):
            return False
        if self.busy:
            self._notify(BUSY_NOTICE)
            return False
        if table not in self.view.tables:
            self._notify(f"Unknown table: {table}")
            return False
        self._set_view(TableBrowse(table=table, busy=True))
        window = PaginationWindow.clamp(0, self.settings.rows_per_page)
        return self._browse(table, window)

    def describe_table(self, table: str) -> bool:
        if not self._accepts(TableList):
            return False
        if self.busy:
            self._notify(BUSY_NOTICE)
            return False
        if table not in self.view.tables:
            self._notify(f"Unknown table: {table}")
            return False
        self._set_view(FreeQuery())
        return self.submit_query(self.executor.describe_sql(table))

    def _browse(self, table: str, window: PaginationWindow) -> bool:
        connection = self.connections.connection
        table_ref = self.adapter.quote_identifier(table)
        sql = self.adapter.add_pagination(f"SELECT * FROM {table_ref}",
                                          window.limit, window.offset)
        if not self._submit(JOB_BROWSE, TableBrowse,
                            lambda: self.executor.browse(connection, table, window),
                            sql=sql, table=table):
            return False
        self._set_view(replace(self.view, busy=True, error=None, notice=None))
        return True

    def _page(self, move: str, edge_notice: str) -> bool:
        if not self._accepts(TableBrowse):
            return False
        if self.busy:
            self._notify(BUSY_NOTICE)
            return False
        window = self.view.window
        if window is None:
            return False
        target = getattr(window, move)()
        if target == window:
            self._notify(edge_notice)
            return False
        return self._browse(self.view.table, target)

    def next_page(self) -> bool:
        return self._page("next", "Already at the end")

    def prev_page(self) -> bool:
        return self._page("prev", "Already at the beginning")

    def first_page(self) -> bool:
        return self._page("first", "Already at the beginning")

    def last_page(self) -> bool:
        return self._page("last", "Already at the end")

    def refresh(self) -> bool:
        """Re-run the current window to pick up changes made elsewhere."""
        if not self._accepts(TableBrowse):
            return False
        window = self.view.window or PaginationWindow.clamp(0, self.settings.rows_per_page)
        return self._browse(self.view.table, window)

    # ------------------------------------------------------------------
    # Modal views

    def open_history(self) -> None:
        if not self._accepts(MainMenu, FreeQuery):
            return
        self._set_view(HistoryView(tuple(self.history.all()), return_to=self.view))

    def select_history(self, index: int) -> bool:
        if not self._accepts(HistoryView):
            return False
        try:
            entry = self.history.get(index)
        except IndexError:
            self._set_view(replace(self.view, notice=f"No history entry {index + 1}"))
            return False
        origin = self.view.return_to
        notice = "Press Enter to run, or type a new query"
        if isinstance(origin, FreeQuery):
            view = replace(origin, input_text=entry.text, outcome=None, error=None,
                           notice=notice)
        else:
            view = FreeQuery(input_text=entry.text, notice=notice)
        self._set_view(self._with_busy(view))
        return True

    def open_help(self) -> None:
        if not self.running:
            return
        if isinstance(self.view, HelpView):
            return
        self._set_view(HelpView(return_to=self.view))

    def open_copy_export(self) -> bool:
        if not self._accepts(FreeQuery, TableBrowse):
            return False
        if self.last_result is None:
            self._notify("No results to export")
            return False
        self._set_view(CopyExportMenu(self.last_result, return_to=self.view))
        return True

    def export(self, fmt: str) -> Optional[str]:
        """Write the cached result to ``export_<unixtime>.<ext>``."""
        if not self._accepts(CopyExportMenu):
            return None
        try:
            path = export_result(self.view.result, fmt, self.settings.export_dir)
        except ExportError as e:
            self._set_view(replace(self.view, error=e, message=None))
            return None
        except ValueError as e:
            self._set_view(replace(self.view, message=str(e), error=None))
            return None
        message = f"Exported {self.view.result.row_count} rows to {path}"
        self._set_view(replace(self.view, message=message, error=None))
        return str(path)

    def copy(self, fmt: str = "csv") -> bool:
        if not self._accepts(CopyExportMenu):
            return False
        result = self.view.result
        try:
            copy_text(render(fmt, result.columns, result.rows))
        except ValueError as e:
            self._set_view(replace(self.view, message=str(e), error=None))
            return False
        except ExportError as e:
            self._set_view(replace(self.view, error=e, message=None))
            return False
        self._set_view(replace(self.view, message=f"Copied {fmt} to clipboard", error=None))
        return True

    # ------------------------------------------------------------------
    # Back and quit

    def back(self) -> None:
        if not self.running:
            return
        view = self.view
        if isinstance(view, MODAL_VIEWS):
            self._set_view(self._with_busy(view.return_to))
        elif isinstance(view, (FreeQuery, TableList, TableBrowse)):
            self._set_view(MainMenu())

    def quit(self) -> None:
        if not self.running:
            return
        self.running = False
        self._pending = None
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        # The handle is closed on the job thread, after any job still using it.
        connection = self.connections.release()
        self.runner.shutdown(lambda: self.connections.close_connection(connection))
        logger.info("Session closed")
        self.quit_requested.emit()
