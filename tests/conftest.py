import re

import pytest
from PyQt6.QtCore import QCoreApplication, QObject, pyqtSignal

from boba.adapters import DBAdapter
from boba.config import ConnectionConfig, SessionSettings
from boba.errors import BobaError, QueryError, QueryErrorKind
from boba.session import SessionController


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class FakeHandle:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class DriverError(Exception):
    def __init__(self, msg, errno=None):
        super().__init__(msg)
        self.errno = errno


class FakeAdapter(DBAdapter):
    """Scripted stand-in for the MySQL driver."""

    display_name = "Fake"

    PAGE_RE = re.compile(r"SELECT \* FROM `(\w+)` LIMIT (\d+)(?: OFFSET (\d+))?$")
    COUNT_RE = re.compile(r"SELECT COUNT\(\*\) FROM `(\w+)`$")

    def __init__(self):
        self.tables = {}
        self.select_result = (["a"], [(1,)])
        self.rows_affected = 1
        self.last_insert_id = 0
        self.connect_error = None
        self.query_error = None
        self.connects = []
        self.statements = []
        self.handles = []
        self.closed_at_query = []

    def connect(self, host, user, password, port=None, database=None):
        self.connects.append((host, user, port, database))
        if self.connect_error is not None:
            raise self.connect_error
        handle = FakeHandle()
        self.handles.append(handle)
        return handle

    def query(self, handle, sql):
        self.statements.append(sql)
        self.closed_at_query.append(handle.closed)
        if self.query_error is not None:
            raise self.query_error
        if sql == "SHOW TABLES":
            return ["Tables_in_test"], [(name,) for name in self.tables]
        if sql == "SHOW DATABASES":
            return ["Database"], [("information_schema",), ("test",)]
        match = self.COUNT_RE.match(sql)
        if match:
            return ["COUNT(*)"], [(len(self.tables[match.group(1)][1]),)]
        match = self.PAGE_RE.match(sql)
        if match:
            columns, rows = self.tables[match.group(1)]
            limit, offset = int(match.group(2)), int(match.group(3) or 0)
            return columns, rows[offset:offset + limit]
        return self.select_result

    def execute(self, handle, sql):
        self.statements.append(sql)
        if self.query_error is not None:
            raise self.query_error
        return self.rows_affected, self.last_insert_id

    def classify_query_error(self, exc):
        if getattr(exc, "errno", None) == 1064:
            return QueryErrorKind.SYNTAX
        return super().classify_query_error(exc)

    def quote_identifier(self, name):
        return '`' + name.replace('`', '``') + '`'

    def get_tables_query(self):
        return "SHOW TABLES"


class ManualRunner(QObject):
    """Job runner that only runs jobs when a test says so."""

    finished = pyqtSignal(int, object)
    failed = pyqtSignal(int, object)

    def __init__(self):
        super().__init__()
        self.jobs = []
        self.shut_down = False
        self.final = None

    def submit(self, token, job):
        self.jobs.append((token, job))

    def run_next(self):
        token, job = self.jobs.pop(0)
        try:
            result = job()
        except BobaError as e:
            self.failed.emit(token, e)
        except Exception as e:
            self.failed.emit(token, QueryError(QueryErrorKind.EXECUTION, str(e)))
        else:
            self.finished.emit(token, result)
        if self.shut_down and not self.jobs:
            self._run_final()

    def shutdown(self, final=None):
        self.shut_down = True
        self.final = final
        if not self.jobs:
            self._run_final()
        return True

    def _run_final(self):
        final, self.final = self.final, None
        if final is not None:
            final()

    def is_running(self):
        return not self.shut_down or bool(self.jobs)


@pytest.fixture
def adapter():
    fake = FakeAdapter()
    fake.tables = {
        "items": (["id", "name"], [(i, f"item{i}") for i in range(1, 26)]),
        "empty": (["id"], []),
    }
    return fake


@pytest.fixture
def runner():
    return ManualRunner()


@pytest.fixture
def settings(tmp_path):
    return SessionSettings(rows_per_page=20, query_timeout=30.0, export_dir=str(tmp_path))


@pytest.fixture
def controller(adapter, runner, settings):
    config = ConnectionConfig(user="root", password="secret", database="test")
    return SessionController(adapter, runner=runner, settings=settings, config=config)


@pytest.fixture
def connected(controller, runner):
    """Controller sitting on the main menu with a live fake connection."""
    controller.connect()
    runner.run_next()
    return controller
