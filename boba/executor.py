"""
Query execution and result normalization.

Every value a driver hands back is resolved to a ``ValueKind`` once, here,
and turned into text. Renderers only ever see strings.
"""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Sequence, Tuple, Union

from .errors import BobaError, QueryError, QueryErrorKind
from .pagination import PaginationWindow

logger = logging.getLogger(__name__)

READ_PREFIXES = ("select", "show", "describe", "desc")

NULL_TEXT = "NULL"


class StatementKind(Enum):
    READ = "read"
    WRITE = "write"


class ValueKind(Enum):
    NULL = "null"
    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    BINARY = "binary"


def classify(sql: str) -> StatementKind:
    """READ if the statement returns rows, WRITE otherwise."""
    lowered = sql.strip().lower()
    if lowered.startswith(READ_PREFIXES):
        return StatementKind.READ
    return StatementKind.WRITE


def value_kind(value: Any) -> ValueKind:
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int, so it has to be checked first
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, (float, Decimal)):
        return ValueKind.FLOAT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BINARY
    return ValueKind.TEXT


def normalize_value(value: Any) -> str:
    """Canonical, locale-independent text for a single cell."""
    kind = value_kind(value)
    if kind is ValueKind.NULL:
        return NULL_TEXT
    if kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind is ValueKind.INTEGER:
        return str(int(value))
    if kind is ValueKind.FLOAT:
        return repr(value) if isinstance(value, float) else str(value)
    if kind is ValueKind.BINARY:
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


@dataclass(frozen=True)
class QueryResult:
    """Rows returned by a read statement, already normalized to text."""

    columns: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...]
    elapsed: float = 0.0

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows


@dataclass(frozen=True)
class WriteOutcome:
    rows_affected: int
    last_insert_id: Optional[int] = None
    elapsed: float = 0.0

    def summary(self) -> str:
        text = f"Query executed successfully. {self.rows_affected} rows affected."
        if self.last_insert_id:
            text += f" Last insert ID: {self.last_insert_id}"
        return text


Outcome = Union[QueryResult, WriteOutcome]


def build_result(columns: Optional[Sequence[Any]], raw_rows: Sequence[Sequence[Any]],
                 elapsed: float = 0.0) -> QueryResult:
    """Normalize a driver rowset, checking every row against the column count."""
    if columns is None:
        raise QueryError(QueryErrorKind.COLUMN_INTROSPECTION,
                         "Statement returned no column description")
    names = tuple(normalize_value(c) if not isinstance(c, str) else c for c in columns)
    rows = []
    for i, raw in enumerate(raw_rows):
        if len(raw) != len(names):
            raise QueryError(
                QueryErrorKind.COLUMN_INTROSPECTION,
                f"Row {i + 1} has {len(raw)} values for {len(names)} columns"
            )
        rows.append(tuple(normalize_value(v) for v in raw))
    return QueryResult(names, tuple(rows), elapsed)


class QueryExecutor:
    """Runs statements against a connection through its adapter."""

    def __init__(self, adapter):
        self.adapter = adapter

    def execute(self, connection, sql: str) -> Outcome:
        sql_stripped = sql.strip()
        while sql_stripped.endswith(';'):
            sql_stripped = sql_stripped[:-1].strip()
        if not sql_stripped:
            raise QueryError(QueryErrorKind.SYNTAX, "No query entered")

        kind = classify(sql_stripped)
        start = time.time()
        try:
            if kind is StatementKind.READ:
                columns, raw_rows = self.adapter.query(connection.handle, sql_stripped)
            else:
                rows_affected, last_id = self.adapter.execute(connection.handle, sql_stripped)
        except BobaError:
            raise
        except Exception as e:
            error_kind = self.adapter.classify_query_error(e)
            logger.info("Query failed (%s): %s", error_kind.value, e)
            raise QueryError(error_kind, str(e)) from e
        elapsed = time.time() - start

        if kind is StatementKind.READ:
            result = build_result(columns, raw_rows, elapsed)
            logger.debug("Read %d rows in %.3fs", result.row_count, elapsed)
            return result

        last_insert_id = last_id if isinstance(last_id, int) and last_id > 0 else None
        logger.debug("%d rows affected in %.3fs", rows_affected, elapsed)
        return WriteOutcome(rows_affected, last_insert_id, elapsed)

    def read(self, connection, sql: str) -> QueryResult:
        outcome = self.execute(connection, sql)
        if not isinstance(outcome, QueryResult):
            raise QueryError(QueryErrorKind.COLUMN_INTROSPECTION,
                             "Statement did not return rows")
        return outcome

    def list_tables(self, connection) -> QueryResult:
        return self.read(connection, self.adapter.get_tables_query())

    def count_rows(self, connection, table: str) -> int:
        table_ref = self.adapter.quote_identifier(table)
        result = self.read(connection, self.adapter.get_count_sql(table_ref))
        try:
            return int(result.rows[0][0])
        except (IndexError, ValueError) as e:
            raise QueryError(QueryErrorKind.COLUMN_INTROSPECTION,
                             f"Could not count rows in {table}") from e

    def browse(self, connection, table: str,
               window: PaginationWindow) -> Tuple[QueryResult, PaginationWindow]:
        """Recount ``table`` and fetch the window re-clamped to the new total."""
        window = window.with_total(self.count_rows(connection, table))
        table_ref = self.adapter.quote_identifier(table)
        sql = self.adapter.add_pagination(f"SELECT * FROM {table_ref}",
                                          window.limit, window.offset)
        return self.read(connection, sql), window

    def describe_sql(self, table: str) -> str:
        return self.adapter.get_describe_query(self.adapter.quote_identifier(table))

    def status_sql(self) -> str:
        return self.adapter.get_status_query()

    def databases_sql(self) -> str:
        return self.adapter.get_databases_query()
