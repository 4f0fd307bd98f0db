"""Database adapters wrapping the driver behind a small capability interface."""

from abc import ABC, abstractmethod

from .errors import ConnectErrorKind, QueryErrorKind


class DBAdapter(ABC):
    """Base class for database adapters.

    An adapter is the only place that touches the driver. The rest of the
    application sees three capabilities: ``connect``, ``query`` (rows back)
    and ``execute`` (affected-row count back), plus a handful of dialect
    helpers for building SQL.
    """

    display_name = "Base"
    required_module = None  # Module name to import for this adapter
    install_hint = None  # pip install hint for missing dependency

    @classmethod
    def is_available(cls):
        """Check if the required module for this adapter is installed."""
        if cls.required_module is None:
            return True
        try:
            __import__(cls.required_module)
            return True
        except ImportError:
            return False

    @abstractmethod
    def connect(self, host, user, password, port=None, database=None):
        """Connect to the database and return a driver handle."""
        pass

    @abstractmethod
    def query(self, handle, sql):
        """Run a statement that returns rows.

        Returns ``(columns, rows)``. ``columns`` is None when the driver
        reports no result description.
        """
        pass

    @abstractmethod
    def execute(self, handle, sql):
        """Run a statement that modifies data. Returns ``(rows_affected, last_insert_id)``."""
        pass

    def close(self, handle):
        handle.close()

    def classify_connect_error(self, exc):
        """Map a driver exception raised by ``connect`` to a ConnectErrorKind."""
        if isinstance(exc, TimeoutError):
            return ConnectErrorKind.TIMEOUT
        return ConnectErrorKind.REFUSED

    def classify_query_error(self, exc):
        """Map a driver exception raised by ``query``/``execute`` to a QueryErrorKind."""
        if isinstance(exc, TimeoutError):
            return QueryErrorKind.TIMEOUT
        return QueryErrorKind.EXECUTION

    def add_pagination(self, sql, limit, offset=0):
        """Add pagination to a SQL statement. Default uses LIMIT/OFFSET."""
        sql_stripped = sql.strip()
        while sql_stripped.endswith(';'):
            sql_stripped = sql_stripped[:-1].strip()

        if offset > 0:
            return f"{sql_stripped} LIMIT {limit} OFFSET {offset}"
        return f"{sql_stripped} LIMIT {limit}"

    def get_count_sql(self, table_ref):
        return f"SELECT COUNT(*) FROM {table_ref}"

    def quote_identifier(self, name):
        return '"' + name.replace('"', '""') + '"'

    @abstractmethod
    def get_tables_query(self):
        """Get SQL to retrieve list of tables."""
        pass

    def get_describe_query(self, table_ref):
        return f"DESCRIBE {table_ref}"

    def get_status_query(self):
        """Get the SQL shown by the server status action."""
        return "SELECT VERSION()"

    def get_databases_query(self):
        return "SHOW DATABASES"


class MySQLAdapter(DBAdapter):
    """Adapter for MySQL."""

    display_name = "MySQL"
    required_module = "mysql.connector"
    install_hint = "pip install mysql-connector-python"

    connect_timeout = 10

    # ER_DBACCESS_DENIED_ERROR, ER_ACCESS_DENIED_ERROR, ER_ACCESS_DENIED_NO_PASSWORD_ERROR
    AUTH_ERRNOS = frozenset({1044, 1045, 1698})
    # ER_PARSE_ERROR, ER_SYNTAX_ERROR
    SYNTAX_ERRNOS = frozenset({1064, 1149})
    # ER_QUERY_INTERRUPTED, ER_QUERY_TIMEOUT
    TIMEOUT_ERRNOS = frozenset({1317, 3024})

    def connect(self, host, user, password, port=None, database=None):
        import mysql.connector
        config = {
            'host': host,
            'user': user,
            'password': password,
            'database': database or '',
            'autocommit': True,
            'connection_timeout': self.connect_timeout,
        }
        if port:
            config['port'] = int(port)
        return mysql.connector.connect(**config)

    def query(self, handle, sql):
        cursor = handle.cursor()
        try:
            cursor.execute(sql)
            if cursor.description is None:
                return None, []
            columns = [col[0] for col in cursor.description]
            return columns, cursor.fetchall()
        finally:
            cursor.close()

    def execute(self, handle, sql):
        cursor = handle.cursor()
        try:
            cursor.execute(sql)
            if cursor.with_rows:
                # Statement produced a result set anyway; drain it.
                cursor.fetchall()
            return cursor.rowcount, cursor.lastrowid
        finally:
            cursor.close()

    def classify_connect_error(self, exc):
        errno = getattr(exc, "errno", None)
        if errno in self.AUTH_ERRNOS:
            return ConnectErrorKind.AUTH_FAILED
        if isinstance(exc, TimeoutError) or "timed out" in str(exc).lower():
            return ConnectErrorKind.TIMEOUT
        return ConnectErrorKind.REFUSED

    def classify_query_error(self, exc):
        errno = getattr(exc, "errno", None)
        if errno in self.SYNTAX_ERRNOS:
            return QueryErrorKind.SYNTAX
        if errno in self.TIMEOUT_ERRNOS or isinstance(exc, TimeoutError):
            return QueryErrorKind.TIMEOUT
        return QueryErrorKind.EXECUTION

    def quote_identifier(self, name):
        return '`' + name.replace('`', '``') + '`'

    def get_tables_query(self):
        return "SHOW TABLES"

    def get_status_query(self):
        return "SELECT VERSION() AS version, NOW() AS server_time, CONNECTION_ID() AS connection_id"


# Registry of available adapters
ADAPTERS = {
    'mysql': MySQLAdapter,
}


def get_adapter(db_type):
    """Get an adapter instance by type."""
    adapter_class = ADAPTERS.get(db_type)
    if adapter_class:
        return adapter_class()
    raise ValueError(f"Unknown database type: {db_type}")


def get_unavailable_adapters():
    """Get list of adapters that are not available due to missing dependencies.

    Returns list of (db_type, display_name, install_hint).
    """
    return [
        (key, cls.display_name, cls.install_hint)
        for key, cls in ADAPTERS.items()
        if not cls.is_available()
    ]
