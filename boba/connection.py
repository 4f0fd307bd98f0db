"""Opening, validating and owning the single live database handle."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .config import ConnectionConfig
from .errors import ConnectErrorKind, DatabaseConnectionError

logger = logging.getLogger(__name__)


@dataclass
class Connection:
    host: str
    port: int
    user: str
    password: str = field(repr=False)
    database: str
    handle: Any = field(repr=False)
    closed: bool = False

    @property
    def name(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class ConnectionManager:
    """Owns at most one live connection at a time."""

    def __init__(self, adapter):
        self.adapter = adapter
        self.connection: Optional[Connection] = None

    @property
    def is_connected(self) -> bool:
        return self.connection is not None and not self.connection.closed

    def validate(self, config: ConnectionConfig) -> None:
        """Raise INVALID_CONFIG for missing fields. Never touches the network."""
        missing = [name for name in ("user", "database")
                   if not str(getattr(config, name) or "").strip()]
        if missing:
            raise DatabaseConnectionError(
                ConnectErrorKind.INVALID_CONFIG,
                f"Missing required field(s): {', '.join(missing)}"
            )
        if not isinstance(config.port, int) or isinstance(config.port, bool) or config.port <= 0:
            raise DatabaseConnectionError(
                ConnectErrorKind.INVALID_CONFIG,
                f"Invalid port: {config.port!r}"
            )

    def open(self, config: ConnectionConfig) -> Connection:
        """Validate and open a new handle. Blocks until the driver answers."""
        self.validate(config)
        try:
            handle = self.adapter.connect(
                host=config.host,
                user=config.user,
                password=config.password,
                port=config.port,
                database=config.database,
            )
        except DatabaseConnectionError:
            raise
        except Exception as e:
            kind = self.adapter.classify_connect_error(e)
            logger.warning("Connect to %s failed (%s): %s", config.dsn(), kind.value, e)
            raise DatabaseConnectionError(kind, str(e)) from e

        logger.info("Connected to %s", config.dsn())
        return Connection(
            host=config.host,
            port=config.port,
            user=config.user,
            password=config.password,
            database=config.database,
            handle=handle,
        )

    def install(self, connection: Connection) -> None:
        """Make ``connection`` the live handle, closing any prior one."""
        if self.connection is not None and self.connection is not connection:
            self.close()
        self.connection = connection

    def connect(self, config: ConnectionConfig) -> Connection:
        connection = self.open(config)
        self.install(connection)
        return connection

    def release(self) -> Optional[Connection]:
        """Stop owning the live connection without closing it."""
        connection = self.connection
        self.connection = None
        return connection

    def close(self) -> None:
        """Close the live handle. Safe to call repeatedly or with no handle."""
        self.close_connection(self.release())

    def close_connection(self, connection: Optional[Connection]) -> None:
        if connection is None or connection.closed or connection.handle is None:
            return
        connection.closed = True
        try:
            self.adapter.close(connection.handle)
            logger.info("Closed connection %s", connection.name)
        except Exception as e:
            logger.warning("Error closing connection %s: %s", connection.name, e)
