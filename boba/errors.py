"""Error taxonomy shared by the connection, query and export layers."""

from enum import Enum


class BobaError(Exception):
    """Base class for errors shown to the user inline."""

    def __init__(self, kind, message):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self):
        return self.message


class ConnectErrorKind(Enum):
    INVALID_CONFIG = "invalid_config"
    REFUSED = "refused"
    AUTH_FAILED = "auth_failed"
    TIMEOUT = "timeout"


class QueryErrorKind(Enum):
    SYNTAX = "syntax"
    EXECUTION = "execution"
    COLUMN_INTROSPECTION = "column_introspection"
    TIMEOUT = "timeout"


class ExportErrorKind(Enum):
    FILE_CREATE_FAILED = "file_create_failed"
    WRITE_FAILED = "write_failed"
    CLIPBOARD_UNAVAILABLE = "clipboard_unavailable"


class DatabaseConnectionError(BobaError):
    """Opening a connection failed. Only shown on the connect view."""


class QueryError(BobaError):
    """A query could not be executed or its result could not be read."""


class ExportError(BobaError):
    """Writing an export file or copying to the clipboard failed."""
