"""Connection parameters and session preferences."""

import os
from dataclasses import dataclass, field, fields, replace

ENV_PREFIX = "BOBA_"


@dataclass(frozen=True)
class ConnectionConfig:
    """Parameters needed to open a connection."""

    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = field(default="", repr=False)
    database: str = ""

    @classmethod
    def from_env(cls, environ=None, base=None):
        """Overlay BOBA_HOST, BOBA_PORT, ... onto ``base`` (or the defaults)."""
        environ = os.environ if environ is None else environ
        config = base or cls()
        overrides = {}
        for f in fields(cls):
            value = environ.get(ENV_PREFIX + f.name.upper())
            if value is None or value == "":
                continue
            if f.name == "port":
                try:
                    value = int(value)
                except ValueError:
                    continue
            overrides[f.name] = value
        return replace(config, **overrides)

    @classmethod
    def from_saved(cls, row):
        """Build from a row returned by ``Store.get_connection``."""
        return cls(
            host=row.get("host") or "localhost",
            port=row.get("port") or 3306,
            user=row.get("user") or "",
            password=row.get("password") or "",
            database=row.get("database") or "",
        )

    def with_updates(self, **changes):
        if "port" in changes and changes["port"] not in (None, ""):
            changes["port"] = int(changes["port"])
        return replace(self, **changes)

    def dsn(self, mask_password=True):
        password = "****" if mask_password and self.password else self.password
        return f"{self.user}:{password}@tcp({self.host}:{self.port})/{self.database}"

    @property
    def name(self):
        """Key used when saving this connection."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


@dataclass
class SessionSettings:
    """User preferences persisted in the store's settings table."""

    rows_per_page: int = 20
    query_timeout: float = 30.0
    export_dir: str = "."
    dark_mode: bool = True

    @classmethod
    def load(cls, store):
        defaults = cls()
        if store is None:
            return defaults
        return cls(
            rows_per_page=_to_int(store.get_setting("rows_per_page"), defaults.rows_per_page),
            query_timeout=_to_float(store.get_setting("query_timeout"), defaults.query_timeout),
            export_dir=store.get_setting("export_dir", defaults.export_dir),
            dark_mode=store.get_setting("dark_mode", "1") == "1",
        )

    def save(self, store):
        store.set_setting("rows_per_page", str(self.rows_per_page))
        store.set_setting("query_timeout", str(self.query_timeout))
        store.set_setting("export_dir", self.export_dir)
        store.set_setting("dark_mode", "1" if self.dark_mode else "0")


def _to_int(value, default):
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _to_float(value, default):
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= 0 else default
