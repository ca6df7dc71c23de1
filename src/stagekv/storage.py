"""Storage backends: the key/value capability a Stage writes through."""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from collections.abc import MutableMapping
from dataclasses import dataclass
from http.cookies import SimpleCookie
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote, unquote, urlparse

from stagekv.errors import StorageBackendError, UnknownStorageBackendError

logger = logging.getLogger(__name__)

BACKEND_KINDS = ("local", "session", "cookie")


@runtime_checkable
class StorageBackend(Protocol):
    """Three-method key/value capability consumed by Stage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Ephemeral, process-local storage (the ``session`` kind)."""

    def __init__(self, data: MutableMapping[str, str] | None = None) -> None:
        self._data: MutableMapping[str, str] = data if data is not None else {}

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)

    def storage_info(self) -> dict[str, Any]:
        return {"backend": "session", "entries": len(self._data)}


class SqliteStorage:
    """Persistent storage in a single SQLite key/value table (the ``local`` kind)."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> SqliteStorage:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def get_item(self, key: str) -> str | None:
        row = self._conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        self._conn.execute(
            "INSERT INTO kv_store (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )
        self._conn.commit()

    def remove_item(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self._conn.commit()

    def storage_info(self) -> dict[str, Any]:
        count = self._conn.execute("SELECT COUNT(*) FROM kv_store").fetchone()[0]
        return {"backend": "local", "db_path": self.db_path, "entries": count}


class CookieStorage:
    """Cookie-encoded storage (the ``cookie`` kind).

    All entries of one namespace live in a single cookie named after the
    namespace, whose value is a URL-quoted JSON object of key -> value. The
    ``jar`` maps cookie names to raw cookie values; pass the same jar to
    several stores to share it. A cookie that does not decode is removed and
    read as empty.
    """

    def __init__(self, namespace: str, jar: MutableMapping[str, str] | None = None) -> None:
        self.namespace = namespace
        self.jar: MutableMapping[str, str] = jar if jar is not None else {}

    def _load(self) -> dict[str, str]:
        raw = self.jar.get(self.namespace)
        if raw is None:
            return {}
        try:
            entries = json.loads(unquote(raw))
        except ValueError:
            entries = None
        if not isinstance(entries, dict):
            logger.warning("Discarding undecodable cookie %r", self.namespace)
            del self.jar[self.namespace]
            return {}
        return entries

    def _save(self, entries: dict[str, str]) -> None:
        self.jar[self.namespace] = quote(json.dumps(entries, separators=(",", ":")), safe="")

    def get_item(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        entries = self._load()
        entries[key] = value
        self._save(entries)

    def remove_item(self, key: str) -> None:
        entries = self._load()
        if key in entries:
            del entries[key]
            self._save(entries)

    def header(self, *, path: str = "/") -> str:
        """Render the namespace cookie as a ``Set-Cookie`` header value."""
        cookie: SimpleCookie = SimpleCookie()
        cookie[self.namespace] = self.jar.get(self.namespace, quote("{}", safe=""))
        cookie[self.namespace]["path"] = path
        return cookie[self.namespace].OutputString()

    def storage_info(self) -> dict[str, Any]:
        return {"backend": "cookie", "cookie": self.namespace, "entries": len(self._load())}


@dataclass(frozen=True)
class StorageTarget:
    """Resolved storage target from a backend kind or URI."""

    backend: str
    uri: str
    db_path: str | None = None


def parse_storage_target(kind: str, db_path: str | None = None) -> StorageTarget:
    """Resolve a backend kind (``local``, ``session``, ``cookie``) or a ``sqlite:`` URI."""
    if "://" not in kind:
        if kind not in BACKEND_KINDS:
            raise UnknownStorageBackendError(kind)
        if kind == "local":
            path = db_path or "stagekv.db"
            return StorageTarget(backend="local", uri=f"sqlite:///{path}", db_path=path)
        return StorageTarget(backend=kind, uri=f"{kind}://")

    parsed = urlparse(kind)
    if parsed.scheme != "sqlite":
        raise UnknownStorageBackendError(kind)
    sqlite_path = parsed.path
    if parsed.netloc:
        sqlite_path = f"{parsed.netloc}{sqlite_path}"
    elif sqlite_path.startswith("//"):
        # sqlite:////abs/path -> /abs/path
        sqlite_path = sqlite_path[1:]
    if sqlite_path == "/:memory:":
        sqlite_path = ":memory:"
    if not sqlite_path:
        raise StorageBackendError("parse_storage_target", f"Invalid sqlite URI: {kind}")
    if db_path is not None and os.path.abspath(db_path) != os.path.abspath(sqlite_path):
        raise StorageBackendError(
            "parse_storage_target",
            f"Conflicting db_path '{db_path}' and storage URI '{kind}'",
        )
    return StorageTarget(backend="local", uri=kind, db_path=sqlite_path)


def open_storage(
    kind: str,
    *,
    namespace: str = "default",
    db_path: str | None = None,
    jar: MutableMapping[str, str] | None = None,
    session: MemoryStorage | None = None,
) -> StorageBackend:
    """Open a backend for a kind or URI.

    ``session`` and ``jar`` are reused when given, so several stages can
    share one in-memory store or one cookie jar.
    """
    target = parse_storage_target(kind, db_path=db_path)
    logger.debug("Opening %s storage at %s", target.backend, target.uri)
    if target.backend == "local":
        assert target.db_path is not None
        return SqliteStorage(target.db_path)
    if target.backend == "session":
        return session if session is not None else MemoryStorage()
    return CookieStorage(namespace, jar)


__all__ = [
    "BACKEND_KINDS",
    "CookieStorage",
    "MemoryStorage",
    "SqliteStorage",
    "StorageBackend",
    "StorageTarget",
    "open_storage",
    "parse_storage_target",
]
