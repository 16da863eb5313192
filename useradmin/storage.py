"""SQLite-backed key/value storage for client-side state."""
from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import List, Optional


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_storage_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the local storage database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "useradmin.sqlite3").resolve(strict=False)


class LocalStorage:
    """Durable string key/value store that survives restarts.

    Mirrors the small surface of a browser's ``localStorage``: values are
    always strings and missing keys read as ``None``.
    """

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path
        self.initialize()

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the storage table if it does not already exist."""

        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS local_storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def get_item(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM local_storage WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        return str(row["value"])

    def set_item(self, key: str, value: str) -> None:
        if not key:
            raise ValueError("Storage key must not be empty")
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO local_storage (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, str(value)),
            )

    def remove_item(self, key: str) -> bool:
        """Delete ``key`` and report whether it was present."""

        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM local_storage WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def keys(self) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT key FROM local_storage ORDER BY key").fetchall()
        return [str(row["key"]) for row in rows]

    def clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM local_storage")


__all__ = ["LocalStorage", "resolve_storage_path"]
