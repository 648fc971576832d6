"""Named race configuration storage for the pit strategy optimizer.

Keeps full RaceConfig payloads in a small SQLite database so users can save
a setup under a name and reload it later. The optimizer core never touches
this store.

Author: João Pedro Cunha
"""

import json
import logging
import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional, Union

from pitstrategy.config import DEFAULT_CONFIG
from pitstrategy.errors import ConfigNotFound, ConfigStoreError, DuplicateConfigName

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS saved_configs (
    name TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    created_at INTEGER NOT NULL
)
"""


@dataclass
class SavedConfig:
    """A stored configuration and its creation time (ms since epoch)."""

    name: str
    created_at: int
    config: Optional[dict] = None


class ConfigStore:
    """SQLite-backed store of named race configurations."""

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path) if path is not None else DEFAULT_CONFIG.store_path
        self.path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute(SCHEMA)

        logger.debug(f"Config store ready at: {self.path}")

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success and always close it."""
        conn = sqlite3.connect(self.path)
        try:
            conn.execute("PRAGMA journal_mode = WAL")
            with conn:
                yield conn
        finally:
            conn.close()

    def save(self, name: str, config: Optional[Mapping[str, Any]]) -> SavedConfig:
        """Store ``config`` under ``name``.

        Raises:
            ConfigStoreError: If the name is blank
            DuplicateConfigName: If the name is already taken
        """
        if not isinstance(name, str) or not name.strip():
            raise ConfigStoreError("Invalid name")

        name = name.strip()
        payload = json.dumps(dict(config or {}))
        created_at = int(time.time() * 1000)

        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO saved_configs (name, data, created_at) VALUES (?, ?, ?)",
                    (name, payload, created_at),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateConfigName(f"Name already exists: {name}") from e

        logger.info(f"Saved config '{name}'")
        return SavedConfig(name=name, created_at=created_at)

    def list(self) -> list[SavedConfig]:
        """Metadata of all saved configurations, most recent first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT name, created_at FROM saved_configs ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
        return [SavedConfig(name=name, created_at=int(created_at or 0)) for name, created_at in rows]

    def get(self, name: str) -> SavedConfig:
        """Full configuration stored under ``name``.

        Raises:
            ConfigNotFound: If nothing is stored under the name
        """
        with self._connect() as conn:
            row = conn.execute(
                "SELECT name, data, created_at FROM saved_configs WHERE name = ?",
                (name.strip(),),
            ).fetchone()

        if row is None:
            raise ConfigNotFound(f"No saved config named '{name}'")

        stored_name, data, created_at = row
        try:
            config = json.loads(data)
        except json.JSONDecodeError:
            logger.error(f"Stored config '{stored_name}' is not valid JSON")
            config = {}

        return SavedConfig(name=stored_name, created_at=int(created_at or 0), config=config)

    def delete(self, name: str) -> bool:
        """Remove ``name``; returns True if something was deleted."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM saved_configs WHERE name = ?", (name.strip(),))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info(f"Deleted config '{name}'")
        return deleted
