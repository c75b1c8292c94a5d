"""SQLite-backed section preference storage.

Persists one JSON layout per ``(owner_id, page_id)`` at
``data/preferences.db``.  Every write replaces the whole payload, so two
tabs saving at once can only ever produce one tab's complete layout
(last writer wins), never a mix of both.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.preference_storage import IPreferenceStorage
from src.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/preferences.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS section_preferences (
    owner_id     TEXT NOT NULL,
    page_id      TEXT NOT NULL,
    payload_json TEXT NOT NULL,
    updated_at   TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    PRIMARY KEY (owner_id, page_id)
);
"""

_UPSERT_SQL = """\
INSERT INTO section_preferences (owner_id, page_id, payload_json)
VALUES (?, ?, ?)
ON CONFLICT(owner_id, page_id)
DO UPDATE SET payload_json = excluded.payload_json,
              updated_at   = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_SQL = "SELECT payload_json FROM section_preferences WHERE owner_id = ? AND page_id = ?;"


class SQLitePreferenceStorage(IPreferenceStorage):
    """SQLite-backed preference persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the preferences table if it doesn't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            await db.commit()
        logger.info("preferences_db_initialized", path=str(self._db_path))

    async def read(self, page_id: str, owner_id: str = "anonymous") -> list[dict[str, Any]] | None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(_SELECT_SQL, (owner_id, page_id))
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Failed to read preferences for page {page_id!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if row is None:
            return None
        try:
            payload = json.loads(row[0])
        except json.JSONDecodeError as exc:
            raise PersistenceError(
                message=f"Stored preferences for page {page_id!r} are not valid JSON",
                provider_name=self.get_provider_name(),
            ) from exc
        if not isinstance(payload, list):
            raise PersistenceError(
                message=f"Stored preferences for page {page_id!r} are not a list",
                provider_name=self.get_provider_name(),
            )
        return payload

    async def write(
        self,
        page_id: str,
        entries: list[dict[str, Any]],
        owner_id: str = "anonymous",
    ) -> None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_UPSERT_SQL, (owner_id, page_id, json.dumps(entries)))
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Failed to write preferences for page {page_id!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("preferences_written", owner_id=owner_id, page_id=page_id, sections=len(entries))

    def get_provider_name(self) -> str:
        return "sqlite_preferences"
