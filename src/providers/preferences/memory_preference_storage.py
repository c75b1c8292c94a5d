"""In-process preference storage.

Keeps layouts in a dict for the lifetime of the process.  Suitable for the
CLI, tests, and single-process development servers.  Payloads are copied
through JSON on the way in and out so callers can never mutate stored
state by holding on to a list.
"""

from __future__ import annotations

import json
from typing import Any

from src.interfaces.preference_storage import IPreferenceStorage


class MemoryPreferenceStorage(IPreferenceStorage):
    """Dict-backed preference storage keyed by ``(owner_id, page_id)``."""

    def __init__(self) -> None:
        self._payloads: dict[tuple[str, str], str] = {}

    async def initialize(self) -> None:
        return None

    async def read(self, page_id: str, owner_id: str = "anonymous") -> list[dict[str, Any]] | None:
        raw = self._payloads.get((owner_id, page_id))
        return json.loads(raw) if raw is not None else None

    async def write(
        self,
        page_id: str,
        entries: list[dict[str, Any]],
        owner_id: str = "anonymous",
    ) -> None:
        self._payloads[(owner_id, page_id)] = json.dumps(entries)

    def get_provider_name(self) -> str:
        return "memory_preferences"
