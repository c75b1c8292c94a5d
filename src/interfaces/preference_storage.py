"""Abstract base class for section preference storage.

Stores one whole layout per ``(owner, page)`` pair.  Writes always replace
the full list, which keeps concurrent tabs from interleaving partial
updates (last writer wins).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IPreferenceStorage(ABC):
    """Contract for persisting per-page section layouts."""

    @abstractmethod
    async def read(self, page_id: str, owner_id: str = "anonymous") -> list[dict[str, Any]] | None:
        """Return the stored ``{id, visible, order}`` list, or ``None`` if nothing is stored.

        Raises
        ------
        PersistenceError
            If the backend cannot be read or the payload is corrupt.
        """

    @abstractmethod
    async def write(
        self,
        page_id: str,
        entries: list[dict[str, Any]],
        owner_id: str = "anonymous",
    ) -> None:
        """Replace the stored layout for the page with *entries*.

        Raises
        ------
        PersistenceError
            If the write fails.
        """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/files if they don't exist.  Called at startup."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
