"""Per-page section layout preferences with schema reconciliation.

A stored layout is a list of ``{id, visible, order}`` triples.  The section
schema ships with the code and changes between releases: sections are
added, renamed, or retired.  Every load therefore reconciles the stored
layout against the current schema with :func:`merge_sections` instead of
trusting either side:

  - sections in the schema but not stored   -> schema default
  - sections in both                        -> schema label, stored
                                               visibility and order
  - sections stored but gone from the schema -> dropped

Mutations (:meth:`PreferenceStore.toggle`, :meth:`PreferenceStore.reorder`,
:meth:`PreferenceStore.reset`) update the in-memory layout first and then
write the whole list back.  A failed write is logged and reported as
``False``; the in-memory layout stays authoritative for the session.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import ValidationError

from src.interfaces.preference_storage import IPreferenceStorage
from src.models.preferences import SectionPreference, StoredSection
from src.utils.errors import PersistenceError
from src.utils.logging import get_logger

logger = get_logger(__name__)


def _parse_stored(entries: Iterable[Any]) -> list[StoredSection]:
    parsed: list[StoredSection] = []
    for entry in entries:
        if isinstance(entry, StoredSection):
            parsed.append(entry)
            continue
        if not isinstance(entry, dict):
            logger.debug("preference_entry_skipped", entry=repr(entry))
            continue
        try:
            parsed.append(StoredSection.model_validate(entry))
        except ValidationError:
            logger.debug("preference_entry_skipped", entry=repr(entry))
    return parsed


def merge_sections(
    persisted: Sequence[StoredSection | dict[str, Any]] | None,
    defaults: Sequence[SectionPreference],
) -> list[SectionPreference]:
    """Reconcile a stored layout with the current default schema.

    Pure function: neither argument is modified.

    Parameters
    ----------
    persisted:
        Stored ``{id, visible, order}`` entries, raw dicts or models.
        Malformed entries are skipped.  ``None`` means nothing stored.
    defaults:
        Current schema in default order.

    Returns
    -------
    list[SectionPreference]
        Exactly one entry per default id, stably sorted by ``order``.
        Orders are carried over as stored and not renumbered.
    """
    if not persisted:
        return sorted(defaults, key=lambda s: s.order)

    by_id: dict[str, StoredSection] = {}
    for entry in _parse_stored(persisted):
        # First occurrence wins if an id was stored twice.
        by_id.setdefault(entry.id, entry)

    merged: list[SectionPreference] = []
    for default in defaults:
        saved = by_id.get(default.id)
        if saved is None:
            merged.append(default)
        else:
            merged.append(
                default.model_copy(update={"visible": saved.visible, "order": saved.order})
            )
    return sorted(merged, key=lambda s: s.order)


class PreferenceStore:
    """Holds and persists the section layout of one page for one owner.

    Parameters
    ----------
    storage:
        Backend the layout is read from and written to.
    owner_id:
        Whose layout this is.  Anonymous visitors share ``"anonymous"``.
    """

    def __init__(self, storage: IPreferenceStorage, owner_id: str = "anonymous") -> None:
        self._storage = storage
        self._owner_id = owner_id
        self._page_id: str | None = None
        self._defaults: list[SectionPreference] = []
        self._sections: list[SectionPreference] = []
        self._loaded = False

    # -- Read side -----------------------------------------------------------

    @property
    def page_id(self) -> str | None:
        return self._page_id

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def sections(self) -> list[SectionPreference]:
        """Current layout, display order."""
        return list(self._sections)

    @property
    def visible_sections(self) -> list[SectionPreference]:
        return [s for s in self._sections if s.visible]

    def is_section_visible(self, section_id: str) -> bool:
        """Visibility of *section_id*.  Unknown ids count as visible."""
        for section in self._sections:
            if section.id == section_id:
                return section.visible
        return True

    def get_section_order(self, section_id: str) -> int:
        """Stored order of *section_id*, or 0 when it is unknown."""
        for section in self._sections:
            if section.id == section_id:
                return section.order
        return 0

    # -- Lifecycle -----------------------------------------------------------

    async def load(
        self,
        page_id: str,
        default_schema: Sequence[SectionPreference],
    ) -> list[SectionPreference]:
        """Read the stored layout for *page_id* and merge it with *default_schema*.

        Unreadable storage yields the defaults; the error is logged, not raised.
        """
        self._page_id = page_id
        self._defaults = list(default_schema)

        persisted: list[Any] | None = None
        try:
            persisted = await self._storage.read(page_id, owner_id=self._owner_id)
        except PersistenceError as exc:
            logger.warning(
                "preference_read_failed",
                page_id=page_id,
                owner_id=self._owner_id,
                provider=self._storage.get_provider_name(),
                error=str(exc),
            )

        self._sections = merge_sections(persisted, self._defaults)
        self._loaded = True
        logger.debug(
            "preferences_loaded",
            page_id=page_id,
            owner_id=self._owner_id,
            stored=persisted is not None,
            sections=len(self._sections),
        )
        return self.sections

    # -- Mutations -----------------------------------------------------------

    async def toggle(self, section_id: str) -> bool:
        """Flip visibility of *section_id* and persist.

        An unknown id leaves the layout unchanged; the layout is still
        written.  Returns whether the write succeeded.
        """
        self._require_loaded()
        self._sections = [
            s.model_copy(update={"visible": not s.visible}) if s.id == section_id else s
            for s in self._sections
        ]
        return await self._persist()

    async def reorder(self, from_index: int, to_index: int) -> bool:
        """Move the section at *from_index* to *to_index* and renumber densely.

        Raises
        ------
        IndexError
            If either index is outside the current layout.
        """
        self._require_loaded()
        size = len(self._sections)
        if not (0 <= from_index < size) or not (0 <= to_index < size):
            raise IndexError(
                f"reorder indices out of range: from={from_index} to={to_index} size={size}"
            )
        reordered = list(self._sections)
        moved = reordered.pop(from_index)
        reordered.insert(to_index, moved)
        self._sections = [s.model_copy(update={"order": i}) for i, s in enumerate(reordered)]
        return await self._persist()

    async def reset(self) -> bool:
        """Replace the layout with the page defaults and persist."""
        self._require_loaded()
        self._sections = sorted(self._defaults, key=lambda s: s.order)
        return await self._persist()

    # -- Internals -----------------------------------------------------------

    def _require_loaded(self) -> None:
        if not self._loaded or self._page_id is None:
            raise RuntimeError("PreferenceStore.load() must be called before mutating")

    async def _persist(self) -> bool:
        entries = [s.to_stored().model_dump() for s in self._sections]
        try:
            await self._storage.write(self._page_id, entries, owner_id=self._owner_id)
        except PersistenceError as exc:
            logger.warning(
                "preference_write_failed",
                page_id=self._page_id,
                owner_id=self._owner_id,
                provider=self._storage.get_provider_name(),
                error=str(exc),
            )
            return False
        logger.debug("preferences_saved", page_id=self._page_id, owner_id=self._owner_id)
        return True
