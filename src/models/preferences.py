"""Section layout preference models.

A page is a vertical stack of named sections ("sale", "recently-viewed",
"recommendations", ...).  Users may hide sections and reorder them; the
layout is persisted per page and merged with the current default schema on
every load (see src/services/preference_store.py).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SectionPreference(BaseModel):
    """One row of a page layout as the UI sees it."""

    model_config = ConfigDict(frozen=True)

    # Stable key, never translated (e.g. "sale").
    id: str
    # Display label, always taken from the current default schema.
    label: str
    visible: bool = True
    order: int = 0

    def to_stored(self) -> StoredSection:
        return StoredSection(id=self.id, visible=self.visible, order=self.order)


class StoredSection(BaseModel):
    """The persisted triple.  Labels are not stored so renamed or
    re-translated labels take effect without a migration."""

    model_config = ConfigDict(frozen=True)

    id: str
    visible: bool = True
    order: int = 0
