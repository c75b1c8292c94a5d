"""Lazy panel state models.

PanelFetchState is the snapshot a LazySectionController exposes to the UI.
It is immutable; every transition produces a new copy via
``model_copy(update={...})`` so listeners can keep references to earlier
snapshots safely.

State machine::

    IDLE ──expand──> LOADING ──ok──> READY
                        │
                        └──fail──> ERROR ──retry──> RETRYING ──ok──> READY
                                     ^                  │
                                     └──────fail────────┘

READY and ERROR go back to LOADING only through ``retry()`` (ERROR) or a
changed input key, never on their own.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class PanelStatus(str, Enum):  # noqa: UP042  (StrEnum requires Python 3.11+)
    """Render states of a lazily loaded panel."""

    IDLE = "idle"          # Never expanded (or input key changed while collapsed)
    LOADING = "loading"    # First fetch in flight
    READY = "ready"        # Fetch succeeded; data may be empty
    ERROR = "error"        # Fetch failed; retry button shown
    RETRYING = "retrying"  # Retry in flight; retry button disabled with spinner


class PanelFetchState(BaseModel):
    """Snapshot of one panel's fetch lifecycle."""

    model_config = ConfigDict(frozen=True)

    status: PanelStatus = PanelStatus.IDLE
    data: list[Any] | None = None
    error: str | None = None
    # Bumped on every retry; lets render layers key effects on it.
    attempt: int = 0
    key: str = ""

    @property
    def is_loading(self) -> bool:
        return self.status in (PanelStatus.LOADING, PanelStatus.RETRYING)

    @property
    def is_suppressed(self) -> bool:
        """True when the panel loaded fine but has nothing to show.

        The caller renders nothing at all in this case.  An ERROR state is
        never suppressed: the retry UI must stay visible.
        """
        return self.status == PanelStatus.READY and not self.data
