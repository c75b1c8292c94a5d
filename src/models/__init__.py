"""Domain models: re-exports all public model classes.

Submodules by concern:
    - candidate.py  : Tier output, enrichment refs, aggregation context/result
    - panel.py      : Lazy panel fetch state machine
    - preferences.py: Per-page section layout preferences

Import from ``src.models`` directly (``from src.models import Candidate``).
If you add a new model class, add it to ``__all__`` too.
"""

from __future__ import annotations

from src.models.candidate import (
    AggregationContext,
    AggregationResult,
    Candidate,
    CandidateFilter,
    EnrichmentResult,
    MatchReason,
    PerformerRef,
)
from src.models.panel import PanelFetchState, PanelStatus
from src.models.preferences import SectionPreference, StoredSection

__all__ = [
    "AggregationContext",
    "AggregationResult",
    "Candidate",
    "CandidateFilter",
    "EnrichmentResult",
    "MatchReason",
    "PanelFetchState",
    "PanelStatus",
    "PerformerRef",
    "SectionPreference",
    "StoredSection",
]
