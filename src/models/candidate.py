"""Recommendation candidate models for the personalization pipeline.

Defines Pydantic v2 models for the items a tier surfaces, the performers
attached to them by batch enrichment, the signal bag tiers read from, and
the final aggregation result.  Candidate-facing models are frozen;
enrichment produces new copies via ``model_copy(update={...})`` instead of
mutating tier output in place.

See src/services/tier_aggregator.py for how these flow together.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# MatchReason: which tier surfaced a candidate.
# ---------------------------------------------------------------------------
class MatchReason(str, Enum):  # noqa: UP042  (StrEnum requires Python 3.11+)
    """Why a candidate was recommended.

    The value is shown to users as a badge, so it also encodes trust:
    an explicit favorite beats inferred history, which beats trending.
    """

    FAVORITE_MATCH = "favorite_match"        # Features a favorite performer
    HISTORY_MATCH = "history_match"          # Shares a performer with recent views
    TRENDING_FALLBACK = "trending_fallback"  # Deep discount, no personal signal


# ---------------------------------------------------------------------------
# PerformerRef: a sub-entity attached by BatchEnricher.
# ---------------------------------------------------------------------------
class PerformerRef(BaseModel):
    """A performer credited on a candidate product."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


# ---------------------------------------------------------------------------
# EnrichmentResult: the output of one BatchEnricher.enrich() call.
# ---------------------------------------------------------------------------
class EnrichmentResult(BaseModel):
    """Performers grouped by product id, plus whether the lookup failed.

    Every requested id is a key; ``failed`` means all lists are empty
    because the batch lookup raised.
    """

    model_config = ConfigDict(frozen=True)

    performers: dict[int, list[PerformerRef]] = Field(default_factory=dict)
    failed: bool = False


# ---------------------------------------------------------------------------
# Candidate: one recommendable product surfaced by a tier.
# ---------------------------------------------------------------------------
class Candidate(BaseModel):
    """A recommendable item with its provenance and display fields.

    ``performers`` is always a list.  It is empty until BatchEnricher runs
    and stays empty when enrichment finds nothing or fails, so callers never
    need a ``None`` check.
    """

    model_config = ConfigDict(frozen=True)

    primary_id: int
    # Orders candidates within a tier (higher first).  For sale tiers this
    # is the discount percentage, so it is left out of serialized output.
    ranking_key: float = Field(default=0.0, exclude=True)
    match_reason: MatchReason
    match_detail: str | None = None
    performers: list[PerformerRef] = Field(default_factory=list)

    normalized_product_id: str | None = None
    title: str = ""
    thumbnail_url: str | None = None
    regular_price: int | None = None
    sale_price: int | None = None
    discount_percent: int = 0
    sale_end_at: str | None = None


# ---------------------------------------------------------------------------
# AggregationContext: the weak signals a request carries.
# ---------------------------------------------------------------------------
class AggregationContext(BaseModel):
    """Signal bag handed to every tier.

    Tiers decide eligibility from these fields alone; an empty list means
    the user has not produced that kind of signal yet.
    """

    model_config = ConfigDict(frozen=True)

    favorite_performer_ids: list[int] = Field(default_factory=list)
    recent_product_ids: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# CandidateFilter: the query passed to IDataSource.query_candidates.
# ---------------------------------------------------------------------------
class CandidateFilter(BaseModel):
    """Declarative query for sale candidates.

    Exactly one of the selection fields is normally set by a tier:

    - ``performer_ids``: sales featuring any of these performers.
    - ``related_to_product_ids``: sales featuring performers who appear in
      these (normalized) products, at most ``related_performer_limit``
      performers considered.
    - ``product_ids``: the given normalized products, sale or not (plain
      batch load for the recently-viewed panel).
    - none of the above: any active sale (trending).
    """

    model_config = ConfigDict(frozen=True)

    performer_ids: list[int] | None = None
    related_to_product_ids: list[str] | None = None
    related_performer_limit: int = 10
    product_ids: list[str] | None = None
    min_discount: int | None = None
    active_sales_only: bool = True
    fresh_within_days: int = 14
    limit: int = Field(default=8, ge=1)


# ---------------------------------------------------------------------------
# AggregationResult: the output of TierAggregator.aggregate().
# ---------------------------------------------------------------------------
class AggregationResult(BaseModel):
    """Ordered, deduplicated, capped and enriched candidates.

    Order is tier priority first, then ranking key within a tier.  The
    bookkeeping fields are for logs and debugging only; the UI decides
    between "empty" and "failed" from whether the call raised.
    """

    model_config = ConfigDict(frozen=True)

    candidates: list[Candidate] = Field(default_factory=list)
    limit: int = 8
    tiers_invoked: list[str] = Field(default_factory=list)
    failed_tiers: list[str] = Field(default_factory=list)
    enrichment_failed: bool = False

    @property
    def primary_ids(self) -> list[int]:
        return [c.primary_id for c in self.candidates]
