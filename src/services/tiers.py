"""Candidate-producing tiers for the "sales for you" aggregation.

A tier is one cascading priority stage.  The aggregator walks tiers in
order and each tier only fills the slots the earlier ones left open:

  1. FavoritePerformerTier  (favorite_match)
       Active sales featuring a performer the user marked as favorite.
       Highest trust: an explicit signal.
  2. RecentHistoryTier      (history_match)
       Active sales featuring performers who appear in the user's recently
       viewed products.  Inferred signal.
  3. TrendingTier           (trending_fallback)
       Deep discounts for everyone.  Always eligible, so a user with no
       signals still gets a full panel.  Over-fetches a few rows because
       some of them are usually already claimed by tiers 1-2.

Tiers only translate signals into a CandidateFilter and rows into
Candidates.  Deduplication, capping and ordering across tiers are the
aggregator's job (src/services/tier_aggregator.py).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.interfaces.data_source import IDataSource
from src.models.candidate import AggregationContext, Candidate, CandidateFilter, MatchReason

_DEFAULT_FRESHNESS_DAYS = 14


def row_to_candidate(row: dict[str, Any], match_reason: MatchReason) -> Candidate:
    """Map a catalog sale row to a Candidate ranked by its discount."""
    discount = int(row.get("discount_percent") or 0)
    return Candidate(
        primary_id=int(row["id"]),
        ranking_key=float(discount),
        match_reason=match_reason,
        match_detail=row.get("performer_name"),
        normalized_product_id=row.get("normalized_product_id"),
        title=row.get("title") or "",
        thumbnail_url=row.get("thumbnail_url"),
        regular_price=row.get("regular_price"),
        sale_price=row.get("sale_price"),
        discount_percent=discount,
        sale_end_at=row.get("sale_end_at"),
    )


class Tier(ABC):
    """One priority stage of the aggregation.

    Subclasses set ``name`` and implement :meth:`fetch`.  The aggregator
    never calls :meth:`fetch` when :meth:`is_eligible` is false or when no
    slots remain.
    """

    name: str = "tier"

    def __init__(self, slot_overfetch: int = 0) -> None:
        if slot_overfetch < 0:
            raise ValueError(f"slot_overfetch must be >= 0, got {slot_overfetch}")
        self.slot_overfetch = slot_overfetch

    def is_eligible(self, context: AggregationContext) -> bool:
        return True

    @abstractmethod
    async def fetch(self, context: AggregationContext, slots: int) -> list[Candidate]:
        """Return up to roughly *slots* candidates for *context*.

        May return more or fewer; the aggregator sorts, dedups and caps.
        May raise, in which case the aggregator treats this tier as empty.
        """

    def sort_key(self, candidate: Candidate) -> float:
        """Within-tier ranking value, applied in descending order."""
        return candidate.ranking_key

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, slot_overfetch={self.slot_overfetch})"


class _SaleTier(Tier):
    """Shared plumbing for tiers that read active sales from the catalog."""

    match_reason: MatchReason

    def __init__(
        self,
        data_source: IDataSource,
        fresh_within_days: int = _DEFAULT_FRESHNESS_DAYS,
        slot_overfetch: int = 0,
    ) -> None:
        super().__init__(slot_overfetch=slot_overfetch)
        self._data_source = data_source
        self._fresh_within_days = fresh_within_days

    async def _query(self, candidate_filter: CandidateFilter) -> list[Candidate]:
        rows = await self._data_source.query_candidates(candidate_filter)
        return [row_to_candidate(row, self.match_reason) for row in rows]


class FavoritePerformerTier(_SaleTier):
    """Sales featuring one of the user's favorite performers."""

    name = "favorite_performers"
    match_reason = MatchReason.FAVORITE_MATCH

    def is_eligible(self, context: AggregationContext) -> bool:
        return bool(context.favorite_performer_ids)

    async def fetch(self, context: AggregationContext, slots: int) -> list[Candidate]:
        return await self._query(
            CandidateFilter(
                performer_ids=list(context.favorite_performer_ids),
                fresh_within_days=self._fresh_within_days,
                limit=slots,
            )
        )


class RecentHistoryTier(_SaleTier):
    """Sales sharing a performer with the user's recently viewed products."""

    name = "recent_history"
    match_reason = MatchReason.HISTORY_MATCH

    def __init__(
        self,
        data_source: IDataSource,
        fresh_within_days: int = _DEFAULT_FRESHNESS_DAYS,
        performer_limit: int = 10,
    ) -> None:
        super().__init__(data_source, fresh_within_days=fresh_within_days)
        self._performer_limit = performer_limit

    def is_eligible(self, context: AggregationContext) -> bool:
        return bool(context.recent_product_ids)

    async def fetch(self, context: AggregationContext, slots: int) -> list[Candidate]:
        return await self._query(
            CandidateFilter(
                related_to_product_ids=list(context.recent_product_ids),
                related_performer_limit=self._performer_limit,
                fresh_within_days=self._fresh_within_days,
                limit=slots,
            )
        )


class TrendingTier(_SaleTier):
    """Deep-discount fallback that needs no personal signal."""

    name = "trending"
    match_reason = MatchReason.TRENDING_FALLBACK

    def __init__(
        self,
        data_source: IDataSource,
        fresh_within_days: int = _DEFAULT_FRESHNESS_DAYS,
        min_discount: int = 30,
        slot_overfetch: int = 5,
    ) -> None:
        super().__init__(data_source, fresh_within_days=fresh_within_days, slot_overfetch=slot_overfetch)
        self._min_discount = min_discount

    async def fetch(self, context: AggregationContext, slots: int) -> list[Candidate]:
        return await self._query(
            CandidateFilter(
                min_discount=self._min_discount,
                fresh_within_days=self._fresh_within_days,
                limit=slots,
            )
        )
