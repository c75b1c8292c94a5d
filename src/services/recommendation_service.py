"""Sales-for-you recommendation service.

Wires the three sale tiers to a TierAggregator and exposes one call,
:meth:`ForYouService.recommend`, that the HTTP route, the CLI and the
panel fetchers all share.

Input handling mirrors what the storefront sends:

- favorite performer ids arrive as raw strings from a comma list; anything
  that is not an integer is dropped silently,
- recent product ids are capped to the first ``recent_ids_cap`` entries
  (most recent first), duplicates removed,
- ``limit`` is clamped into ``[1, max_limit]``.

The tiers themselves are built once per service from the tier tunables in
``config/config.yaml`` (``recommendations:`` block).
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from src.interfaces.data_source import IDataSource
from src.models.candidate import (
    AggregationContext,
    AggregationResult,
    Candidate,
    CandidateFilter,
    MatchReason,
)
from src.services.batch_enricher import BatchEnricher
from src.services.tier_aggregator import TierAggregator
from src.services.tiers import (
    FavoritePerformerTier,
    RecentHistoryTier,
    Tier,
    TrendingTier,
    row_to_candidate,
)
from src.utils.logging import get_logger

_DEFAULTS: dict[str, int] = {
    "default_limit": 8,
    "max_limit": 50,
    "trending_slot_overfetch": 5,
    "trending_min_discount": 30,
    "sale_freshness_days": 14,
    "history_performer_limit": 10,
    "max_performers_per_candidate": 3,
    "recent_ids_cap": 10,
}


def parse_performer_ids(raw: Iterable[Any]) -> list[int]:
    """Keep the entries of *raw* that parse as integers, in order, once each."""
    ids: list[int] = []
    for value in raw:
        try:
            parsed = int(str(value).strip())
        except ValueError:
            continue
        if parsed not in ids:
            ids.append(parsed)
    return ids


def cap_recent_ids(raw: Iterable[str], cap: int) -> list[str]:
    """Return the first *cap* distinct, non-blank product ids from *raw*."""
    ids: list[str] = []
    for value in raw:
        value = value.strip()
        if value and value not in ids:
            ids.append(value)
        if len(ids) >= cap:
            break
    return ids


def split_csv(raw: str | None) -> list[str]:
    """Split a comma-separated query value, ignoring blanks."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


class ForYouService:
    """Builds the personalized sale panel for one user context.

    Parameters
    ----------
    data_source:
        Catalog the tiers and the enricher read from.
    options:
        Tier tunables (see ``_DEFAULTS`` for keys).  Missing keys fall back
        to the defaults.
    """

    def __init__(
        self,
        data_source: IDataSource,
        options: dict[str, int] | None = None,
    ) -> None:
        self._data_source = data_source
        self._options = {**_DEFAULTS, **(options or {})}
        self._logger = get_logger(__name__)
        self._enricher = BatchEnricher(data_source)
        self._aggregator = TierAggregator(
            enricher=self._enricher,
            max_sub_entities=self._options["max_performers_per_candidate"],
        )
        self._tiers = self._build_tiers()

    @property
    def default_limit(self) -> int:
        return self._options["default_limit"]

    @property
    def max_limit(self) -> int:
        return self._options["max_limit"]

    @property
    def recent_ids_cap(self) -> int:
        return self._options["recent_ids_cap"]

    @property
    def tiers(self) -> list[Tier]:
        return list(self._tiers)

    @property
    def enricher(self) -> BatchEnricher:
        return self._enricher

    def clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            return self.default_limit
        return max(1, min(limit, self.max_limit))

    async def recommend(
        self,
        favorite_ids: Iterable[Any] = (),
        recent_ids: Iterable[str] = (),
        limit: int | None = None,
    ) -> AggregationResult:
        """Aggregate favorite, history and trending sales for one request.

        Parameters
        ----------
        favorite_ids:
            Favorite performer ids.  Non-numeric entries are ignored.
        recent_ids:
            Recently viewed normalized product ids, most recent first.
        limit:
            Requested result size; ``None`` uses the configured default.

        Returns
        -------
        AggregationResult
            The aggregated candidates.

        Raises
        ------
        DataSourceError
            If every invoked tier failed.
        """
        context = AggregationContext(
            favorite_performer_ids=parse_performer_ids(favorite_ids),
            recent_product_ids=cap_recent_ids(recent_ids, self.recent_ids_cap),
        )
        effective_limit = self.clamp_limit(limit)
        self._logger.info(
            "for_you_requested",
            favorites=len(context.favorite_performer_ids),
            recent=len(context.recent_product_ids),
            limit=effective_limit,
        )
        return await self._aggregator.aggregate(context, self._tiers, effective_limit)

    async def recently_viewed(self, product_ids: Iterable[str]) -> list[Candidate]:
        """Plain batch load of recently viewed products, in the requested order.

        Products without a live sale are included.  Unknown ids are skipped.
        Performers are attached with the same single batched lookup the
        aggregation uses.
        """
        ids = cap_recent_ids(product_ids, self.recent_ids_cap)
        if not ids:
            return []
        rows = await self._data_source.query_candidates(
            CandidateFilter(
                product_ids=ids,
                active_sales_only=False,
                fresh_within_days=self._options["sale_freshness_days"],
                limit=len(ids),
            )
        )
        by_product = {row.get("normalized_product_id"): row for row in rows}
        candidates = [
            row_to_candidate(by_product[pid], MatchReason.HISTORY_MATCH)
            for pid in ids
            if pid in by_product
        ]
        enrichment = await self._enricher.enrich(
            candidates, self._options["max_performers_per_candidate"]
        )
        self._logger.info(
            "recently_viewed_loaded",
            requested=len(ids),
            found=len(candidates),
            enrichment_failed=enrichment.failed,
        )
        return BatchEnricher.apply(candidates, enrichment.performers)

    def _build_tiers(self) -> list[Tier]:
        opts = self._options
        freshness = opts["sale_freshness_days"]
        return [
            FavoritePerformerTier(self._data_source, fresh_within_days=freshness),
            RecentHistoryTier(
                self._data_source,
                fresh_within_days=freshness,
                performer_limit=opts["history_performer_limit"],
            ),
            TrendingTier(
                self._data_source,
                fresh_within_days=freshness,
                min_discount=opts["trending_min_discount"],
                slot_overfetch=opts["trending_slot_overfetch"],
            ),
        ]
