"""Tiered candidate aggregation with shared deduplication.

Turns an ordered list of tiers into one capped, deduplicated result:

    seen = {}            result = []
    for tier in tiers:
        stop if result is full
        skip if tier is ineligible
        rows  = tier.fetch(context, remaining + tier.slot_overfetch)
        rows  = stable-sort rows by ranking key, descending
        for row in rows:
            append if row.id not in seen, mark seen, stop at limit
    enrich(result)       # one batched lookup

Tier order is trust order.  A later tier never displaces or precedes an
earlier one, even with a higher ranking key; the key only orders
candidates inside their own tier.

Tiers run one after another, never concurrently: the slot count a tier
receives depends on how many the previous tiers actually contributed.

Failure policy
--------------
A tier that raises contributes nothing and aggregation moves on, so one
broken signal source cannot blank the whole panel.  When every invoked
tier failed, or no tier was eligible at all, :meth:`TierAggregator.aggregate`
raises :class:`~src.utils.errors.DataSourceError`.  Enrichment failures never
raise (see src/services/batch_enricher.py).
"""

from __future__ import annotations

from collections.abc import Sequence

from src.models.candidate import AggregationContext, AggregationResult, Candidate
from src.services.batch_enricher import BatchEnricher
from src.services.tiers import Tier
from src.utils.errors import DataSourceError
from src.utils.logging import get_logger

_DEFAULT_LIMIT = 8
_DEFAULT_MAX_SUB_ENTITIES = 3


class TierAggregator:
    """Runs tiers in priority order against a shared dedup set.

    Parameters
    ----------
    enricher:
        Optional batch enricher.  When omitted, candidates keep the empty
        performer lists the tiers gave them.
    max_sub_entities:
        Performers attached per candidate by the enricher.
    """

    def __init__(
        self,
        enricher: BatchEnricher | None = None,
        max_sub_entities: int = _DEFAULT_MAX_SUB_ENTITIES,
    ) -> None:
        self._enricher = enricher
        self._max_sub_entities = max_sub_entities
        self._logger = get_logger(__name__)

    async def aggregate(
        self,
        context: AggregationContext,
        tiers: Sequence[Tier],
        limit: int = _DEFAULT_LIMIT,
    ) -> AggregationResult:
        """Collect up to *limit* distinct candidates from *tiers*.

        Parameters
        ----------
        context:
            Signals every tier reads from.
        tiers:
            Tiers in priority order.  Must not be empty.
        limit:
            Maximum result size.  Must be positive.

        Returns
        -------
        AggregationResult
            ``min(limit, distinct candidates available)`` enriched
            candidates in tier order, then ranking order.

        Raises
        ------
        ValueError
            If *tiers* is empty or *limit* is not positive.
        DataSourceError
            If no tier was eligible, or every invoked tier failed.
        """
        if not tiers:
            raise ValueError("aggregate() needs at least one tier")
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        seen: set[int] = set()
        result: list[Candidate] = []
        invoked: list[str] = []
        failed: list[str] = []
        last_error: Exception | None = None

        for tier in tiers:
            if len(result) >= limit:
                self._logger.debug("tier_skipped_limit_reached", tier=tier.name)
                break
            if not tier.is_eligible(context):
                self._logger.debug("tier_ineligible", tier=tier.name)
                continue

            remaining = limit - len(result)
            invoked.append(tier.name)
            try:
                fetched = await tier.fetch(context, remaining + tier.slot_overfetch)
            except Exception as exc:
                failed.append(tier.name)
                last_error = exc
                self._logger.warning(
                    "tier_fetch_failed",
                    tier=tier.name,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                continue

            # sorted() is stable, so equal keys keep the tier's own order.
            ranked = sorted(fetched, key=tier.sort_key, reverse=True)
            added = 0
            for candidate in ranked:
                if len(result) >= limit:
                    break
                if candidate.primary_id in seen:
                    continue
                seen.add(candidate.primary_id)
                result.append(candidate)
                added += 1

            self._logger.debug(
                "tier_merged",
                tier=tier.name,
                requested=remaining + tier.slot_overfetch,
                fetched=len(fetched),
                added=added,
                total=len(result),
            )

        if not invoked:
            raise DataSourceError(
                message=(
                    f"No eligible candidate tier among {len(tiers)} "
                    f"({', '.join(t.name for t in tiers)})"
                ),
            )
        if len(failed) == len(invoked):
            raise DataSourceError(
                message=(
                    f"All {len(invoked)} candidate tiers failed "
                    f"({', '.join(failed)}): {last_error}"
                ),
            )

        enrichment_failed = False
        if self._enricher is not None and result:
            enrichment = await self._enricher.enrich(result, self._max_sub_entities)
            enrichment_failed = enrichment.failed
            result = BatchEnricher.apply(result, enrichment.performers)

        self._logger.info(
            "aggregation_complete",
            limit=limit,
            total=len(result),
            tiers_invoked=invoked,
            failed_tiers=failed,
            enrichment_failed=enrichment_failed,
        )
        return AggregationResult(
            candidates=result,
            limit=limit,
            tiers_invoked=invoked,
            failed_tiers=failed,
            enrichment_failed=enrichment_failed,
        )
