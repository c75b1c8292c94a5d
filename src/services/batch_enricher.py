"""Batched performer enrichment for aggregated candidates.

Tiers return bare product rows.  Before a result goes out, every candidate
gets up to N credited performers attached.  Doing that per candidate would
cost one query per product (the classic N+1); this service collects all
ids and issues exactly one ``IDataSource.batch_lookup`` call instead.

Enrichment is best-effort.  If the lookup fails every candidate simply
carries an empty performer list and the primary results still ship.
"""

from __future__ import annotations

from src.interfaces.data_source import IDataSource
from src.models.candidate import Candidate, EnrichmentResult, PerformerRef
from src.utils.logging import get_logger

_DEFAULT_MAX_PER_CANDIDATE = 3


class BatchEnricher:
    """Attaches performer refs to candidates with a single batched lookup."""

    def __init__(self, data_source: IDataSource) -> None:
        self._data_source = data_source
        self._logger = get_logger(__name__)

    async def enrich(
        self,
        candidates: list[Candidate],
        max_per_candidate: int = _DEFAULT_MAX_PER_CANDIDATE,
    ) -> EnrichmentResult:
        """Look up performers for *candidates* and group them by product id.

        Parameters
        ----------
        candidates:
            Already deduplicated candidates.
        max_per_candidate:
            Cap per product, applied in credit order.

        Returns
        -------
        EnrichmentResult
            One ``performers`` entry per candidate id.  Products without
            credits map to an empty list.  When the lookup fails every
            list is empty and ``failed`` is set.  Nothing is kept on the
            enricher between calls.
        """
        ids = [c.primary_id for c in candidates]
        grouped: dict[int, list[PerformerRef]] = {pid: [] for pid in ids}
        if not ids:
            return EnrichmentResult(performers=grouped)

        try:
            rows = await self._data_source.batch_lookup(ids)
        except Exception as exc:
            self._logger.warning(
                "enrichment_failed",
                candidate_count=len(ids),
                provider=self._data_source.get_provider_name(),
                error=str(exc),
            )
            return EnrichmentResult(performers=grouped, failed=True)

        seen: dict[int, set[int]] = {pid: set() for pid in ids}
        for row in rows:
            owner = row.get("product_id")
            bucket = grouped.get(owner)
            # Rows for ids we did not ask about are ignored.
            if bucket is None or len(bucket) >= max_per_candidate:
                continue
            performer_id = row.get("id")
            if performer_id in seen[owner]:
                continue
            seen[owner].add(performer_id)
            bucket.append(PerformerRef(id=performer_id, name=row.get("name") or ""))

        self._logger.debug(
            "enrichment_complete",
            candidate_count=len(ids),
            row_count=len(rows),
            enriched=sum(1 for refs in grouped.values() if refs),
        )
        return EnrichmentResult(performers=grouped)

    @staticmethod
    def apply(
        candidates: list[Candidate],
        performers_by_id: dict[int, list[PerformerRef]],
    ) -> list[Candidate]:
        """Return copies of *candidates* with their performer lists filled in."""
        return [
            c.model_copy(update={"performers": list(performers_by_id.get(c.primary_id, []))})
            for c in candidates
        ]
