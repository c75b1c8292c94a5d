"""Abstract base class for the catalog data-access capability.

The personalization core never talks SQL.  Tiers describe what they want
with a :class:`~src.models.candidate.CandidateFilter` and the enricher asks
for performers of many products at once; a concrete adapter turns both
into queries against whatever store backs the catalog.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.candidate import CandidateFilter


class IDataSource(ABC):
    """Contract for catalog queries used by tiers and batch enrichment.

    Both methods are async request/response calls.  Timeouts and retries,
    if any, belong to the implementation.
    """

    @abstractmethod
    async def query_candidates(self, candidate_filter: CandidateFilter) -> list[dict[str, Any]]:
        """Return plain candidate rows matching *candidate_filter*.

        Parameters
        ----------
        candidate_filter:
            Selection, discount threshold, freshness window and row limit.

        Returns
        -------
        list[dict]
            Rows ordered by discount descending.  Each row has ``id``,
            ``normalized_product_id``, ``title``, ``thumbnail_url``,
            ``regular_price``, ``sale_price``, ``discount_percent``,
            ``sale_end_at`` and, for performer-driven filters,
            ``performer_id`` / ``performer_name`` of the matching performer.
            A product may appear once per matching performer.

        Raises
        ------
        DataSourceError
            If the underlying store cannot be queried.
        """

    @abstractmethod
    async def batch_lookup(self, primary_ids: list[int]) -> list[dict[str, Any]]:
        """Return performer rows for many products in one call.

        Parameters
        ----------
        primary_ids:
            Product ids to look up.

        Returns
        -------
        list[dict]
            Rows with ``product_id``, ``id`` and ``name``, in a stable order
            (credit order within each product).

        Raises
        ------
        EnrichmentError
            If the lookup fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
