"""Fetch functions for the lazy panels on the storefront pages.

Each factory binds one panel's inputs and returns the zero-argument
coroutine function a LazySectionController expects, together with the
stable key derived from those inputs.  Two panels built from equal inputs
get equal keys, so ``controller.set_key(*make_...())`` only refetches when
something actually changed.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from src.pipeline.lazy_section import FetchFn
from src.services.recommendation_service import ForYouService


def panel_key(*parts: Sequence[Any] | Any) -> str:
    """Build a stable key from panel inputs (order-sensitive).

    Parts are JSON-encoded, so separators inside values cannot make two
    different input sets collide.  Tuples encode like lists.
    """
    return json.dumps(list(parts), ensure_ascii=False, separators=(",", ":"), default=str)


def make_for_you_fetcher(
    service: ForYouService,
    favorite_ids: Sequence[Any],
    recent_ids: Sequence[str],
    limit: int | None = None,
) -> tuple[str, FetchFn]:
    """Return ``(key, fetch)`` for the sales-for-you panel."""
    favorites = list(favorite_ids)
    recent = list(recent_ids)

    async def fetch() -> list[Any]:
        result = await service.recommend(favorites, recent, limit)
        return list(result.candidates)

    return panel_key("for-you", favorites, recent, limit), fetch


def make_recently_viewed_fetcher(
    service: ForYouService,
    product_ids: Sequence[str],
) -> tuple[str, FetchFn]:
    """Return ``(key, fetch)`` for the recently-viewed panel."""
    ids = list(product_ids)

    async def fetch() -> list[Any]:
        return await service.recently_viewed(ids)

    return panel_key("recently-viewed", ids), fetch
