"""Unit tests for the sale tiers."""

from __future__ import annotations

import pytest

from src.models.candidate import AggregationContext, MatchReason
from src.services.tiers import (
    FavoritePerformerTier,
    RecentHistoryTier,
    TrendingTier,
    row_to_candidate,
)
from tests.conftest import FakeCatalog


class TestEligibility:
    def test_favorite_tier_needs_favorites(self, fake_catalog: FakeCatalog) -> None:
        tier = FavoritePerformerTier(fake_catalog)
        assert tier.is_eligible(AggregationContext()) is False
        assert tier.is_eligible(AggregationContext(favorite_performer_ids=[1])) is True

    def test_history_tier_needs_recent_ids(self, fake_catalog: FakeCatalog) -> None:
        tier = RecentHistoryTier(fake_catalog)
        assert tier.is_eligible(AggregationContext()) is False
        assert tier.is_eligible(AggregationContext(recent_product_ids=["X-1"])) is True

    def test_trending_always_eligible(self, fake_catalog: FakeCatalog) -> None:
        assert TrendingTier(fake_catalog).is_eligible(AggregationContext()) is True

    def test_negative_overfetch_rejected(self, fake_catalog: FakeCatalog) -> None:
        with pytest.raises(ValueError):
            TrendingTier(fake_catalog, slot_overfetch=-1)


class TestFilters:
    @pytest.mark.asyncio
    async def test_favorite_filter(self, fake_catalog: FakeCatalog) -> None:
        tier = FavoritePerformerTier(fake_catalog, fresh_within_days=7)

        await tier.fetch(AggregationContext(favorite_performer_ids=[3, 4]), slots=6)

        [f] = fake_catalog.queries
        assert f.performer_ids == [3, 4]
        assert f.fresh_within_days == 7
        assert f.limit == 6

    @pytest.mark.asyncio
    async def test_history_filter(self, fake_catalog: FakeCatalog) -> None:
        tier = RecentHistoryTier(fake_catalog, performer_limit=4)

        await tier.fetch(AggregationContext(recent_product_ids=["A-1", "B-2"]), slots=3)

        [f] = fake_catalog.queries
        assert f.related_to_product_ids == ["A-1", "B-2"]
        assert f.related_performer_limit == 4
        assert f.limit == 3

    @pytest.mark.asyncio
    async def test_trending_filter(self, fake_catalog: FakeCatalog) -> None:
        tier = TrendingTier(fake_catalog, min_discount=40)

        await tier.fetch(AggregationContext(), slots=9)

        [f] = fake_catalog.queries
        assert f.min_discount == 40
        assert f.performer_ids is None
        assert f.related_to_product_ids is None


class TestHistoryTier:
    @pytest.mark.asyncio
    async def test_finds_sales_sharing_a_performer(self, worked_example_catalog: FakeCatalog) -> None:
        tier = RecentHistoryTier(worked_example_catalog)

        candidates = await tier.fetch(AggregationContext(recent_product_ids=["AAA-012"]), slots=10)

        assert {c.primary_id for c in candidates} == {10, 11, 12}
        assert all(c.match_reason == MatchReason.HISTORY_MATCH for c in candidates)


class TestRowMapping:
    def test_discount_becomes_ranking_key(self) -> None:
        row = {
            "id": 5,
            "normalized_product_id": "ABC-5",
            "title": "Title",
            "discount_percent": 42,
            "performer_name": "Aoi",
            "regular_price": 2000,
            "sale_price": 1160,
        }

        candidate = row_to_candidate(row, MatchReason.FAVORITE_MATCH)

        assert candidate.primary_id == 5
        assert candidate.ranking_key == 42.0
        assert candidate.match_detail == "Aoi"
        assert candidate.performers == []

    def test_missing_discount_defaults_to_zero(self) -> None:
        candidate = row_to_candidate({"id": 1}, MatchReason.TRENDING_FALLBACK)

        assert candidate.discount_percent == 0
        assert candidate.match_detail is None
