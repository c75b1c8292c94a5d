"""Unit tests for BatchEnricher."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.data_source import IDataSource
from src.models.candidate import PerformerRef
from src.services.batch_enricher import BatchEnricher
from src.utils.errors import EnrichmentError
from tests.conftest import make_candidate


def _source(rows: list[dict] | None = None, error: Exception | None = None) -> MagicMock:
    source = MagicMock(spec=IDataSource)
    source.batch_lookup = AsyncMock(return_value=rows or [], side_effect=error)
    source.get_provider_name.return_value = "mock_catalog"
    return source


class TestEnrich:
    @pytest.mark.asyncio
    async def test_one_batch_call_for_many_candidates(self) -> None:
        source = _source()
        candidates = [make_candidate(i) for i in range(1, 9)]

        await BatchEnricher(source).enrich(candidates)

        source.batch_lookup.assert_awaited_once_with(list(range(1, 9)))

    @pytest.mark.asyncio
    async def test_groups_and_caps_in_credit_order(self) -> None:
        rows = [
            {"product_id": 1, "id": 10, "name": "A"},
            {"product_id": 1, "id": 11, "name": "B"},
            {"product_id": 2, "id": 12, "name": "C"},
            {"product_id": 1, "id": 13, "name": "D"},
            {"product_id": 1, "id": 14, "name": "E"},
        ]
        enricher = BatchEnricher(_source(rows))

        grouped = (
            await enricher.enrich([make_candidate(1), make_candidate(2)], max_per_candidate=3)
        ).performers

        assert [p.id for p in grouped[1]] == [10, 11, 13]
        assert grouped[2] == [PerformerRef(id=12, name="C")]

    @pytest.mark.asyncio
    async def test_duplicate_rows_collapsed(self) -> None:
        rows = [
            {"product_id": 1, "id": 10, "name": "A"},
            {"product_id": 1, "id": 10, "name": "A"},
        ]

        result = await BatchEnricher(_source(rows)).enrich([make_candidate(1)])

        assert result.performers[1] == [PerformerRef(id=10, name="A")]

    @pytest.mark.asyncio
    async def test_unknown_product_rows_ignored(self) -> None:
        rows = [{"product_id": 99, "id": 10, "name": "A"}]

        result = await BatchEnricher(_source(rows)).enrich([make_candidate(1)])

        assert result.performers == {1: []}
        assert result.failed is False

    @pytest.mark.asyncio
    async def test_missing_credits_are_empty_lists_not_none(self) -> None:
        result = await BatchEnricher(_source([])).enrich([make_candidate(1), make_candidate(2)])

        assert result.performers == {1: [], 2: []}

    @pytest.mark.asyncio
    async def test_failure_yields_empty_lists_and_flag(self) -> None:
        enricher = BatchEnricher(_source(error=EnrichmentError(message="down")))

        result = await enricher.enrich([make_candidate(1), make_candidate(2)])

        assert result.performers == {1: [], 2: []}
        assert result.failed is True

    @pytest.mark.asyncio
    async def test_failure_does_not_leak_into_the_next_call(self) -> None:
        source = _source(error=EnrichmentError(message="down"))
        enricher = BatchEnricher(source)
        await enricher.enrich([make_candidate(1)])

        source.batch_lookup.side_effect = None
        source.batch_lookup.return_value = []
        result = await enricher.enrich([make_candidate(1)])

        assert result.failed is False

    @pytest.mark.asyncio
    async def test_no_call_for_empty_input(self) -> None:
        source = _source()

        result = await BatchEnricher(source).enrich([])

        assert result.performers == {}
        source.batch_lookup.assert_not_awaited()


class TestApply:
    def test_returns_copies_with_performers(self) -> None:
        original = make_candidate(1)
        refs = {1: [PerformerRef(id=5, name="E")]}

        [enriched] = BatchEnricher.apply([original], refs)

        assert enriched.performers == [PerformerRef(id=5, name="E")]
        assert original.performers == []

    def test_absent_mapping_gives_empty_list(self) -> None:
        [enriched] = BatchEnricher.apply([make_candidate(1)], {})

        assert enriched.performers == []
