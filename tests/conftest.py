"""Shared pytest fixtures for the personalization test suite."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from src.interfaces.data_source import IDataSource
from src.models.candidate import Candidate, CandidateFilter, MatchReason
from src.models.preferences import SectionPreference
from src.providers.preferences.memory_preference_storage import MemoryPreferenceStorage
from src.utils.errors import DataSourceError, EnrichmentError

# ---------------------------------------------------------------------------
# In-memory catalog
# ---------------------------------------------------------------------------


@dataclass
class FakeProduct:
    id: int
    normalized_product_id: str
    discount_percent: int
    performers: list[tuple[int, str]] = field(default_factory=list)
    title: str = ""
    on_sale: bool = True


class FakeCatalog(IDataSource):
    """IDataSource over a dict of products, mirroring the SQLite query semantics.

    Every call is recorded.  Set ``fail_selections`` to a set of
    ``"performer"``, ``"related"``, ``"trending"`` or ``"products"`` to make the
    matching query raise, and ``fail_batch`` to make ``batch_lookup`` raise.
    """

    def __init__(self, products: list[FakeProduct] | None = None) -> None:
        self.products: dict[int, FakeProduct] = {p.id: p for p in products or []}
        self.queries: list[CandidateFilter] = []
        self.batch_calls: list[list[int]] = []
        self.fail_selections: set[str] = set()
        self.fail_batch = False

    def add(self, product: FakeProduct) -> None:
        self.products[product.id] = product

    @staticmethod
    def selection_of(f: CandidateFilter) -> str:
        if f.product_ids is not None:
            return "products"
        if f.performer_ids is not None:
            return "performer"
        if f.related_to_product_ids is not None:
            return "related"
        return "trending"

    async def query_candidates(self, candidate_filter: CandidateFilter) -> list[dict[str, Any]]:
        f = candidate_filter
        self.queries.append(f)
        selection = self.selection_of(f)
        if selection in self.fail_selections:
            raise DataSourceError(message=f"{selection} query failed", provider_name="fake_catalog")

        if selection == "products":
            wanted = set(f.product_ids or [])
            rows = [
                self._row(p)
                for p in self.products.values()
                if p.normalized_product_id in wanted and (p.on_sale or not f.active_sales_only)
            ]
            return rows[: f.limit]

        rows: list[dict[str, Any]] = []
        if selection == "performer":
            wanted_performers = set(f.performer_ids or [])
        elif selection == "related":
            seeds = set(f.related_to_product_ids or [])
            wanted_performers = {
                pid
                for p in self.products.values()
                if p.normalized_product_id in seeds
                for pid, _ in p.performers
            }
        else:
            wanted_performers = None

        for p in self.products.values():
            if not p.on_sale:
                continue
            if f.min_discount is not None and p.discount_percent <= f.min_discount:
                continue
            if wanted_performers is None:
                rows.append(self._row(p))
                continue
            # One row per product, attributed to its first matching performer.
            match = next(
                ((pid, name) for pid, name in p.performers if pid in wanted_performers),
                None,
            )
            if match is not None:
                rows.append(self._row(p, performer=match))

        rows.sort(key=lambda r: (-r["discount_percent"], r["id"]))
        return rows[: f.limit]

    async def batch_lookup(self, primary_ids: list[int]) -> list[dict[str, Any]]:
        self.batch_calls.append(list(primary_ids))
        if self.fail_batch:
            raise EnrichmentError(message="batch lookup failed", provider_name="fake_catalog")
        rows: list[dict[str, Any]] = []
        for product_id in primary_ids:
            product = self.products.get(product_id)
            if product is None:
                continue
            for pid, name in product.performers:
                rows.append({"product_id": product_id, "id": pid, "name": name})
        return rows

    def get_provider_name(self) -> str:
        return "fake_catalog"

    @staticmethod
    def _row(p: FakeProduct, performer: tuple[int, str] | None = None) -> dict[str, Any]:
        row: dict[str, Any] = {
            "id": p.id,
            "normalized_product_id": p.normalized_product_id,
            "title": p.title or f"Product {p.id}",
            "thumbnail_url": None,
            "regular_price": 3000,
            "sale_price": 3000 * (100 - p.discount_percent) // 100,
            "discount_percent": p.discount_percent if p.on_sale else 0,
            "sale_end_at": None,
        }
        if performer is not None:
            row["performer_id"], row["performer_name"] = performer
        return row


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def worked_example_catalog() -> FakeCatalog:
    """Performer 7 on 10/11/12; trending sales 20/21/22 plus 10 and 11."""
    return FakeCatalog(
        [
            FakeProduct(10, "AAA-010", 50, [(7, "Aoi"), (8, "Mio")]),
            FakeProduct(11, "AAA-011", 40, [(7, "Aoi")]),
            FakeProduct(12, "AAA-012", 30, [(7, "Aoi"), (9, "Rin")]),
            FakeProduct(20, "BBB-020", 60, [(30, "Saki")]),
            FakeProduct(21, "BBB-021", 45, [(31, "Yui"), (32, "Nana"), (33, "Emi"), (34, "Kana")]),
            FakeProduct(22, "BBB-022", 35, []),
        ]
    )


@pytest.fixture
def fake_catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def memory_storage() -> MemoryPreferenceStorage:
    return MemoryPreferenceStorage()


@pytest.fixture
def ab_defaults() -> list[SectionPreference]:
    return [
        SectionPreference(id="a", label="Alpha", visible=True, order=0),
        SectionPreference(id="b", label="Beta", visible=True, order=1),
    ]


@pytest.fixture
def tmp_db_path():
    """Path to a throwaway SQLite file, removed afterwards."""
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    yield Path(tmp.name)
    if os.path.exists(tmp.name):
        os.unlink(tmp.name)


def make_candidate(
    primary_id: int,
    ranking_key: float = 0.0,
    match_reason: MatchReason = MatchReason.TRENDING_FALLBACK,
) -> Candidate:
    return Candidate(
        primary_id=primary_id,
        ranking_key=ranking_key,
        match_reason=match_reason,
        discount_percent=int(ranking_key),
    )
