"""Unit tests for merge_sections and PreferenceStore."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.config.section_defaults import get_page_section_defaults, known_pages
from src.interfaces.preference_storage import IPreferenceStorage
from src.models.preferences import SectionPreference, StoredSection
from src.providers.preferences.memory_preference_storage import MemoryPreferenceStorage
from src.services.preference_store import PreferenceStore, merge_sections
from src.utils.errors import PersistenceError

# ======================================================================
# merge_sections
# ======================================================================


class TestMergeSections:
    def test_persisted_visibility_kept_new_default_appended_stale_dropped(
        self, ab_defaults: list[SectionPreference]
    ) -> None:
        persisted = [
            {"id": "a", "order": 1, "visible": False},
            {"id": "c", "order": 0, "visible": True},
        ]

        merged = merge_sections(persisted, ab_defaults)

        by_id = {s.id: s for s in merged}
        assert set(by_id) == {"a", "b"}
        assert by_id["a"].visible is False
        assert by_id["a"].order == 1
        assert by_id["b"].visible is True

    def test_label_always_from_defaults(self, ab_defaults: list[SectionPreference]) -> None:
        merged = merge_sections([{"id": "a", "label": "Old", "order": 0, "visible": True}], ab_defaults)

        assert merged[0].label == "Alpha"

    def test_sorted_by_order_without_renumbering(self, ab_defaults: list[SectionPreference]) -> None:
        persisted = [{"id": "a", "order": 7, "visible": True}, {"id": "b", "order": 3, "visible": True}]

        merged = merge_sections(persisted, ab_defaults)

        assert [(s.id, s.order) for s in merged] == [("b", 3), ("a", 7)]

    def test_equal_orders_keep_default_sequence(self, ab_defaults: list[SectionPreference]) -> None:
        persisted = [{"id": "b", "order": 0, "visible": True}, {"id": "a", "order": 0, "visible": True}]

        merged = merge_sections(persisted, ab_defaults)

        assert [s.id for s in merged] == ["a", "b"]

    def test_malformed_entries_skipped(self, ab_defaults: list[SectionPreference]) -> None:
        persisted = ["junk", {"order": 0}, None, {"id": "b", "visible": False, "order": 5}]

        merged = merge_sections(persisted, ab_defaults)

        assert [(s.id, s.visible) for s in merged] == [("a", True), ("b", False)]

    @pytest.mark.parametrize("persisted", [None, []])
    def test_nothing_stored_gives_defaults(
        self, persisted: list | None, ab_defaults: list[SectionPreference]
    ) -> None:
        assert merge_sections(persisted, ab_defaults) == ab_defaults

    def test_accepts_stored_models(self, ab_defaults: list[SectionPreference]) -> None:
        merged = merge_sections([StoredSection(id="b", visible=False, order=0)], ab_defaults)

        assert [s.id for s in merged] == ["a", "b"]
        assert merged[1].visible is False

    def test_inputs_not_mutated(self, ab_defaults: list[SectionPreference]) -> None:
        persisted = [{"id": "a", "order": 1, "visible": False}]
        snapshot = [dict(e) for e in persisted]

        merge_sections(persisted, ab_defaults)

        assert persisted == snapshot
        assert ab_defaults[0].visible is True


# ======================================================================
# PreferenceStore
# ======================================================================


class TestPreferenceStore:
    @pytest.fixture()
    async def store(
        self, memory_storage: MemoryPreferenceStorage, ab_defaults: list[SectionPreference]
    ) -> PreferenceStore:
        store = PreferenceStore(memory_storage)
        await store.load("home", ab_defaults)
        return store

    @pytest.mark.asyncio
    async def test_load_without_stored_layout(self, store: PreferenceStore) -> None:
        assert store.is_loaded is True
        assert [s.id for s in store.sections] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_toggle_persists_full_list(
        self, store: PreferenceStore, memory_storage: MemoryPreferenceStorage
    ) -> None:
        assert await store.toggle("a") is True

        assert store.is_section_visible("a") is False
        assert [s.id for s in store.visible_sections] == ["b"]
        assert await memory_storage.read("home") == [
            {"id": "a", "visible": False, "order": 0},
            {"id": "b", "visible": True, "order": 1},
        ]

    @pytest.mark.asyncio
    async def test_toggle_unknown_id_changes_nothing_but_persists(
        self, store: PreferenceStore, memory_storage: MemoryPreferenceStorage
    ) -> None:
        before = store.sections

        assert await store.toggle("zzz") is True

        assert store.sections == before
        assert await memory_storage.read("home") is not None

    @pytest.mark.asyncio
    async def test_reorder_moves_and_renumbers(self, store: PreferenceStore) -> None:
        await store.reorder(0, 1)

        assert [(s.id, s.order) for s in store.sections] == [("b", 0), ("a", 1)]
        assert store.get_section_order("a") == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("from_index,to_index", [(-1, 0), (0, 2), (5, 0)])
    async def test_reorder_out_of_range(
        self, store: PreferenceStore, from_index: int, to_index: int
    ) -> None:
        with pytest.raises(IndexError):
            await store.reorder(from_index, to_index)

    @pytest.mark.asyncio
    async def test_reset_restores_defaults(
        self, store: PreferenceStore, ab_defaults: list[SectionPreference]
    ) -> None:
        await store.toggle("a")
        await store.reorder(0, 1)

        assert await store.reset() is True
        assert store.sections == ab_defaults

    @pytest.mark.asyncio
    async def test_unknown_ids_visible_and_order_zero(self, store: PreferenceStore) -> None:
        assert store.is_section_visible("nope") is True
        assert store.get_section_order("nope") == 0

    @pytest.mark.asyncio
    async def test_reload_merges_with_changed_schema(
        self, memory_storage: MemoryPreferenceStorage, ab_defaults: list[SectionPreference]
    ) -> None:
        await memory_storage.write(
            "home",
            [{"id": "a", "visible": False, "order": 1}, {"id": "c", "visible": True, "order": 0}],
        )
        store = PreferenceStore(memory_storage)

        sections = await store.load("home", ab_defaults)

        assert {s.id for s in sections} == {"a", "b"}
        assert store.is_section_visible("a") is False

    @pytest.mark.asyncio
    async def test_layouts_are_per_owner(
        self, memory_storage: MemoryPreferenceStorage, ab_defaults: list[SectionPreference]
    ) -> None:
        alice = PreferenceStore(memory_storage, owner_id="alice")
        await alice.load("home", ab_defaults)
        await alice.toggle("a")

        bob = PreferenceStore(memory_storage, owner_id="bob")
        await bob.load("home", ab_defaults)

        assert bob.is_section_visible("a") is True

    @pytest.mark.asyncio
    async def test_mutation_before_load_rejected(self, memory_storage: MemoryPreferenceStorage) -> None:
        with pytest.raises(RuntimeError):
            await PreferenceStore(memory_storage).toggle("a")


class TestPersistenceFailures:
    def _failing_storage(self, read_error: bool = False) -> MagicMock:
        storage = MagicMock(spec=IPreferenceStorage)
        storage.get_provider_name.return_value = "broken"
        storage.read = AsyncMock(
            return_value=None,
            side_effect=PersistenceError(message="corrupt") if read_error else None,
        )
        storage.write = AsyncMock(side_effect=PersistenceError(message="disk full"))
        return storage

    @pytest.mark.asyncio
    async def test_write_failure_returns_false_and_keeps_state(
        self, ab_defaults: list[SectionPreference]
    ) -> None:
        store = PreferenceStore(self._failing_storage())
        await store.load("home", ab_defaults)

        assert await store.toggle("b") is False
        assert store.is_section_visible("b") is False

    @pytest.mark.asyncio
    async def test_unreadable_storage_falls_back_to_defaults(
        self, ab_defaults: list[SectionPreference]
    ) -> None:
        store = PreferenceStore(self._failing_storage(read_error=True))

        sections = await store.load("home", ab_defaults)

        assert sections == ab_defaults
        assert store.is_loaded is True


class TestSectionDefaults:
    def test_japanese_labels(self) -> None:
        sections = get_page_section_defaults("home", "ja")
        assert sections[0].id == "sale"
        assert sections[0].label == "セール中"

    def test_other_locales_get_english(self) -> None:
        assert get_page_section_defaults("home", "de")[0].label == "On Sale"

    def test_unknown_page_falls_back_to_home(self) -> None:
        fallback = get_page_section_defaults("nowhere", "en")

        assert fallback == get_page_section_defaults("home", "en")
        assert len(fallback) == 8
        assert fallback[-1].id == "fanza-site"

    def test_every_storefront_page_has_a_schema(self) -> None:
        assert known_pages() == [
            "actress",
            "categories",
            "compare",
            "compare-performers",
            "diary",
            "discover",
            "favorites",
            "home",
            "maker",
            "product",
            "products",
            "profile",
            "series",
            "statistics",
            "watchlist",
        ]

    @pytest.mark.parametrize("page_id", known_pages())
    def test_locales_share_ids_and_order(self, page_id: str) -> None:
        ja = get_page_section_defaults(page_id, "ja")
        en = get_page_section_defaults(page_id, "en")

        assert [s.id for s in ja] == [s.id for s in en]
        assert len({s.id for s in ja}) == len(ja)

    def test_product_page_includes_analysis_sections(self) -> None:
        ids = [s.id for s in get_page_section_defaults("product", "en")]

        assert ids[3:6] == ["cost-performance", "ai-review", "scene-timeline"]
        assert ids[-1] == "user-contributions"
        assert len(ids) == 12

    def test_actress_page_sections(self) -> None:
        sections = get_page_section_defaults("actress", "en")

        assert [s.id for s in sections] == [
            "profile",
            "ai-review",
            "career",
            "top-products",
            "on-sale",
            "filmography",
            "costar-network",
            "similar-network",
        ]
        assert sections[-1].label == "Similar Actresses"

    def test_browsing_pages_end_with_uncategorized(self) -> None:
        for page_id in ("discover", "compare", "compare-performers", "favorites", "profile"):
            sections = get_page_section_defaults(page_id, "en")
            assert [s.id for s in sections[-2:]] == ["all-products", "uncategorized"]

    def test_hub_page_puts_its_own_panel_third(self) -> None:
        sections = get_page_section_defaults("watchlist", "ja")

        assert [s.id for s in sections[:3]] == ["sale", "recently-viewed", "watchlist-main"]
        assert sections[2].label == "後で見る"

    def test_orders_are_dense(self) -> None:
        sections = get_page_section_defaults("product", "en")
        assert [s.order for s in sections] == list(range(len(sections)))
