"""Unit tests for CLI modules: src.cli.recommend and src.cli.sections."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from src.cli import recommend, sections
from src.models.candidate import AggregationResult, Candidate, MatchReason, PerformerRef
from src.providers.data_source.sqlite_catalog_provider import SQLiteCatalogProvider
from src.utils.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    """--json reroutes logging to the captured stderr; put the defaults back."""
    yield
    configure_logging()


async def _seed(db: Path) -> None:
    catalog = SQLiteCatalogProvider(db_path=db)
    await catalog.initialize()
    await catalog.upsert_product(1, "ABC-001", "First")
    await catalog.upsert_performer(7, "Aoi")
    await catalog.link_performer(1, 7)
    await catalog.add_sale(1, discount_percent=40)


def _result() -> AggregationResult:
    return AggregationResult(
        candidates=[
            Candidate(
                primary_id=10,
                ranking_key=50,
                match_reason=MatchReason.FAVORITE_MATCH,
                match_detail="Aoi",
                title="Summer Title",
                discount_percent=50,
                performers=[PerformerRef(id=7, name="Aoi")],
            ),
        ],
        limit=5,
        tiers_invoked=["favorite_performers", "trending"],
        failed_tiers=["trending"],
    )


class TestRecommendFormatting:
    def test_text_output(self) -> None:
        text = recommend.format_text(_result())

        assert "[FAV  ] #10 Summer Title" in text
        assert "-50% (Aoi)" in text
        assert "failed: trending" in text

    def test_text_output_empty(self) -> None:
        assert recommend.format_text(AggregationResult()) == "No candidates."

    def test_json_output(self) -> None:
        payload = json.loads(recommend.format_json(_result()))

        assert payload["candidates"][0]["match_reason"] == "favorite_match"
        assert payload["candidates"][0]["performers"] == [{"id": 7, "name": "Aoi"}]

    def test_parser_defaults(self) -> None:
        args = recommend.build_parser().parse_args([])

        assert args.favorites == ""
        assert args.limit is None
        assert args.json is False


class TestRecommendMain:
    @pytest.fixture()
    def seeded_db(self, tmp_path: Path) -> Path:
        db = tmp_path / "catalog.db"
        asyncio.run(_seed(db))
        return db

    def test_prints_json(self, seeded_db: Path, capsys: pytest.CaptureFixture[str]) -> None:
        capsys.readouterr()
        code = recommend.main(["--favorites", "7", "--limit", "3", "--json", "--db", str(seeded_db)])

        out = json.loads(capsys.readouterr().out)
        assert code == 0
        assert [c["primary_id"] for c in out["candidates"]] == [1]
        assert out["candidates"][0]["match_reason"] == "favorite_match"


class TestSectionsCli:
    def test_toggle_then_show(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        db = str(tmp_path / "prefs.db")

        assert sections.main(["toggle", "--page", "home", "--locale", "en", "--db", db, "sale"]) == 0
        capsys.readouterr()
        assert sections.main(["show", "--page", "home", "--locale", "en", "--db", db]) == 0

        out = capsys.readouterr().out
        assert "[ ] sale" in out
        assert "[x] recently-viewed" in out

    def test_reorder_out_of_range_fails(self, tmp_path: Path) -> None:
        db = str(tmp_path / "prefs.db")

        assert sections.main(["reorder", "--page", "home", "--db", db, "0", "99"]) == 1

    def test_subcommand_required(self) -> None:
        with pytest.raises(SystemExit):
            sections.build_parser().parse_args([])
