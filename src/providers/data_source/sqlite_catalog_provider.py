"""SQLite-backed catalog data source.

Serves sale candidates and product → performer lookups from a local SQLite
catalog at ``data/catalog.db``.  Uses ``aiosqlite`` for async I/O and opens
one short-lived connection per call.

Timestamps are stored as ``%Y-%m-%dT%H:%M:%fZ`` UTC strings so they compare
correctly as text against ``strftime(..., 'now')``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.data_source import IDataSource
from src.models.candidate import CandidateFilter
from src.utils.errors import DataSourceError, EnrichmentError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/catalog.db")

_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ', 'now')"

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS products (
    id                    INTEGER PRIMARY KEY,
    normalized_product_id TEXT    NOT NULL UNIQUE,
    title                 TEXT    NOT NULL DEFAULT '',
    thumbnail_url         TEXT
);
""",
    """\
CREATE TABLE IF NOT EXISTS performers (
    id   INTEGER PRIMARY KEY,
    name TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS product_performers (
    product_id   INTEGER NOT NULL REFERENCES products(id),
    performer_id INTEGER NOT NULL REFERENCES performers(id),
    PRIMARY KEY (product_id, performer_id)
);
""",
    f"""\
CREATE TABLE IF NOT EXISTS product_sales (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id       INTEGER NOT NULL REFERENCES products(id),
    regular_price    INTEGER,
    sale_price       INTEGER,
    discount_percent INTEGER NOT NULL DEFAULT 0,
    is_active        INTEGER NOT NULL DEFAULT 1,
    end_at           TEXT,
    fetched_at       TEXT    NOT NULL DEFAULT ({_NOW_SQL})
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_sales_product ON product_sales(product_id);",
    "CREATE INDEX IF NOT EXISTS idx_sales_discount ON product_sales(discount_percent);",
    "CREATE INDEX IF NOT EXISTS idx_pp_performer ON product_performers(performer_id);",
]

# One row per product: the bare columns come from the row holding MAX(),
# so a product credited to several matched performers, or carrying several
# live sales, still uses a single LIMIT slot.
_SALE_COLUMNS = """\
p.id, p.normalized_product_id, p.title, p.thumbnail_url,
s.regular_price, s.sale_price, MAX(s.discount_percent) AS discount_percent,
s.end_at AS sale_end_at"""

_PERFORMER_COLUMNS = "pf.id AS performer_id, pf.name AS performer_name"

_SALE_FROM = """\
FROM product_sales s
JOIN products p ON s.product_id = p.id"""

_PERFORMER_JOIN = """\
JOIN product_performers pp ON pp.product_id = p.id
JOIN performers pf ON pf.id = pp.performer_id"""

_RELATED_PERFORMERS_SQL = """\
SELECT DISTINCT pp2.performer_id
FROM product_performers pp2
JOIN products p2 ON p2.id = pp2.product_id
WHERE p2.normalized_product_id IN ({placeholders})
LIMIT ?"""

_BATCH_LOOKUP_SQL = """\
SELECT pp.product_id, pf.id, pf.name
FROM product_performers pp
JOIN performers pf ON pf.id = pp.performer_id
WHERE pp.product_id IN ({placeholders})
ORDER BY pp.product_id, pp.rowid;
"""


def to_db_timestamp(value: datetime) -> str:
    """Format *value* the way the catalog stores timestamps (UTC, ms, ``Z``)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class SQLiteCatalogProvider(IDataSource):
    """SQLite-backed catalog queries for tiers and batch enrichment."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the catalog tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("catalog_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # IDataSource implementation
    # ------------------------------------------------------------------

    async def query_candidates(self, candidate_filter: CandidateFilter) -> list[dict[str, Any]]:
        """Run the sale query described by *candidate_filter*."""
        f = candidate_filter
        if f.product_ids is not None:
            return await self._load_products(f)

        # An explicit but empty selection can never match anything.
        if f.performer_ids is not None and not f.performer_ids:
            return []
        if f.related_to_product_ids is not None and not f.related_to_product_ids:
            return []

        joins_performers = f.performer_ids is not None or f.related_to_product_ids is not None
        columns = _SALE_COLUMNS + (",\n" + _PERFORMER_COLUMNS if joins_performers else "")
        sql_parts = [f"SELECT {columns}", _SALE_FROM]
        if joins_performers:
            sql_parts.append(_PERFORMER_JOIN)

        where, params = self._sale_conditions(f)
        if f.performer_ids is not None:
            where.append(f"pf.id IN ({_placeholders(len(f.performer_ids))})")
            params.extend(f.performer_ids)
        elif f.related_to_product_ids is not None:
            related_sql = _RELATED_PERFORMERS_SQL.format(
                placeholders=_placeholders(len(f.related_to_product_ids)),
            )
            where.append(f"pf.id IN ({related_sql})")
            params.extend(f.related_to_product_ids)
            params.append(f.related_performer_limit)
        if f.min_discount is not None:
            where.append("s.discount_percent > ?")
            params.append(f.min_discount)

        sql_parts.append("WHERE " + "\n  AND ".join(where))
        sql_parts.append("GROUP BY p.id")
        sql_parts.append("ORDER BY MAX(s.discount_percent) DESC, p.id ASC")
        sql_parts.append("LIMIT ?")
        params.append(f.limit)

        return await self._fetch_rows("\n".join(sql_parts), params, DataSourceError)

    async def batch_lookup(self, primary_ids: list[int]) -> list[dict[str, Any]]:
        """Return performer rows for every id in *primary_ids* in one query."""
        if not primary_ids:
            return []
        sql = _BATCH_LOOKUP_SQL.format(placeholders=_placeholders(len(primary_ids)))
        return await self._fetch_rows(sql, list(primary_ids), EnrichmentError)

    def get_provider_name(self) -> str:
        return "sqlite_catalog"

    # ------------------------------------------------------------------
    # Catalog maintenance (seeding, CLI, tests)
    # ------------------------------------------------------------------

    async def upsert_product(
        self,
        product_id: int,
        normalized_product_id: str,
        title: str = "",
        thumbnail_url: str | None = None,
    ) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                "INSERT INTO products (id, normalized_product_id, title, thumbnail_url) "
                "VALUES (?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET normalized_product_id = excluded.normalized_product_id, "
                "title = excluded.title, thumbnail_url = excluded.thumbnail_url",
                (product_id, normalized_product_id, title, thumbnail_url),
            )
            await db.commit()

    async def upsert_performer(self, performer_id: int, name: str) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                "INSERT INTO performers (id, name) VALUES (?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name",
                (performer_id, name),
            )
            await db.commit()

    async def link_performer(self, product_id: int, performer_id: int) -> None:
        """Credit *performer_id* on *product_id*.  Credit order is insertion order."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                "INSERT OR IGNORE INTO product_performers (product_id, performer_id) VALUES (?, ?)",
                (product_id, performer_id),
            )
            await db.commit()

    async def add_sale(
        self,
        product_id: int,
        discount_percent: int,
        regular_price: int | None = None,
        sale_price: int | None = None,
        end_at: datetime | None = None,
        fetched_at: datetime | None = None,
        is_active: bool = True,
    ) -> int:
        """Insert a sale row and return its id."""
        fetched = to_db_timestamp(fetched_at or datetime.now(tz=timezone.utc))
        ends = to_db_timestamp(end_at) if end_at is not None else None
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "INSERT INTO product_sales "
                "(product_id, regular_price, sale_price, discount_percent, is_active, end_at, fetched_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (product_id, regular_price, sale_price, discount_percent, int(is_active), ends, fetched),
            )
            await db.commit()
            sale_id = cursor.lastrowid
        logger.debug("sale_added", product_id=product_id, discount_percent=discount_percent)
        return sale_id

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _sale_conditions(f: CandidateFilter) -> tuple[list[str], list[Any]]:
        where = [
            "s.is_active = 1",
            f"(s.end_at IS NULL OR s.end_at > {_NOW_SQL})",
            "s.fetched_at > strftime('%Y-%m-%dT%H:%M:%fZ', 'now', ?)",
        ]
        params: list[Any] = [f"-{f.fresh_within_days} days"]
        return where, params

    async def _load_products(self, f: CandidateFilter) -> list[dict[str, Any]]:
        """Plain batch load by normalized id, attaching the best live sale if any."""
        ids = f.product_ids or []
        if not ids:
            return []

        join_kind = "JOIN" if f.active_sales_only else "LEFT JOIN"
        sale_join = (
            f"{join_kind} product_sales s ON s.product_id = p.id AND s.is_active = 1 "
            f"AND (s.end_at IS NULL OR s.end_at > {_NOW_SQL}) "
            "AND s.fetched_at > strftime('%Y-%m-%dT%H:%M:%fZ', 'now', ?)"
        )
        # SQLite returns the bare columns of the row that holds MAX().
        sql = (
            "SELECT p.id, p.normalized_product_id, p.title, p.thumbnail_url, "
            "s.regular_price, s.sale_price, MAX(COALESCE(s.discount_percent, 0)) AS discount_percent, "
            "s.end_at AS sale_end_at "
            "FROM products p "
            f"{sale_join} "
            f"WHERE p.normalized_product_id IN ({_placeholders(len(ids))}) "
            "GROUP BY p.id "
            "LIMIT ?"
        )
        params: list[Any] = [f"-{f.fresh_within_days} days", *ids, f.limit]
        return await self._fetch_rows(sql, params, DataSourceError)

    async def _fetch_rows(
        self,
        sql: str,
        params: list[Any],
        error_cls: type[DataSourceError] | type[EnrichmentError],
    ) -> list[dict[str, Any]]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(sql, params)
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise error_cls(
                message=f"Catalog query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return [dict(r) for r in rows]
