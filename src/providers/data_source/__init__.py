"""Catalog data source providers.

SQLiteCatalogProvider serves sale candidates and performer lookups from
data/catalog.db.
"""

from src.providers.data_source.sqlite_catalog_provider import SQLiteCatalogProvider

__all__ = ["SQLiteCatalogProvider"]
