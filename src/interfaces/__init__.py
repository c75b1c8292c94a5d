"""Interfaces for the external capabilities the personalization core consumes.

Business logic depends only on these abstract classes; concrete adapters
live in ``src/providers/`` and are wired in ``src/main.py``.  Tests inject
fakes or ``MagicMock(spec=...)`` instances instead.

    Interface            →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    IDataSource          →  SQLiteCatalogProvider
    IPreferenceStorage   →  SQLitePreferenceStorage, MemoryPreferenceStorage
"""

from src.interfaces.data_source import IDataSource
from src.interfaces.preference_storage import IPreferenceStorage

__all__ = ["IDataSource", "IPreferenceStorage"]
