"""Section preference storage providers.

SQLitePreferenceStorage persists layouts in data/preferences.db;
MemoryPreferenceStorage keeps them in-process (CLI, tests).
"""

from src.providers.preferences.memory_preference_storage import MemoryPreferenceStorage
from src.providers.preferences.sqlite_preference_storage import SQLitePreferenceStorage

__all__ = ["MemoryPreferenceStorage", "SQLitePreferenceStorage"]
