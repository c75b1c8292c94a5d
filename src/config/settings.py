"""Application settings loaded from environment variables via pydantic-settings.

Values are read, highest priority first, from:

  1. environment variables (``CATALOG_DB_PATH=/data/catalog.db``),
  2. a ``.env`` file in the working directory,
  3. the defaults declared below.

Field ``trending_slot_overfetch`` maps to ``TRENDING_SLOT_OVERFETCH`` and so
on; pydantic-settings matches names case-insensitively.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Personalization service settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Storage ===
    catalog_db_path: str = "data/catalog.db"
    preferences_db_path: str = "data/preferences.db"

    # === Recommendation tiers ===
    recommendation_default_limit: int = Field(default=8, ge=1)
    recommendation_max_limit: int = Field(default=50, ge=1)
    # Extra rows requested by the trending fallback to make up for ids the
    # earlier tiers already claimed.  Empirical; tune per catalog.
    trending_slot_overfetch: int = Field(default=5, ge=0)
    trending_min_discount: int = Field(default=30, ge=0, le=100)
    sale_freshness_days: int = Field(default=14, ge=1)
    history_performer_limit: int = Field(default=10, ge=1)
    max_performers_per_candidate: int = Field(default=3, ge=0)
    recent_ids_cap: int = Field(default=10, ge=1)

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def tier_options(self) -> dict[str, int]:
        """Return the tier tunables as a flat dict (used by the YAML loader)."""
        return {
            "default_limit": self.recommendation_default_limit,
            "max_limit": self.recommendation_max_limit,
            "trending_slot_overfetch": self.trending_slot_overfetch,
            "trending_min_discount": self.trending_min_discount,
            "sale_freshness_days": self.sale_freshness_days,
            "history_performer_limit": self.history_performer_limit,
            "max_performers_per_candidate": self.max_performers_per_candidate,
            "recent_ids_cap": self.recent_ids_cap,
        }
