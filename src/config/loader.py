"""YAML configuration loader with environment variable overrides.

Configuration is layered (later layers win):

  1. ``config/config.yaml`` -- defaults checked into the repo
  2. ``.env`` file           -- local overrides, not committed
  3. environment variables   -- set at deploy time

Layers 2 and 3 come from :class:`~src.config.settings.Settings`.  Only the
fields that were actually supplied through the environment are merged on
top of the YAML, so a value in ``config.yaml`` is not clobbered by a
``Settings`` default.
"""

from pathlib import Path

import yaml

from src.config.settings import Settings

# Settings field -> (section, key) in the resolved config dict.
_FIELD_MAP: dict[str, tuple[str, str]] = {
    "catalog_db_path": ("storage", "catalog_db_path"),
    "preferences_db_path": ("storage", "preferences_db_path"),
    "recommendation_default_limit": ("recommendations", "default_limit"),
    "recommendation_max_limit": ("recommendations", "max_limit"),
    "trending_slot_overfetch": ("recommendations", "trending_slot_overfetch"),
    "trending_min_discount": ("recommendations", "trending_min_discount"),
    "sale_freshness_days": ("recommendations", "sale_freshness_days"),
    "history_performer_limit": ("recommendations", "history_performer_limit"),
    "max_performers_per_candidate": ("recommendations", "max_performers_per_candidate"),
    "recent_ids_cap": ("recommendations", "recent_ids_cap"),
    "app_host": ("app", "host"),
    "app_port": ("app", "port"),
    "app_env": ("app", "env"),
    "log_level": ("logging", "level"),
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge environment-supplied Settings on top.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built Settings; a fresh instance is read otherwise.

    Returns:
        Fully resolved configuration dictionary.  Sections missing from the
        YAML are filled from Settings defaults.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()

    defaults: dict = {}
    overrides: dict = {}
    for field_name, (section, key) in _FIELD_MAP.items():
        value = getattr(settings, field_name)
        defaults.setdefault(section, {})[key] = value
        if field_name in settings.model_fields_set:
            overrides.setdefault(section, {})[key] = value

    _fill_missing(yaml_config, defaults)
    _deep_merge(yaml_config, overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _fill_missing(base: dict, defaults: dict) -> None:
    """Copy keys from *defaults* into *base* only where *base* lacks them."""
    for key, value in defaults.items():
        if key not in base:
            base[key] = value
        elif isinstance(base[key], dict) and isinstance(value, dict):
            _fill_missing(base[key], value)
