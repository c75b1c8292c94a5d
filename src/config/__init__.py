"""Configuration module: exports Settings, load_config, section defaults and a settings singleton."""

from src.config.loader import load_config
from src.config.section_defaults import get_page_section_defaults
from src.config.settings import Settings

settings = Settings()

__all__ = ["Settings", "get_page_section_defaults", "load_config", "settings"]
