"""Lazy panel delivery for the storefront pages."""

from src.pipeline.lazy_section import LazySectionController
from src.pipeline.panel_fetchers import make_for_you_fetcher, make_recently_viewed_fetcher
from src.pipeline.panel_group import PanelGroup

__all__ = [
    "LazySectionController",
    "PanelGroup",
    "make_for_you_fetcher",
    "make_recently_viewed_fetcher",
]
