"""Storefront personalization FastAPI application entry point.

Wires providers, services and routes together.  Loads configuration from
``.env`` and ``config/config.yaml``, configures structured logging, and
stores the built components on ``app.state`` for the route dependencies.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.preference_storage import IPreferenceStorage
from src.providers.data_source.sqlite_catalog_provider import SQLiteCatalogProvider
from src.providers.preferences.memory_preference_storage import MemoryPreferenceStorage
from src.providers.preferences.sqlite_preference_storage import SQLitePreferenceStorage
from src.services.recommendation_service import ForYouService
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=config["logging"]["level"],
    json_output=(config["app"]["env"] == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def _build_preference_storage(storage_config: dict[str, Any]) -> IPreferenceStorage:
    """SQLite storage unless the path is ``:memory:``."""
    path = storage_config.get("preferences_db_path") or ":memory:"
    if path == ":memory:":
        return MemoryPreferenceStorage()
    return SQLitePreferenceStorage(db_path=path)


def _build_all(app_config: dict[str, Any]) -> dict[str, Any]:
    """Instantiate providers and services from the resolved config.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    storage_config = app_config.get("storage", {})
    catalog = SQLiteCatalogProvider(db_path=storage_config["catalog_db_path"])
    preference_storage = _build_preference_storage(storage_config)
    for_you_service = ForYouService(catalog, options=app_config.get("recommendations", {}))

    return {
        "catalog": catalog,
        "preference_storage": preference_storage,
        "for_you_service": for_you_service,
        "app_version": str(app_config["app"].get("version", "0.1.0")),
        "app_env": app_config["app"].get("env", "development"),
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build components and create storage tables on startup."""
    components = _build_all(config)
    for key, value in components.items():
        setattr(application.state, key, value)

    await components["catalog"].initialize()
    await components["preference_storage"].initialize()

    _logger.info(
        "app_startup",
        version=components["app_version"],
        environment=components["app_env"],
        catalog=components["catalog"].get_provider_name(),
        preferences=components["preference_storage"].get_provider_name(),
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Storefront Personalization API",
        version=str(config["app"].get("version", "0.1.0")),
        description=(
            "Tiered sale recommendations, recently viewed batch loads and "
            "per-page section layout preferences for the storefront."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=config["app"]["host"],
        port=int(config["app"]["port"]),
        reload=(config["app"]["env"] == "development"),
    )
