"""FastAPI routes for the personalization API.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern; ``src/main.py`` populates
``app.state`` at startup.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                   Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/sales/for-you                      GET     Tiered sale recommendations
# /api/v1/products/batch                     GET     Recently viewed batch load
# /api/v1/preferences/{page_id}              GET     Current section layout
# /api/v1/preferences/{page_id}/toggle       POST    Flip one section's visibility
# /api/v1/preferences/{page_id}/reorder      POST    Move one section
# /api/v1/preferences/{page_id}/reset        POST    Restore the default layout
# /api/v1/health                             GET     Health check
#
# Preference routes take ``?locale=`` (labels) and an ``X-Owner-Id``
# header (defaults to "anonymous").
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from src.api.schemas import (
    CandidateListResponse,
    ErrorResponse,
    HealthResponse,
    ReorderSectionsRequest,
    SectionPreferencesResponse,
    ToggleSectionRequest,
)
from src.config.section_defaults import get_page_section_defaults
from src.interfaces.preference_storage import IPreferenceStorage
from src.services.preference_store import PreferenceStore
from src.services.recommendation_service import ForYouService, split_csv
from src.utils.errors import DataSourceError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_for_you_service(request: Request) -> ForYouService:
    return request.app.state.for_you_service


def _get_preference_storage(request: Request) -> IPreferenceStorage:
    return request.app.state.preference_storage


ForYouDep = Annotated[ForYouService, Depends(_get_for_you_service)]
PreferenceStorageDep = Annotated[IPreferenceStorage, Depends(_get_preference_storage)]
OwnerHeader = Annotated[str, Header(alias="X-Owner-Id")]
LocaleQuery = Annotated[str, Query(max_length=16)]


def _unavailable(exc: DataSourceError) -> JSONResponse:
    body = ErrorResponse(error=type(exc).__name__, detail="Recommendations are temporarily unavailable")
    return JSONResponse(status_code=503, content=body.model_dump())


async def _load_store(
    storage: IPreferenceStorage, page_id: str, locale: str, owner_id: str
) -> PreferenceStore:
    store = PreferenceStore(storage, owner_id=owner_id or "anonymous")
    await store.load(page_id, get_page_section_defaults(page_id, locale))
    return store


def _layout_response(store: PreferenceStore, persisted: bool = True) -> SectionPreferencesResponse:
    return SectionPreferencesResponse(
        page_id=store.page_id or "",
        sections=store.sections,
        visible_sections=[s.id for s in store.visible_sections],
        persisted=persisted,
    )


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


@router.get(
    "/sales/for-you",
    response_model=CandidateListResponse,
    responses={503: {"model": ErrorResponse}},
)
async def sales_for_you(
    service: ForYouDep,
    favorite_performer_ids: Annotated[str | None, Query(alias="favoritePerformerIds")] = None,
    recent_product_ids: Annotated[str | None, Query(alias="recentProductIds")] = None,
    limit: Annotated[int | None, Query()] = None,
) -> Any:
    """Sales featuring favorite performers, then viewing-history performers, then deep discounts."""
    try:
        result = await service.recommend(
            favorite_ids=split_csv(favorite_performer_ids),
            recent_ids=split_csv(recent_product_ids),
            limit=limit,
        )
    except DataSourceError as exc:
        _logger.error("for_you_unavailable", error=str(exc))
        return _unavailable(exc)
    return CandidateListResponse(candidates=result.candidates)


@router.get(
    "/products/batch",
    response_model=CandidateListResponse,
    responses={503: {"model": ErrorResponse}},
)
async def products_batch(
    service: ForYouDep,
    ids: Annotated[str | None, Query()] = None,
) -> Any:
    """Load recently viewed products in the order requested."""
    try:
        candidates = await service.recently_viewed(split_csv(ids))
    except DataSourceError as exc:
        _logger.error("products_batch_unavailable", error=str(exc))
        return _unavailable(exc)
    return CandidateListResponse(candidates=candidates)


# ---------------------------------------------------------------------------
# Section preferences
# ---------------------------------------------------------------------------


@router.get("/preferences/{page_id}", response_model=SectionPreferencesResponse)
async def get_preferences(
    page_id: str,
    storage: PreferenceStorageDep,
    locale: LocaleQuery = "ja",
    owner_id: OwnerHeader = "anonymous",
) -> SectionPreferencesResponse:
    store = await _load_store(storage, page_id, locale, owner_id)
    return _layout_response(store)


@router.post("/preferences/{page_id}/toggle", response_model=SectionPreferencesResponse)
async def toggle_section(
    page_id: str,
    body: ToggleSectionRequest,
    storage: PreferenceStorageDep,
    locale: LocaleQuery = "ja",
    owner_id: OwnerHeader = "anonymous",
) -> SectionPreferencesResponse:
    store = await _load_store(storage, page_id, locale, owner_id)
    persisted = await store.toggle(body.section_id)
    return _layout_response(store, persisted)


@router.post(
    "/preferences/{page_id}/reorder",
    response_model=SectionPreferencesResponse,
    responses={422: {"model": ErrorResponse}},
)
async def reorder_sections(
    page_id: str,
    body: ReorderSectionsRequest,
    storage: PreferenceStorageDep,
    locale: LocaleQuery = "ja",
    owner_id: OwnerHeader = "anonymous",
) -> SectionPreferencesResponse:
    store = await _load_store(storage, page_id, locale, owner_id)
    try:
        persisted = await store.reorder(body.from_index, body.to_index)
    except IndexError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _layout_response(store, persisted)


@router.post("/preferences/{page_id}/reset", response_model=SectionPreferencesResponse)
async def reset_sections(
    page_id: str,
    storage: PreferenceStorageDep,
    locale: LocaleQuery = "ja",
    owner_id: OwnerHeader = "anonymous",
) -> SectionPreferencesResponse:
    store = await _load_store(storage, page_id, locale, owner_id)
    persisted = await store.reset()
    return _layout_response(store, persisted)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    state = request.app.state
    providers: dict[str, str] = {}
    catalog = getattr(state, "catalog", None)
    if catalog is not None:
        providers["catalog"] = catalog.get_provider_name()
    storage = getattr(state, "preference_storage", None)
    if storage is not None:
        providers["preferences"] = storage.get_provider_name()
    return HealthResponse(
        status="healthy",
        version=getattr(state, "app_version", "0.1.0"),
        environment=getattr(state, "app_env", "development"),
        providers=providers,
    )
