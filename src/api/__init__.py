"""Personalization API layer: routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    CandidateListResponse,
    ErrorResponse,
    HealthResponse,
    ReorderSectionsRequest,
    SectionPreferencesResponse,
    ToggleSectionRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "CandidateListResponse",
    "ErrorResponse",
    "HealthResponse",
    "ReorderSectionsRequest",
    "SectionPreferencesResponse",
    "ToggleSectionRequest",
]
