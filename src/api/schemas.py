"""Pydantic request/response schemas for the personalization API.

Defines the public contract for the sales-for-you panel, the
recently-viewed batch load, section layout preferences and health.

Convention: request schemas end with "Request", response schemas end
with "Response".  Candidate payloads reuse the domain model directly so
the wire shape stays in lockstep with what the aggregator produces.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from src.models.candidate import Candidate
from src.models.preferences import SectionPreference


class CandidateListResponse(BaseModel):
    """Candidates for a panel, in display order."""

    candidates: list[Candidate] = Field(default_factory=list)


class ToggleSectionRequest(BaseModel):
    """Flip visibility of one section."""

    section_id: str = Field(..., min_length=1)


class ReorderSectionsRequest(BaseModel):
    """Move the section at ``from_index`` to ``to_index``."""

    from_index: int = Field(..., ge=0)
    to_index: int = Field(..., ge=0)


class SectionPreferencesResponse(BaseModel):
    """Current layout of one page."""

    page_id: str
    sections: list[SectionPreference]
    visible_sections: list[str] = Field(
        default_factory=list, description="Ids of visible sections in display order"
    )
    # False when the last write failed; the layout shown is still current.
    persisted: bool = True


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    environment: str
    providers: dict[str, str] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
