"""
API Request/Response Models (Pydantic Schemas)

Defines data validation and serialization for FastAPI endpoints.
"""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


# Section search
class SearchParams(BaseModel):
    """Tuning knobs shared by the search endpoints. Unset values use server defaults."""

    match_threshold: Optional[float] = Field(
        default=None,
        description="Minimum similarity (exclusive) a section must reach",
        examples=[0.5]
    )
    match_count: Optional[int] = Field(
        default=None,
        ge=1,
        description="Maximum number of sections to return",
        examples=[10]
    )
    min_content_length: Optional[int] = Field(
        default=None,
        ge=0,
        description="Minimum section length in characters",
        examples=[30]
    )


class MatchSectionsRequest(SearchParams):
    """Request model for a search with a precomputed query embedding"""

    embedding: List[float] = Field(
        ...,
        min_length=1,
        description="Query embedding (1536 floats for text-embedding-ada-002)"
    )


class SearchSectionsRequest(SearchParams):
    """Request model for a search with query text"""

    query: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="Natural language search query",
        examples=["How do I configure custom domains?"]
    )


class SectionMatchResponse(BaseModel):
    """A matching file section"""

    path: str = Field(..., description="Path of the file the section belongs to")
    content: str = Field(..., description="Section content")
    token_count: Optional[int] = Field(None, description="Token count of the section")
    similarity: float = Field(..., description="Similarity to the query")


class MatchSectionsResponse(BaseModel):
    """Search results"""

    success: bool = Field(..., description="Whether the search succeeded")
    project_id: str = Field(..., description="Project that was searched")
    matches: List[SectionMatchResponse]
    matches_count: int = Field(..., description="Number of matches returned")


# Health Check
class HealthResponse(BaseModel):
    """Health check response"""

    status: str = Field(..., description="Service status", examples=["healthy"])
    database: str = Field(..., description="Database connection status", examples=["connected"])
    version: str = Field(..., description="API version", examples=["0.1.0"])
    timestamp: datetime = Field(default_factory=_now, description="Current server time")


# Error Response
class ErrorResponse(BaseModel):
    """Standard error response"""

    detail: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code for client handling")
    timestamp: datetime = Field(default_factory=_now)
