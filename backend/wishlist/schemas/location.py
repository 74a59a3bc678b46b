"""
Wishlist Backend — Pydantic Request/Response Schemas
====================================================

What:  The API contract between the frontend and the backend.
How:   Response models read ORM objects directly (from_attributes) and
       serialize with camelCase aliases, which FastAPI applies by default
       (response_model_by_alias=True):

           image_url    → imageURL
           image_status → imageStatus
           created_at   → createdAt
           suggestions  → Suggestions

Schemas stay separate from the SQLAlchemy models so internal columns
(image_key) never reach clients.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SuggestionResponse(BaseModel):
    idea: str = Field(description="The suggested idea")
    votes: int = Field(description="Net votes; may be negative")

    model_config = {"from_attributes": True}


class LocationResponse(BaseModel):
    """
    A Location with its Suggestions, oldest Suggestion first.

    imageURL is null while the photo upload is still pending.
    """

    id: uuid.UUID = Field(description="Unique location identifier (UUID)")
    address: str = Field(description="Submitted street address")
    image_url: Optional[str] = Field(
        default=None,
        serialization_alias="imageURL",
        description="Public URL of the photo; null until attached",
    )
    image_status: str = Field(
        serialization_alias="imageStatus",
        description="Upload state: pending or attached",
    )
    approved: bool = Field(description="Whether staff approved the location")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")
    suggestions: List[SuggestionResponse] = Field(
        default_factory=list,
        serialization_alias="Suggestions",
    )

    model_config = {"from_attributes": True}


class SubmissionResponse(BaseModel):
    """Returned by POST /api/locations with HTTP 201 Created."""

    success: bool = Field(default=True)
    id: uuid.UUID = Field(description="Identifier of the new location")
    image_url: str = Field(serialization_alias="imageURL")


class ApprovalResponse(BaseModel):
    """
    Result of a staff action. For approve it is the new flag value; for
    reject it is the value the location had before it was deleted.
    """

    id: uuid.UUID
    approved: bool


class IdeaResponse(BaseModel):
    created: bool = Field(description="False when the idea already existed")


class VoteResponse(BaseModel):
    idea: str
    votes: int = Field(description="Vote count after this vote")


class TokenResponse(BaseModel):
    token: str = Field(description="Bearer token for staff-only routes")
    token_type: str = Field(default="bearer", serialization_alias="tokenType")


class HealthResponse(BaseModel):
    """
    Returned by GET /health.

    status is "healthy" when both dependencies respond, "unhealthy" when the
    database is down, "degraded" when only the object store is.
    """

    status: str
    version: str
    database: str = Field(description="connected or disconnected")
    object_store: str = Field(description="available or unavailable")
    uptime_seconds: float


class ErrorResponse(BaseModel):
    """Body of every error response produced by the exception handlers."""

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable description")
    details: Optional[Dict[str, Any]] = Field(default=None)
    request_id: Optional[str] = Field(default=None)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════
# Emptiness is checked by LocationService so that HTTP clients and direct
# callers get the same ValidationError.


class IdeaRequest(BaseModel):
    idea: str = Field(description="Idea text; matched exactly after trimming")


class SignInRequest(BaseModel):
    login: str
    password: str
