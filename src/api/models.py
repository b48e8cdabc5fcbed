"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Wire field names are camelCase; Python attributes stay snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JoinWaitlistRequest(CamelModel):
    """Request model for joining the waitlist.

    Presence and grammar of the email are checked by the domain normalizer,
    not here, so that missing or invalid emails yield the structured
    rejection body.
    """

    email: str | None = Field(None, max_length=320)
    twitter: str | None = Field(None, max_length=100)
    telegram: str | None = Field(None, max_length=100)
    discord: str | None = Field(None, max_length=100)
    referral_code: str | None = Field(None, max_length=64)


class EntryData(CamelModel):
    """Created entry as exposed to the registrant."""

    email: str
    twitter: str
    telegram: str
    discord: str
    position: int
    joined_at: datetime


class JoinWaitlistResponse(CamelModel):
    """Response model for a successful join."""

    message: str
    position: int
    data: EntryData


class DuplicateResponse(CamelModel):
    """Response model for an email already on the waitlist."""

    message: str
    existing_position: int


class RejectionResponse(CamelModel):
    """Structured rejection: machine-readable kind plus message."""

    kind: str
    message: str
    retry_after: int | None = None


class EntrySummary(CamelModel):
    """Public view of an entry - never exposes other fields."""

    email: str
    position: int
    joined_at: datetime


class StatsResponse(CamelModel):
    """Total count plus the most recent submissions."""

    total: int
    recent_submissions: list[EntrySummary]


class NotificationStatusResponse(CamelModel):
    """Notification transport configuration snapshot."""

    configured: bool
    transport: str | None
    admin_email: str
    max_attempts: int


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
