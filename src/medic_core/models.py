"""
Pydantic models for the Medic data layer.

Attributes are snake_case in Python and camelCase on disk, so persisted
JSON keeps the layout the website has always used (``gameUsername``,
``requestNumber``, ``createdAt`` ...). Records accept and preserve unknown
fields supplied by callers.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# =============================================================================
# Type Aliases
# =============================================================================

RecordStatus = Literal["pending", "approved", "rejected"]
"""Review status shared by applications and uploads."""

RECORD_STATUSES: tuple[str, ...] = ("pending", "approved", "rejected")

TicketStatus = Literal["open", "in-review", "answered", "closed"]
"""
Ticket lifecycle:
- open: created, nobody has replied
- in-review: the creator (or another non-admin sender) replied last
- answered: the admin sender replied last
- closed: explicitly closed
"""

TICKET_STATUSES: tuple[str, ...] = ("open", "in-review", "answered", "closed")
TICKET_CATEGORIES: tuple[str, ...] = ("general", "technical", "membership", "gallery", "other")
TICKET_PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "urgent")

TicketCategory = Literal["general", "technical", "membership", "gallery", "other"]
TicketPriority = Literal["low", "medium", "high", "urgent"]

RecordType = Literal["applications", "uploads"]
SearchScope = Literal["all", "applications", "uploads"]


# =============================================================================
# Base Model
# =============================================================================


class MedicModel(BaseModel):
    """
    Base model for persisted records.

    Configuration:
    - alias_generator: camelCase names on disk
    - populate_by_name: construct with either snake_case or camelCase
    - extra="allow": round-trip fields this version does not know about
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_dict(self) -> dict[str, Any]:
        """Plain dict in the persisted (camelCase) shape."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def normalize_keys(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Rename snake_case keys of known fields to their camelCase aliases."""
        aliases = {name: field.alias for name, field in cls.model_fields.items() if field.alias}
        return {aliases.get(key, key): value for key, value in data.items()}


# =============================================================================
# Applications & Uploads
# =============================================================================


class Application(MedicModel):
    """Membership application."""

    id: str
    request_number: str
    game_username: str = Field(min_length=1)
    discord_id: Optional[str] = None
    experience: Optional[str] = None
    play_time: Optional[str] = None
    why_join: Optional[str] = None
    timestamp: str
    status: RecordStatus = "pending"


class Upload(MedicModel):
    """Gallery media upload request."""

    id: str
    upload_number: str
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: str = "operations"
    date: str
    status: RecordStatus = "pending"


class ActivityLogEntry(MedicModel):
    """One entry of the append-only activity log."""

    id: int  # epoch milliseconds
    timestamp: str
    action: str
    data: Any = Field(default_factory=dict)
    user_agent: str = "medic-core"
    ip: str = "local"


class SearchHit(MedicModel):
    """Single search result."""

    type: Literal["application", "upload"]
    data: Union[Application, Upload]


# =============================================================================
# Tickets
# =============================================================================


class TicketMessage(MedicModel):
    """Message in a ticket thread."""

    id: str
    text: str
    sender: str
    timestamp: str


class Ticket(MedicModel):
    """Support ticket with its ordered message thread."""

    id: str
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: TicketCategory = "general"
    priority: TicketPriority = "medium"
    status: TicketStatus = "open"
    created_by: str
    created_at: str
    updated_at: str
    messages: list[TicketMessage] = Field(default_factory=list)


# =============================================================================
# Ratings
# =============================================================================


class Rating(MedicModel):
    """A rater's score for a target; unique per (target_id, rater)."""

    id: str
    target_id: str
    rating: int = Field(ge=1, le=5)
    comment: str = ""
    rater: str = "anonymous"
    timestamp: str


# =============================================================================
# Operation Results
# =============================================================================


class OperationResult(MedicModel):
    """
    Outcome of a write operation.

    Failed results carry the error ``code`` (VALIDATION_ERROR, NOT_FOUND,
    INVALID_STATUS, STORAGE_FAILURE ...) and a readable ``message``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    success: bool
    message: str
    code: Optional[str] = None
    data: Any = None
    request_number: Optional[str] = None
    ticket_id: Optional[str] = None

    @classmethod
    def ok(cls, message: str, **kwargs: Any) -> OperationResult:
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def from_error(cls, error: Any) -> OperationResult:
        """Build a failed result from a MedicError."""
        return cls(**error.to_result())

    def to_dict(self) -> dict[str, Any]:
        """Camel-case dict; code and the record identifiers appear only when set."""
        data = super().to_dict()
        for key in ("code", "requestNumber", "ticketId"):
            if data.get(key) is None:
                data.pop(key, None)
        return data
