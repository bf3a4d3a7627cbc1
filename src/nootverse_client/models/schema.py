"""Data models for the Nootverse client."""

import datetime
import uuid
from dataclasses import dataclass
from datetime import timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator

from nootverse_client.exceptions import ErrorCode, ValidationError

# Wire timestamps are nanoseconds since the epoch
NANOS_PER_MILLI = 1_000_000

# Principal the actor reports for unauthenticated callers
ANONYMOUS_PRINCIPAL = "2vxsx-fae"


def utc_now() -> datetime.datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.datetime.now(timezone.utc)


def now_ms() -> int:
    """Current wall-clock time as a millisecond epoch value."""
    return int(utc_now().timestamp() * 1000)


def generate_id() -> str:
    """Generate a stable random identifier for a client-created note."""
    return str(uuid.uuid4())


def ns_to_ms(value: Union[int, str]) -> int:
    """Convert a nanosecond wire value to a millisecond epoch value.

    Bigint fields may arrive as decimal strings depending on the channel,
    so both encodings are accepted.
    """
    return int(value) // NANOS_PER_MILLI


def ms_to_datetime(value: int) -> datetime.datetime:
    """Convert a millisecond epoch value to an aware UTC datetime."""
    return datetime.datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Trim tags, drop empty ones and duplicates, keep first-seen order.

    Comparison is case-sensitive: "Work" and "work" are distinct tags.
    """
    result: List[str] = []
    for tag in tags:
        name = tag.strip()
        if name and name not in result:
            result.append(name)
    return result


def add_tag(tags: List[str], candidate: str) -> List[str]:
    """Return ``tags`` with ``candidate`` appended, as the tag editor does.

    Blank candidates and tags already present are ignored.
    """
    name = candidate.strip()
    if not name or name in tags:
        return list(tags)
    return [*tags, name]


def remove_tag(tags: List[str], name: str) -> List[str]:
    """Return ``tags`` without ``name`` (no-op when absent)."""
    return [tag for tag in tags if tag != name]


class RecordKind(str, Enum):
    """The two record shapes the actor stores."""

    NOTE = "note"
    UNIVERSE = "universe"


class Scope(str, Enum):
    """A named remote list with its own position space."""

    OWNED = "owned"  # Records belonging to the calling principal
    PUBLIC = "public"  # Universes anyone has published


class Note(BaseModel):
    """A short markdown note owned by the caller."""

    id: str = Field(..., description="Client-generated stable identifier")
    title: str = Field(..., description="Title of the note")
    content: str = Field(default="", description="Markdown content")
    tags: List[str] = Field(default_factory=list, description="Ordered distinct tags")

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return normalize_tags(v)

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> "Note":
        """Build a note from the actor's record encoding."""
        return cls(
            id=payload["id"],
            title=payload["title"],
            content=payload.get("content", ""),
            tags=list(payload.get("tags", [])),
        )

    def matches_text(self) -> List[str]:
        """Fields searched by the local filter."""
        return [self.title, self.content, *self.tags]


class Universe(BaseModel):
    """A titled, optionally public piece of writing.

    Timestamps are kept as millisecond epoch values; the actor reports
    nanoseconds and conversion happens in :meth:`from_wire`.
    """

    id: str = Field(..., description="Server-assigned identifier")
    title: str
    description: str = ""
    content: str = ""
    is_public: bool = False
    tags: List[str] = Field(default_factory=list)
    created_at_ms: int = Field(..., ge=0)
    updated_at_ms: int = Field(..., ge=0)

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return normalize_tags(v)

    @property
    def created_at(self) -> datetime.datetime:
        return ms_to_datetime(self.created_at_ms)

    @property
    def updated_at(self) -> datetime.datetime:
        return ms_to_datetime(self.updated_at_ms)

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> "Universe":
        """Build a universe from the actor's record encoding."""
        return cls(
            id=payload["id"],
            title=payload["title"],
            description=payload.get("description", ""),
            content=payload.get("content", ""),
            is_public=bool(payload.get("isPublic", False)),
            tags=list(payload.get("tags", [])),
            created_at_ms=ns_to_ms(payload["createdAt"]),
            updated_at_ms=ns_to_ms(payload["updatedAt"]),
        )

    def matches_text(self) -> List[str]:
        return [self.title, self.description, self.content, *self.tags]


Record = Union[Note, Universe]


class _RecordInput(BaseModel):
    """Fields a user enters in an editor dialog."""

    title: str = ""
    content: str = ""
    tags: List[str] = Field(default_factory=list)

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return normalize_tags(v)

    def require_title(self) -> None:
        """Raise ValidationError unless the trimmed title is non-empty."""
        if not self.title:
            raise ValidationError(
                "Title cannot be empty",
                field="title",
                code=ErrorCode.TITLE_REQUIRED,
            )


class NoteInput(_RecordInput):
    """Editor fields for a note."""

    @classmethod
    def from_note(cls, note: Note) -> "NoteInput":
        return cls(title=note.title, content=note.content, tags=note.tags)


class UniverseInput(_RecordInput):
    """Editor fields for a universe."""

    description: str = ""
    is_public: bool = False

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        return v.strip()

    @classmethod
    def from_universe(cls, universe: Universe) -> "UniverseInput":
        return cls(
            title=universe.title,
            description=universe.description,
            content=universe.content,
            is_public=universe.is_public,
            tags=universe.tags,
        )

    def to_wire(self) -> Dict[str, Any]:
        """Encode as the actor's UniverseInput record."""
        return {
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "isPublic": self.is_public,
            "tags": list(self.tags),
        }


RecordInput = Union[NoteInput, UniverseInput]


class Stats(BaseModel):
    """Aggregate counters derived by the actor. Read-only."""

    total_universes: int = 0
    public_universes: int = 0
    total_users: int = 0

    model_config = {"frozen": True}

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> "Stats":
        return cls(
            total_universes=int(payload["totalUniverses"]),
            public_universes=int(payload["publicUniverses"]),
            total_users=int(payload["totalUsers"]),
        )


@dataclass(frozen=True)
class Session:
    """Authentication status handed over by the credential provider.

    Attributes:
        authenticated: Whether the provider reports a signed-in user.
        credential: Opaque credential passed to the channel, if any.
        principal: Identity handle derived from the credential.
    """

    authenticated: bool
    credential: Optional[str] = None
    principal: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "Session":
        return cls(authenticated=False)

    @classmethod
    def signed_in(cls, credential: str, principal: Optional[str] = None) -> "Session":
        return cls(authenticated=True, credential=credential, principal=principal)
