"""Pydantic models for catalog entities.

Field names are snake_case; the persisted property names (youtubeId) are
the aliases, so models load straight from store property dicts and dump
back with by_alias=True.
"""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from .store import CHANNEL, SERIES, VIDEO


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to timezone-aware UTC; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Entity(BaseModel):
    """Base for labeled catalog nodes with a slug id."""

    LABEL: ClassVar[str]
    ID_SOURCE: ClassVar[str]
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]]

    id: Optional[str] = Field(default=None, description="Slug id, assigned on first save")

    model_config = {
        "extra": "ignore",  # Unknown store properties are dropped
        "validate_assignment": True,
        "populate_by_name": True,
    }

    def missing_fields(self) -> List[str]:
        """Return required fields that are unset."""
        return [name for name in self.REQUIRED_FIELDS if getattr(self, name) is None]

    def id_source(self) -> str:
        """Return the display string the id is derived from."""
        return getattr(self, self.ID_SOURCE)

    def to_properties(self) -> Dict[str, Any]:
        """Return persisted properties (id and unset fields excluded)."""
        return self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)

    @classmethod
    def from_properties(cls, properties: Dict[str, Any]) -> "Entity":
        """Build an entity from a store property dict."""
        return cls.model_validate(properties)


class Channel(Entity):
    """A YouTube channel."""

    LABEL: ClassVar[str] = CHANNEL
    ID_SOURCE: ClassVar[str] = "name"
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("youtube_id", "name")

    youtube_id: Optional[str] = Field(default=None, alias="youtubeId", description="YouTube channel id")
    name: Optional[str] = Field(default=None, description="Channel name")
    updated: Optional[datetime] = Field(default=None, description="Last write time (UTC)")

    @field_validator("updated")
    @classmethod
    def validate_updated(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class Series(Entity):
    """A named run of videos (a Let's Play, a tournament, ...)."""

    LABEL: ClassVar[str] = SERIES
    ID_SOURCE: ClassVar[str] = "name"
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("name",)

    name: Optional[str] = Field(default=None, description="Series name")
    updated: Optional[datetime] = Field(default=None, description="Last write time (UTC)")

    @field_validator("updated")
    @classmethod
    def validate_updated(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class Video(Entity):
    """A single YouTube video."""

    LABEL: ClassVar[str] = VIDEO
    ID_SOURCE: ClassVar[str] = "title"
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("title", "published", "youtube_id")

    youtube_id: Optional[str] = Field(default=None, alias="youtubeId", description="YouTube video id")
    title: Optional[str] = Field(default=None, description="Video title")
    published: Optional[datetime] = Field(default=None, description="Publish time (UTC)")

    @field_validator("published")
    @classmethod
    def validate_published(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)
