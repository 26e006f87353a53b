"""Typed representations of media content records."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MediaType(str, Enum):
    """High-level kind of a media item."""

    VIDEO = "video"
    IMAGE = "image"
    GAME = "game"
    OTHER = "other"


class MediaSource(str, Enum):
    """Where a media item originated."""

    SORA = "sora"
    UPLOAD = "upload"
    EXTERNAL = "external"


class Visibility(str, Enum):
    """Whether an item is listed in feeds."""

    PUBLIC = "public"
    UNLISTED = "unlisted"


class _AliasedModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class VideoSource(_AliasedModel):
    """Alternate encoding of a video, e.g. webm next to mp4."""

    src: str
    type: str


class SoraMetadata(_AliasedModel):
    """Origin details for items generated with Sora."""

    username: str
    sora_id: Optional[str] = Field(default=None, alias="soraId")
    prompt: Optional[str] = Field(default=None)
    model: Optional[str] = Field(default=None)


class MediaAssets(_AliasedModel):
    """Poster, sources and dimensions associated with an item."""

    poster: Optional[str] = Field(default=None, description="Poster/thumbnail URL.")
    src: Optional[str] = Field(default=None, description="Primary media URL.")
    sources: Optional[list[VideoSource]] = Field(default=None)
    width: Optional[float] = Field(default=None)
    height: Optional[float] = Field(default=None)
    duration_sec: Optional[float] = Field(default=None, alias="durationSec")
    embed_url: Optional[str] = Field(
        default=None, alias="embedUrl", description="Iframe URL for embedded games."
    )


class MediaFrontmatter(_AliasedModel):
    """Front-matter metadata for a media file."""

    title: str = Field(description="Display title.")
    created_at: datetime = Field(alias="createdAt", description="Creation timestamp.")
    type: MediaType
    source: MediaSource = Field(default=MediaSource.SORA)
    visibility: Visibility = Field(default=Visibility.PUBLIC)
    tags: list[str] = Field(default_factory=list)
    description: Optional[str] = Field(default=None)
    assets: MediaAssets = Field(default_factory=MediaAssets)
    source_metadata: Optional[SoraMetadata] = Field(default=None, alias="sora")

    @field_validator("title")
    def _require_title(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("title cannot be empty")
        return cleaned

    @field_validator("created_at", mode="before")
    def _coerce_date(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value
        # YAML turns bare dates into ``date`` objects.
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        if not isinstance(value, str):
            raise ValueError("createdAt must be an ISO-8601 timestamp")
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValueError(f"createdAt is not an ISO-8601 timestamp: {value!r}") from exc

    @field_validator("created_at")
    def _ensure_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("tags", mode="before")
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("assets", mode="before")
    def _none_as_empty_assets(cls, value: Any) -> Any:
        return {} if value is None else value


class ContentRecord(MediaFrontmatter):
    """Full representation of a media item in the index."""

    id: str = Field(description="Identity key, equal to the slug.")
    slug: str = Field(description="URL-friendly identifier derived from the filename.")
    body: str = Field(default="", alias="content", description="Raw MDX body.")

    @property
    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC

    @property
    def created_at_iso(self) -> str:
        return format_timestamp(self.created_at)

    def to_api(self) -> dict[str, Any]:
        """Serialize using the camelCase names exposed by the feed API."""
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        payload["createdAt"] = self.created_at_iso
        return payload


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with a ``Z`` suffix."""
    normalized = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return (
        normalized.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )
