"""Pydantic models for feed queries and pages."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..content.models import ContentRecord, MediaType

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


class QueryError(ValueError):
    """Raised when feed query parameters are invalid."""

    def __init__(self, message: str, *, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = list(details or [])


class FeedQuery(BaseModel):
    """Parameters accepted by the feed surface."""

    model_config = ConfigDict(frozen=True)

    cursor: Optional[str] = Field(default=None, description="Opaque continuation token.")
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    type: Optional[MediaType] = Field(default=None)
    tag: Optional[str] = Field(default=None)
    search: Optional[str] = Field(default=None)
    include_unlisted: bool = Field(default=False)

    @field_validator("cursor", "tag", "search", mode="before")
    def _blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class FeedPage(BaseModel):
    """One page of feed results."""

    items: list[ContentRecord] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(default=None)
    has_more: bool = Field(default=False)

    def to_api(self) -> dict[str, Any]:
        return {
            "items": [item.to_api() for item in self.items],
            "nextCursor": self.next_cursor,
            "hasMore": self.has_more,
        }


def parse_feed_query(params: Mapping[str, Any]) -> FeedQuery:
    """Validate raw request parameters, treating blank values as absent."""
    data: dict[str, Any] = {}
    for key in ("cursor", "limit", "type", "tag", "search"):
        value = params.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            if not value.strip():
                continue
            value = value.strip() if key in ("limit", "type") else value
        data[key] = value

    try:
        return FeedQuery.model_validate(data)
    except ValidationError as exc:
        details = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise QueryError("Invalid request parameters", details=details) from exc
