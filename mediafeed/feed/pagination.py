"""Cursor-based pagination over filtered index views."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from ..content.models import ContentRecord
from .filters import apply_filters
from .models import DEFAULT_LIMIT, FeedPage, FeedQuery, QueryError

# Tokens from encode_cursor stay far below this; anything longer is not ours.
MAX_CURSOR_LENGTH = 1024


@dataclass(frozen=True, slots=True)
class Cursor:
    """Position of the last item returned on a previous page."""

    created_at: datetime
    slug: str

    def matches(self, record: ContentRecord) -> bool:
        return record.slug == self.slug and record.created_at == self.created_at


def encode_cursor(record: ContentRecord) -> str:
    """Encode the position of ``record`` as a url-safe token."""
    created = record.created_at.astimezone(timezone.utc).isoformat()
    payload = json.dumps({"c": created, "s": record.slug}, separators=(",", ":"), sort_keys=True)
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: str | None) -> Optional[Cursor]:
    """Decode a token from ``encode_cursor``; malformed tokens yield ``None``."""
    if not token or len(token) > MAX_CURSOR_LENGTH:
        return None
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeEncodeError, RecursionError):
        return None
    if not isinstance(payload, dict):
        return None
    created, slug = payload.get("c"), payload.get("s")
    if not isinstance(created, str) or not isinstance(slug, str) or not slug:
        return None
    try:
        created_at = datetime.fromisoformat(created)
    except ValueError:
        return None
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return Cursor(created_at=created_at, slug=slug)


def paginate(
    records: Sequence[ContentRecord],
    *,
    cursor: str | None = None,
    limit: int = DEFAULT_LIMIT,
) -> FeedPage:
    """Return the page following ``cursor`` in ``records``.

    A cursor that is malformed or no longer matches any record restarts from the
    beginning of ``records``.
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise QueryError("limit must be a positive integer", details=[f"limit: {limit!r}"])

    start = 0
    position = decode_cursor(cursor)
    if position is not None:
        for index, record in enumerate(records):
            if position.matches(record):
                start = index + 1
                break

    window = list(records[start : start + limit + 1])
    has_more = len(window) > limit
    items = window[:limit]
    next_cursor = encode_cursor(items[-1]) if has_more and items else None
    return FeedPage(items=items, next_cursor=next_cursor, has_more=has_more)


def get_feed(items: Sequence[ContentRecord], query: FeedQuery) -> FeedPage:
    """Filter the index for ``query`` and return the requested page."""
    filtered = apply_filters(items, query)
    return paginate(filtered, cursor=query.cursor, limit=query.limit)
