"""Derive filtered views of the index without mutating it."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..content.models import ContentRecord, MediaType
from .models import FeedQuery


def visible_records(
    items: Iterable[ContentRecord], include_unlisted: bool = False
) -> list[ContentRecord]:
    if include_unlisted:
        return list(items)
    return [item for item in items if item.is_public]


def search_records(
    items: Iterable[ContentRecord], term: str, include_unlisted: bool = False
) -> list[ContentRecord]:
    """Case-insensitive substring match on title, description and tags."""
    needle = term.lower()
    matches: list[ContentRecord] = []
    for item in visible_records(items, include_unlisted):
        if needle in item.title.lower():
            matches.append(item)
        elif item.description and needle in item.description.lower():
            matches.append(item)
        elif any(needle in tag.lower() for tag in item.tags):
            matches.append(item)
    return matches


def records_by_type(
    items: Iterable[ContentRecord], media_type: MediaType | str, include_unlisted: bool = False
) -> list[ContentRecord]:
    wanted = MediaType(media_type)
    return [item for item in visible_records(items, include_unlisted) if item.type is wanted]


def records_by_tag(
    items: Iterable[ContentRecord], tag: str, include_unlisted: bool = False
) -> list[ContentRecord]:
    return [item for item in visible_records(items, include_unlisted) if tag in item.tags]


def apply_filters(items: Sequence[ContentRecord], query: FeedQuery) -> list[ContentRecord]:
    """Select the base set for ``query``.

    ``search``, ``type`` and ``tag`` are mutually exclusive selectors applied in
    that order of precedence; only the first one present is used.
    """
    include_unlisted = query.include_unlisted
    if query.search:
        return search_records(items, query.search, include_unlisted)
    if query.type is not None:
        return records_by_type(items, query.type, include_unlisted)
    if query.tag:
        return records_by_tag(items, query.tag, include_unlisted)
    return visible_records(items, include_unlisted)


def collect_tags(items: Iterable[ContentRecord]) -> list[str]:
    """Sorted distinct tags across public records."""
    tags: set[str] = set()
    for item in visible_records(items):
        tags.update(item.tags)
    return sorted(tags)


def find_record(items: Iterable[ContentRecord], slug: str) -> Optional[ContentRecord]:
    for item in items:
        if item.slug == slug:
            return item
    return None
