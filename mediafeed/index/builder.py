"""Build the sorted in-memory media index from a content source."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from pydantic import ValidationError

from ..content.models import ContentRecord
from ..content.parsers import FrontMatterError, parse_record, slug_from_name
from ..content.sources import ContentSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RecordIssue:
    """A source record that was left out of the index."""

    name: str
    slug: str
    message: str


@dataclass(frozen=True, slots=True)
class IndexBuild:
    """Immutable snapshot produced by one index build."""

    items: tuple[ContentRecord, ...] = ()
    issues: tuple[RecordIssue, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.items)

    def public_items(self) -> list[ContentRecord]:
        return [item for item in self.items if item.is_public]


def build_index(source: ContentSource) -> IndexBuild:
    """Parse every record from ``source`` into a sorted index.

    Invalid records and duplicate slugs are reported as issues rather than
    raised. Errors reading the source itself propagate to the caller.
    """
    records: list[ContentRecord] = []
    issues: list[RecordIssue] = []
    seen: dict[str, str] = {}

    for raw in source.iter_records():
        slug = slug_from_name(raw.name)
        if raw.error is not None:
            issues.append(RecordIssue(raw.name, slug, f"Unreadable: {raw.error}"))
            continue
        try:
            record = parse_record(raw.name, raw.text)
        except FrontMatterError as exc:
            _skip(issues, raw.name, slug, str(exc))
            continue
        except ValidationError as exc:
            _skip(issues, raw.name, slug, _describe_validation_error(exc))
            continue

        if record.slug in seen:
            message = f"Duplicate slug '{record.slug}' (already defined by {seen[record.slug]})"
            _skip(issues, raw.name, record.slug, message)
            continue
        seen[record.slug] = raw.name
        records.append(record)

    return IndexBuild(items=tuple(sort_records(records)), issues=tuple(issues))


def sort_records(records: Iterable[ContentRecord]) -> list[ContentRecord]:
    """Order records newest first, breaking ties by ascending slug."""
    ordered = sorted(records, key=lambda record: record.slug)
    ordered.sort(key=lambda record: record.created_at, reverse=True)
    return ordered


def _skip(issues: list[RecordIssue], name: str, slug: str, message: str) -> None:
    logger.warning("Skipping %s: %s", name, message)
    issues.append(RecordIssue(name=name, slug=slug, message=message))


def _describe_validation_error(exc: ValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        location = ".".join(str(elem) for elem in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or str(exc)

