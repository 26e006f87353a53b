"""Lint diagnostics for media content files."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, auto
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from pydantic import ValidationError

from .config import Config
from .content.parsers import FrontMatterError, parse_record, slug_from_name, split_front_matter
from .content.sources import ContentSourceError, DirectorySource

SCHEMA_PACKAGE = "mediafeed.schemas"
FRONTMATTER_SCHEMA_NAME = "media_frontmatter.schema.json"
SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")


class IssueSeverity(Enum):
    """Severity level for lint issues."""

    ERROR = auto()
    WARNING = auto()


@dataclass(slots=True)
class DocumentIssue:
    """Represents a lint finding for a content file."""

    slug: str
    source_path: str
    message: str
    severity: IssueSeverity
    pointer: str | None = None


@dataclass(slots=True)
class LintReport:
    """Aggregate lint results for a workspace."""

    issues: list[DocumentIssue] = field(default_factory=list)
    document_count: int = 0

    def add(self, issue: DocumentIssue) -> None:
        self.issues.append(issue)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity is IssueSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity is IssueSeverity.WARNING)

    def invalid_files(self) -> set[str]:
        return {
            issue.source_path for issue in self.issues if issue.severity is IssueSeverity.ERROR
        }


def lint_workspace(config: Config) -> LintReport:
    """Lint every content file in the configured content directory."""
    content_dir = config.content_dir
    if not content_dir.is_dir():
        raise ContentSourceError(f"Content directory not found: {content_dir}")

    report = LintReport()
    seen: dict[str, str] = {}
    for raw in DirectorySource(content_dir).iter_records():
        report.document_count += 1
        source_path = raw.location or raw.name
        slug = slug_from_name(raw.name)
        if raw.error is not None:
            report.add(_error(slug, source_path, f"Unreadable file: {raw.error}"))
            continue

        issues = lint_text(raw.name, raw.text, config, source_path=source_path)
        for issue in issues:
            report.add(issue)

        # Only records the index builder would accept can claim a slug.
        if not _is_indexable(raw.name, raw.text):
            continue
        if slug in seen:
            report.add(
                _error(slug, source_path, f"Duplicate slug '{slug}' (also used by {seen[slug]})")
            )
        else:
            seen[slug] = raw.name

    return report


def lint_text(
    name: str, text: str, config: Config, *, source_path: str | None = None
) -> list[DocumentIssue]:
    """Run lint checks against a single content file."""
    source_path = source_path or name
    slug = slug_from_name(name)
    issues: list[DocumentIssue] = []

    stem = name.rsplit(".", 1)[0]
    if not SLUG_PATTERN.match(stem):
        issues.append(
            _error(
                slug,
                source_path,
                "Invalid filename: must be lowercase alphanumeric with hyphens only",
            )
        )

    try:
        data, _ = split_front_matter(text)
    except FrontMatterError as exc:
        issues.append(_error(slug, source_path, f"Parse error: {exc}"))
        return issues

    validator = _get_frontmatter_validator()
    errors = sorted(validator.iter_errors(_jsonable(data)), key=lambda err: list(err.path))
    for error in errors:
        pointer = "/".join(str(elem) for elem in error.path) or None
        issues.append(
            _error(slug, source_path, f"Schema validation failed: {error.message}", pointer=pointer)
        )

    if not errors:
        try:
            parse_record(name, text)
        except ValidationError as exc:
            for detail in exc.errors():
                pointer = "/".join(str(elem) for elem in detail.get("loc", ())) or None
                issues.append(
                    _error(slug, source_path, f"Invalid value: {detail.get('msg')}", pointer=pointer)
                )
        except FrontMatterError as exc:
            issues.append(_error(slug, source_path, str(exc)))

    issues.extend(_lint_assets(slug, source_path, data, config))

    if data.get("source", "sora") == "sora":
        sora = data.get("sora")
        if not isinstance(sora, dict) or not sora.get("username"):
            issues.append(
                _warning(slug, source_path, "Sora item without sora.username", pointer="sora")
            )

    if data.get("visibility") == "unlisted":
        issues.append(
            _warning(
                slug,
                source_path,
                "Item is unlisted and will not appear in feeds.",
                pointer="visibility",
            )
        )

    return issues


def _is_indexable(name: str, text: str) -> bool:
    try:
        parse_record(name, text)
    except (FrontMatterError, ValidationError):
        return False
    return True


def _lint_assets(
    slug: str, source_path: str, data: dict[str, Any], config: Config
) -> list[DocumentIssue]:
    assets = data.get("assets")
    if not isinstance(assets, dict):
        return []
    issues: list[DocumentIssue] = []
    for key, label in (("poster", "Poster"), ("src", "Source")):
        value = assets.get(key)
        if not isinstance(value, str) or not value.startswith("/"):
            continue
        resolved = _resolve_public_path(value, config)
        if resolved is None or not resolved.exists():
            issues.append(
                _warning(
                    slug,
                    source_path,
                    f"{label} file not found: {value}",
                    pointer=f"assets/{key}",
                )
            )
    return issues


def _resolve_public_path(value: str, config: Config) -> Path | None:
    base = config.public_dir.resolve()
    candidate = (base / value.lstrip("/")).resolve()
    try:
        candidate.relative_to(base)
    except ValueError:
        return None
    return candidate


def _jsonable(data: dict[str, Any]) -> Any:
    def _default(value: Any) -> Any:
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        return str(value)

    return json.loads(json.dumps(data, default=_default))


def _error(
    slug: str, source_path: str, message: str, *, pointer: str | None = None
) -> DocumentIssue:
    return DocumentIssue(slug, source_path, message, IssueSeverity.ERROR, pointer)


def _warning(
    slug: str, source_path: str, message: str, *, pointer: str | None = None
) -> DocumentIssue:
    return DocumentIssue(slug, source_path, message, IssueSeverity.WARNING, pointer)


@lru_cache(maxsize=1)
def _get_frontmatter_validator() -> Draft202012Validator:
    return Draft202012Validator(_load_schema(FRONTMATTER_SCHEMA_NAME))


def _load_schema(name: str) -> dict[str, Any]:
    with resources.files(SCHEMA_PACKAGE).joinpath(name).open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Schema '{name}' must be a JSON object.")
    return payload
