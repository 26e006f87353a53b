"""Parse raw source files into `ContentRecord` instances."""

from __future__ import annotations

import re
from typing import Any

import yaml

from .models import ContentRecord

SUPPORTED_SUFFIXES = (".mdx", ".md", ".markdown")

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


class FrontMatterError(ValueError):
    """Raised when a content file has malformed front matter."""


def slugify(value: str) -> str:
    """Lowercase ``value`` and collapse non-alphanumeric runs into single hyphens."""
    return _NON_ALNUM.sub("-", value.lower()).strip("-")


def slug_from_name(name: str) -> str:
    """Derive the record slug from its source filename."""
    stem = name
    lowered = name.lower()
    for suffix in SUPPORTED_SUFFIXES:
        if lowered.endswith(suffix):
            stem = name[: -len(suffix)]
            break
    return slugify(stem)


def parse_record(name: str, text: str) -> ContentRecord:
    """Parse one source file into a record.

    Raises ``FrontMatterError`` for structural problems and
    ``pydantic.ValidationError`` when the metadata does not match the schema.
    """
    slug = slug_from_name(name)
    if not slug:
        raise FrontMatterError(f"Cannot derive a slug from '{name}'.")

    front_matter, body = split_front_matter(text)
    data = dict(front_matter)
    # Identity always comes from the filename.
    for key in ("id", "slug", "content"):
        data.pop(key, None)

    return ContentRecord.model_validate(
        {**data, "id": slug, "slug": slug, "content": body.strip()}
    )


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split ``---`` delimited YAML front matter from the body."""
    lines = text.splitlines()
    if not lines:
        return {}, ""
    if lines[0].strip() != "---":
        return {}, text

    front_lines: list[str] = []
    for idx, line in enumerate(lines[1:], start=1):
        if line.strip() == "---":
            raw_front_matter = "\n".join(front_lines)
            body = "\n".join(lines[idx + 1 :])
            try:
                data = yaml.safe_load(raw_front_matter) or {}
            except yaml.YAMLError as exc:
                raise FrontMatterError(f"Front matter is not valid YAML: {exc}") from exc
            if not isinstance(data, dict):
                raise FrontMatterError("Front matter must be a mapping of keys to values.")
            return data, body
        front_lines.append(line)
    raise FrontMatterError("Closing front matter delimiter '---' missing.")
