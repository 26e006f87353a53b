"""Scaffold new media content files."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

import yaml

from .config import Config
from .content.models import MediaSource, MediaType, format_timestamp
from .content.parsers import slugify

BODY_TEMPLATE = """\
Write your content here using MDX.

You can use custom components:

<PromptBlock>
{prompt}
</PromptBlock>

<Callout type="info">
This is an info callout. Change type to "warning", "error", or "success".
</Callout>

## Behind the Scenes

Add notes about how this was created, iterations, challenges, etc.
"""


class ScaffoldError(RuntimeError):
    """Raised when scaffolding cannot continue."""


@dataclass(slots=True)
class ScaffoldResult:
    """Details about the file written during scaffolding."""

    path: Path
    slug: str
    overwritten: bool = False
    notes: list[str] = field(default_factory=list)


def normalize_slug(raw: str) -> str:
    """Convert a title into a filesystem-safe slug."""
    slug = slugify(raw)
    if not slug:
        raise ScaffoldError("Unable to derive a valid slug. Provide letters or numbers.")
    return slug


def scaffold_media(
    config: Config,
    title: str,
    *,
    media_type: MediaType = MediaType.VIDEO,
    source: MediaSource = MediaSource.SORA,
    tags: Sequence[str] = (),
    description: str | None = None,
    poster: str | None = None,
    src: str | None = None,
    username: str | None = None,
    prompt: str | None = None,
    force: bool = False,
    now: datetime | None = None,
) -> ScaffoldResult:
    """Create ``<content_dir>/<slug>.mdx`` with front matter for a new item."""
    title = title.strip()
    if not title:
        raise ScaffoldError("Title is required.")
    slug = normalize_slug(title)

    content_dir = config.content_dir
    content_dir.mkdir(parents=True, exist_ok=True)
    path = content_dir / f"{slug}.mdx"
    existed = path.exists()
    if existed and not force:
        raise ScaffoldError(f"File already exists: {path.name}")

    front_matter = render_front_matter(
        title,
        created_at=now or datetime.now(timezone.utc),
        media_type=media_type,
        source=source,
        tags=tags,
        description=description,
        poster=poster,
        src=src,
        username=username or config.site.default_username,
        prompt=prompt,
    )
    body = BODY_TEMPLATE.format(prompt=prompt or "Enter your Sora prompt here...")
    path.write_text(f"---\n{front_matter}---\n\n{body}", encoding="utf-8")

    result = ScaffoldResult(path=path, slug=slug, overwritten=existed)
    result.notes.append("Edit the file to add your content, then run 'mediafeed lint'.")
    return result


def render_front_matter(
    title: str,
    *,
    created_at: datetime,
    media_type: MediaType,
    source: MediaSource,
    tags: Sequence[str],
    description: str | None,
    poster: str | None,
    src: str | None,
    username: str,
    prompt: str | None,
) -> str:
    data: dict[str, Any] = {
        "title": title,
        "createdAt": format_timestamp(created_at),
        "type": MediaType(media_type).value,
        "source": MediaSource(source).value,
        "visibility": "public",
        "tags": [tag.strip() for tag in tags if tag.strip()],
    }
    if description:
        data["description"] = description
    assets = {key: value for key, value in (("poster", poster), ("src", src)) if value}
    data["assets"] = assets
    if MediaSource(source) is MediaSource.SORA:
        sora: dict[str, str] = {"username": username}
        if prompt:
            sora["prompt"] = prompt
        data["sora"] = sora
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
