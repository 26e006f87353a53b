"""Syndication feed generation (RSS, Atom and JSON Feed)."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime as format_rfc2822
from html import escape
from pathlib import Path
from typing import Sequence

from .config import Config, SiteConfig
from .content.models import ContentRecord, MediaType
from .index.builder import IndexBuild
from .markdown import render_body

logger = logging.getLogger(__name__)

MEDIA_NS = "http://search.yahoo.com/mrss/"
ATOM_NS = "http://www.w3.org/2005/Atom"


@dataclass(slots=True)
class FeedEntry:
    """Normalized feed entry derived from an index record."""

    slug: str
    title: str
    url: str
    summary: str
    tags: list[str]
    published: datetime
    enclosure: str | None
    image: str | None
    content_html: str
    content_type: str

    @property
    def identifier(self) -> str:
        return self.url


def collect_entries(
    items: Sequence[ContentRecord], site: SiteConfig, *, limit: int
) -> list[FeedEntry]:
    """Take the newest ``limit`` public records in index order."""
    entries: list[FeedEntry] = []
    for item in items:
        if not item.is_public:
            continue
        enclosure = None
        if item.type is MediaType.VIDEO and item.assets.src:
            enclosure = _make_absolute(item.assets.src, site.base_url)
        image = _make_absolute(item.assets.poster, site.base_url) if item.assets.poster else None
        entries.append(
            FeedEntry(
                slug=item.slug,
                title=item.title,
                url=item_url(item.slug, site.base_url),
                summary=item.description or item.title,
                tags=list(item.tags),
                published=item.created_at,
                enclosure=enclosure,
                image=image,
                content_html=render_body(item.body),
                content_type=item.type.value,
            )
        )
        if len(entries) >= limit:
            break
    return entries


def render_rss(
    site: SiteConfig, entries: Sequence[FeedEntry], *, now: datetime | None = None
) -> str:
    build_date = now or datetime.now(timezone.utc)
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<rss version="2.0" xmlns:media="{MEDIA_NS}" xmlns:atom="{ATOM_NS}">',
        "  <channel>",
        f"    <title>{escape(site.title)}</title>",
        f"    <link>{escape(site.base_url)}</link>",
        f"    <description>{escape(site.description)}</description>",
        f"    <language>{escape(site.language)}</language>",
        f"    <lastBuildDate>{_format_rfc2822(build_date)}</lastBuildDate>",
        f'    <atom:link href="{escape(site.base_url)}/rss.xml" rel="self" type="application/rss+xml"/>',
    ]

    for entry in entries:
        parts.extend(
            [
                "    <item>",
                f"      <title>{escape(entry.title)}</title>",
                f"      <link>{escape(entry.url)}</link>",
                f'      <guid isPermaLink="true">{escape(entry.identifier)}</guid>',
                f"      <pubDate>{_format_rfc2822(entry.published)}</pubDate>",
                f"      <description>{escape(entry.summary)}</description>",
            ]
        )
        for tag in entry.tags:
            parts.append(f"      <category>{escape(tag)}</category>")
        if entry.enclosure:
            parts.append(
                f'      <enclosure url="{escape(entry.enclosure)}" type="video/mp4" length="0"/>'
            )
        if entry.image:
            parts.append(f'      <media:content url="{escape(entry.image)}" medium="image"/>')
        parts.append("    </item>")

    parts.extend(["  </channel>", "</rss>"])
    return "\n".join(parts) + "\n"


def render_atom(
    site: SiteConfig, entries: Sequence[FeedEntry], *, now: datetime | None = None
) -> str:
    updated = entries[0].published if entries else (now or datetime.now(timezone.utc))
    parts = [
        '<?xml version="1.0" encoding="utf-8"?>',
        f'<feed xmlns="{ATOM_NS}">',
        f"  <title>{escape(site.title)}</title>",
        f'  <link href="{escape(site.base_url)}/" rel="alternate" />',
        f'  <link href="{escape(site.base_url)}/atom.xml" rel="self" />',
        f"  <updated>{_format_iso(updated)}</updated>",
        f"  <id>{escape(site.base_url)}/</id>",
    ]
    if site.description:
        parts.append(f"  <subtitle>{escape(site.description)}</subtitle>")

    for entry in entries:
        parts.extend(
            [
                "  <entry>",
                f"    <title>{escape(entry.title)}</title>",
                f'    <link href="{escape(entry.url)}" />',
                f"    <id>{escape(entry.identifier)}</id>",
                f"    <updated>{_format_iso(entry.published)}</updated>",
                f"    <published>{_format_iso(entry.published)}</published>",
                f"    <summary>{escape(entry.summary)}</summary>",
            ]
        )
        for tag in entry.tags:
            parts.append(f'    <category term="{escape(tag)}" />')
        if entry.enclosure:
            parts.append(
                f'    <link rel="enclosure" type="video/mp4" href="{escape(entry.enclosure)}" />'
            )
        parts.append("  </entry>")

    parts.append("</feed>")
    return "\n".join(parts) + "\n"


def render_json_feed(site: SiteConfig, entries: Sequence[FeedEntry]) -> str:
    feed: dict[str, object] = {
        "version": "https://jsonfeed.org/version/1.1",
        "title": site.title,
        "home_page_url": f"{site.base_url}/",
        "feed_url": f"{site.base_url}/feed.json",
        "description": site.description,
        "language": site.language,
    }

    items: list[dict[str, object]] = []
    for entry in entries:
        item: dict[str, object] = {
            "id": entry.identifier,
            "url": entry.url,
            "title": entry.title,
            "summary": entry.summary,
            "date_published": _format_iso(entry.published),
        }
        if entry.content_html:
            item["content_html"] = entry.content_html
        else:
            item["content_text"] = entry.summary
        if entry.tags:
            item["tags"] = entry.tags
        if entry.image:
            item["image"] = entry.image
        if entry.enclosure:
            item["attachments"] = [{"url": entry.enclosure, "mime_type": "video/mp4"}]
        item["content_type"] = entry.content_type
        items.append(item)

    feed["items"] = items
    return json.dumps(feed, ensure_ascii=False, indent=2) + "\n"


def write_feeds(config: Config, build: IndexBuild) -> list[Path]:
    """Write RSS, Atom and JSON feeds into the configured output directory."""
    if not config.feeds.enabled:
        return []

    entries = collect_entries(build.items, config.site, limit=config.feeds.limit)
    root = config.output_dir
    root.mkdir(parents=True, exist_ok=True)

    rss_path = root / "rss.xml"
    atom_path = root / "atom.xml"
    json_path = root / "feed.json"
    rss_path.write_text(render_rss(config.site, entries), encoding="utf-8")
    atom_path.write_text(render_atom(config.site, entries), encoding="utf-8")
    json_path.write_text(render_json_feed(config.site, entries), encoding="utf-8")
    logger.info("Wrote feeds with %d entries to %s", len(entries), root)
    return [rss_path, atom_path, json_path]


def item_url(slug: str, base_url: str) -> str:
    return f"{base_url}/m/{slug}"


def _format_rfc2822(value: datetime) -> str:
    normalized = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return format_rfc2822(normalized.astimezone(timezone.utc), usegmt=True)


def _format_iso(value: datetime) -> str:
    normalized = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return normalized.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _make_absolute(path: str, base_url: str) -> str:
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{base_url}/{path.lstrip('/')}"
