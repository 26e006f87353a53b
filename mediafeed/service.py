"""Compose the index cache with the feed operations served over HTTP."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .config import Config
from .content.models import ContentRecord
from .content.sources import DirectorySource
from .feed import collect_tags, find_record, get_feed, parse_feed_query
from .feed.models import FeedPage
from .index.cache import IndexCache
from .reporting import IndexStats, build_index_stats
from .syndication import FeedEntry, collect_entries, render_atom, render_json_feed, render_rss


class FeedService:
    """Read operations over a shared ``IndexCache``."""

    def __init__(self, cache: IndexCache, config: Config) -> None:
        self.cache = cache
        self.config = config

    @classmethod
    def from_config(cls, config: Config) -> "FeedService":
        return cls(IndexCache(DirectorySource(config.content_dir)), config)

    def feed(self, params: Mapping[str, Any]) -> FeedPage:
        """Run a feed query; raises ``QueryError`` for invalid parameters."""
        query = parse_feed_query(params)
        return get_feed(self.cache.get().items, query)

    def tags(self) -> list[str]:
        return collect_tags(self.cache.get().items)

    def media(self, slug: str) -> Optional[ContentRecord]:
        return find_record(self.cache.get().items, slug)

    def rss(self) -> str:
        return render_rss(self.config.site, self._entries())

    def atom(self) -> str:
        return render_atom(self.config.site, self._entries())

    def json_feed(self) -> str:
        return render_json_feed(self.config.site, self._entries())

    def stats(self) -> IndexStats:
        return build_index_stats(self.cache.get())

    def invalidate(self) -> None:
        self.cache.invalidate()

    def _entries(self) -> list[FeedEntry]:
        return collect_entries(
            self.cache.get().items, self.config.site, limit=self.config.feeds.limit
        )
