"""Index statistics and JSON export."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path

from pydantic import BaseModel, Field

from .index.builder import IndexBuild

INDEX_FILENAME = "media-index.json"


class IndexStats(BaseModel):
    total: int
    public: int
    unlisted: int
    by_type: dict[str, int] = Field(default_factory=dict)
    by_source: dict[str, int] = Field(default_factory=dict)
    unique_tags: int = 0
    issues: int = 0


def build_index_stats(build: IndexBuild) -> IndexStats:
    by_type: Counter[str] = Counter()
    by_source: Counter[str] = Counter()
    tags: set[str] = set()
    public = 0
    for item in build.items:
        by_type[item.type.value] += 1
        by_source[item.source.value] += 1
        tags.update(item.tags)
        if item.is_public:
            public += 1
    return IndexStats(
        total=len(build.items),
        public=public,
        unlisted=len(build.items) - public,
        by_type=dict(by_type),
        by_source=dict(by_source),
        unique_tags=len(tags),
        issues=len(build.issues),
    )


def write_index(build: IndexBuild, destination: Path) -> Path:
    """Serialize the index, newest first, to ``media-index.json``."""
    destination.mkdir(parents=True, exist_ok=True)
    target = destination / INDEX_FILENAME
    with target.open("w", encoding="utf-8") as handle:
        json.dump([item.to_api() for item in build.items], handle, ensure_ascii=False, indent=2)
    return target
