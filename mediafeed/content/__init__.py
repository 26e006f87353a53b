"""Utilities for parsing and reading media content records."""

from .models import (
    ContentRecord,
    MediaAssets,
    MediaFrontmatter,
    MediaSource,
    MediaType,
    SoraMetadata,
    VideoSource,
    Visibility,
    format_timestamp,
)
from .parsers import FrontMatterError, parse_record, slug_from_name, slugify, split_front_matter
from .sources import ContentSource, ContentSourceError, DirectorySource, MemorySource, RawRecord

__all__ = [
    "ContentRecord",
    "ContentSource",
    "ContentSourceError",
    "DirectorySource",
    "FrontMatterError",
    "MediaAssets",
    "MediaFrontmatter",
    "MediaSource",
    "MediaType",
    "MemorySource",
    "RawRecord",
    "SoraMetadata",
    "VideoSource",
    "Visibility",
    "format_timestamp",
    "parse_record",
    "slug_from_name",
    "slugify",
    "split_front_matter",
]
