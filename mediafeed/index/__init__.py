"""Index building and caching."""

from .builder import IndexBuild, RecordIssue, build_index, sort_records
from .cache import IndexCache

__all__ = ["IndexBuild", "IndexCache", "RecordIssue", "build_index", "sort_records"]
