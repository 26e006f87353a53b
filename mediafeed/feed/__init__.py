"""Feed filtering and cursor pagination."""

from .filters import (
    apply_filters,
    collect_tags,
    find_record,
    records_by_tag,
    records_by_type,
    search_records,
    visible_records,
)
from .models import DEFAULT_LIMIT, MAX_LIMIT, FeedPage, FeedQuery, QueryError, parse_feed_query
from .pagination import Cursor, decode_cursor, encode_cursor, get_feed, paginate

__all__ = [
    "Cursor",
    "DEFAULT_LIMIT",
    "FeedPage",
    "FeedQuery",
    "MAX_LIMIT",
    "QueryError",
    "apply_filters",
    "collect_tags",
    "decode_cursor",
    "encode_cursor",
    "find_record",
    "get_feed",
    "paginate",
    "parse_feed_query",
    "records_by_tag",
    "records_by_type",
    "search_records",
    "visible_records",
]
