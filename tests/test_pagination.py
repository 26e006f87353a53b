from __future__ import annotations

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest

from mediafeed.content.models import ContentRecord, MediaType, Visibility
from mediafeed.feed import (
    FeedQuery,
    QueryError,
    decode_cursor,
    encode_cursor,
    get_feed,
    paginate,
    parse_feed_query,
)
from mediafeed.feed import pagination
from mediafeed.index import sort_records

START = datetime(2025, 4, 30, 12, 0, tzinfo=timezone.utc)
DEEPLY_NESTED = base64.urlsafe_b64encode(b"[" * 5000).decode().rstrip("=")


def _record(
    slug: str,
    created_at: datetime,
    *,
    visibility: Visibility = Visibility.PUBLIC,
    tags: list[str] | None = None,
    media_type: MediaType = MediaType.VIDEO,
) -> ContentRecord:
    return ContentRecord(
        id=slug,
        slug=slug,
        title=slug.replace("-", " ").title(),
        created_at=created_at,
        type=media_type,
        visibility=visibility,
        tags=tags or [],
    )


def _month_index() -> list[ContentRecord]:
    """25 public videos and 5 unlisted items spread across a month."""
    records = [
        _record(f"video-{i:02d}", START - timedelta(hours=i * 28)) for i in range(25)
    ]
    records += [
        _record(f"unlisted-{i}", START - timedelta(hours=i * 50 + 3), visibility=Visibility.UNLISTED)
        for i in range(5)
    ]
    return sort_records(records)


def _walk(items: list[ContentRecord], query: FeedQuery) -> tuple[list[str], int]:
    collected: list[str] = []
    pages = 0
    cursor = None
    while True:
        page = get_feed(items, query.model_copy(update={"cursor": cursor}))
        pages += 1
        collected.extend(item.slug for item in page.items)
        if not page.has_more:
            assert page.next_cursor is None
            return collected, pages
        assert page.next_cursor is not None
        cursor = page.next_cursor


def test_month_scenario_first_and_second_page() -> None:
    index = _month_index()

    first = get_feed(index, FeedQuery(limit=20))
    assert len(first.items) == 20
    assert first.has_more is True
    assert all(item.visibility is Visibility.PUBLIC for item in first.items)
    assert [item.slug for item in first.items] == [f"video-{i:02d}" for i in range(20)]

    second = get_feed(index, FeedQuery(limit=20, cursor=first.next_cursor))
    assert [item.slug for item in second.items] == [f"video-{i:02d}" for i in range(20, 25)]
    assert second.has_more is False
    assert second.next_cursor is None


@pytest.mark.parametrize("limit", [1, 2, 3, 7, 24, 25, 26, 100])
def test_walking_cursors_yields_each_item_exactly_once(limit: int) -> None:
    index = _month_index()
    expected = [item.slug for item in index if item.visibility is Visibility.PUBLIC]

    collected, pages = _walk(index, FeedQuery(limit=limit))

    assert collected == expected
    assert pages == max(1, -(-len(expected) // limit))


def test_walk_over_filtered_view_with_equal_timestamps() -> None:
    same_time = START
    index = sort_records(
        [_record(f"tie-{c}", same_time, tags=["sora"]) for c in "edcba"]
        + [_record("other", same_time, tags=["misc"])]
    )
    collected, _ = _walk(index, FeedQuery(tag="sora", limit=2))
    assert collected == ["tie-a", "tie-b", "tie-c", "tie-d", "tie-e"]


def test_tag_scenario_single_page() -> None:
    index = sort_records(
        [_record(f"sora-{i}", START - timedelta(days=i), tags=["sora"]) for i in range(3)]
        + [_record(f"plain-{i}", START - timedelta(days=i, hours=1)) for i in range(4)]
    )
    page = get_feed(index, FeedQuery(tag="sora", limit=20))

    assert [item.slug for item in page.items] == ["sora-0", "sora-1", "sora-2"]
    assert page.has_more is False
    assert page.next_cursor is None


def test_cursor_round_trip_resumes_after_originating_item() -> None:
    index = _month_index()
    public = [item for item in index if item.visibility is Visibility.PUBLIC]
    for position in (0, 5, 23):
        token = encode_cursor(public[position])
        decoded = decode_cursor(token)
        assert decoded is not None
        assert decoded.slug == public[position].slug
        assert decoded.created_at == public[position].created_at

        page = paginate(public, cursor=token, limit=1)
        assert page.items[0].slug == public[position + 1].slug


def test_cursor_keeps_sub_second_precision() -> None:
    record = _record("precise", datetime(2025, 1, 1, 0, 0, 0, 123456, tzinfo=timezone.utc))
    decoded = decode_cursor(encode_cursor(record))
    assert decoded is not None
    assert decoded.matches(record)


def test_cursor_for_last_item_yields_empty_page() -> None:
    index = _month_index()
    public = [item for item in index if item.visibility is Visibility.PUBLIC]
    page = paginate(public, cursor=encode_cursor(public[-1]), limit=5)
    assert page.items == []
    assert page.has_more is False
    assert page.next_cursor is None


def test_malformed_cursor_matches_unfiltered_first_page() -> None:
    index = _month_index()
    baseline = get_feed(index, FeedQuery())
    garbage = get_feed(index, FeedQuery(cursor="not-base64-garbage"))

    assert garbage == baseline


@pytest.mark.parametrize(
    "token",
    [
        "%%%",
        base64.urlsafe_b64encode(b"2025-01-01:slug").decode(),
        base64.urlsafe_b64encode(json.dumps(["c", "s"]).encode()).decode(),
        base64.urlsafe_b64encode(json.dumps({"c": "yesterday", "s": "x"}).encode()).decode(),
        "Zm9vé",
        DEEPLY_NESTED,
    ],
)
def test_decode_cursor_returns_none_for_malformed_tokens(token: str) -> None:
    assert decode_cursor(token) is None


def test_decode_cursor_survives_deep_nesting_below_length_cap(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(pagination, "MAX_CURSOR_LENGTH", len(DEEPLY_NESTED))
    assert decode_cursor(DEEPLY_NESTED) is None


def test_deeply_nested_cursor_restarts_feed() -> None:
    index = _month_index()
    assert get_feed(index, FeedQuery(cursor=DEEPLY_NESTED)) == get_feed(index, FeedQuery())


def test_unmatched_cursor_restarts_from_beginning() -> None:
    index = _month_index()
    removed = index[3]
    remaining = [item for item in index if item is not removed]
    stale_cursor = encode_cursor(removed)

    baseline = get_feed(remaining, FeedQuery(limit=10))
    restarted = get_feed(remaining, FeedQuery(limit=10, cursor=stale_cursor))
    assert restarted == baseline


def test_cursor_from_other_filter_restarts_filtered_view() -> None:
    index = _month_index()
    unlisted = next(item for item in index if item.visibility is Visibility.UNLISTED)
    page = get_feed(index, FeedQuery(limit=3, cursor=encode_cursor(unlisted)))
    assert [item.slug for item in page.items] == ["video-00", "video-01", "video-02"]


def test_search_ignores_type_when_both_given() -> None:
    index = sort_records(
        [
            _record("goat-video", START, media_type=MediaType.VIDEO),
            _record("goat-image", START - timedelta(days=1), media_type=MediaType.IMAGE),
        ]
    )
    page = get_feed(index, FeedQuery(search="goat", type=MediaType.VIDEO))
    assert [item.slug for item in page.items] == ["goat-video", "goat-image"]


def test_paginate_rejects_non_positive_limit() -> None:
    with pytest.raises(QueryError):
        paginate([], limit=0)


def test_parse_feed_query_defaults_and_blank_values() -> None:
    query = parse_feed_query({"cursor": "", "limit": "", "type": "", "tag": "", "search": ""})
    assert query == FeedQuery()
    assert query.limit == 20


def test_parse_feed_query_converts_values() -> None:
    query = parse_feed_query({"limit": "5", "type": "game", "tag": "sora", "search": "hair"})
    assert query.limit == 5
    assert query.type is MediaType.GAME
    assert query.tag == "sora"
    assert query.search == "hair"


@pytest.mark.parametrize("limit", ["0", "-3", "101", "abc", "2.5"])
def test_parse_feed_query_rejects_invalid_limit(limit: str) -> None:
    with pytest.raises(QueryError) as excinfo:
        parse_feed_query({"limit": limit})
    assert any(detail.startswith("limit") for detail in excinfo.value.details)


def test_parse_feed_query_rejects_unknown_type() -> None:
    with pytest.raises(QueryError) as excinfo:
        parse_feed_query({"type": "hologram"})
    assert any(detail.startswith("type") for detail in excinfo.value.details)


def test_api_shape() -> None:
    index = _month_index()
    payload = get_feed(index, FeedQuery(limit=2)).to_api()

    assert set(payload) == {"items", "nextCursor", "hasMore"}
    assert payload["hasMore"] is True
    assert isinstance(payload["nextCursor"], str)
    assert payload["items"][0]["slug"] == "video-00"
