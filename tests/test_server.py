from __future__ import annotations

import base64
import json
from collections.abc import Iterator
from pathlib import Path
from urllib.error import HTTPError
from urllib.request import Request, urlopen

import pytest

from mediafeed.config import Config, ServerConfig
from mediafeed.content.sources import ContentSourceError, DirectorySource, MemorySource
from mediafeed.index import IndexBuild, IndexCache
from mediafeed.server import ServerHandle, start_server, stop_server
from mediafeed.service import FeedService

FIXTURE_DIR = Path(__file__).parent / "fixtures" / "content" / "media"


def _get(handle: ServerHandle, path: str) -> tuple[int, dict[str, str], bytes]:
    try:
        with urlopen(f"{handle.url}{path}", timeout=5) as response:
            return response.status, dict(response.headers), response.read()
    except HTTPError as exc:
        return exc.code, dict(exc.headers), exc.read()


@pytest.fixture()
def running(tmp_path: Path) -> Iterator[tuple[FeedService, ServerHandle]]:
    config = Config(output_dir=tmp_path / "site", server=ServerConfig(allow_invalidate=True))
    service = FeedService(IndexCache(DirectorySource(FIXTURE_DIR)), config)
    handle = start_server(service, host="127.0.0.1", port=0)
    try:
        yield service, handle
    finally:
        stop_server(handle)


def test_feed_endpoint_returns_page(running: tuple[FeedService, ServerHandle]) -> None:
    _, handle = running
    status, headers, body = _get(handle, "/api/feed?limit=1")

    assert status == 200
    assert headers["Cache-Control"] == "public, s-maxage=60, stale-while-revalidate=300"
    payload = json.loads(body)
    assert [item["slug"] for item in payload["items"]] == ["neon-goat-parade"]
    assert payload["hasMore"] is True

    status, _, body = _get(handle, f"/api/feed?limit=1&cursor={payload['nextCursor']}")
    second = json.loads(body)
    assert [item["slug"] for item in second["items"]] == ["minimal"]
    assert second["hasMore"] is False
    assert second["nextCursor"] is None


@pytest.mark.parametrize("query", ["limit=0", "limit=101", "limit=ten", "type=hologram"])
def test_feed_endpoint_rejects_invalid_parameters(
    running: tuple[FeedService, ServerHandle], query: str
) -> None:
    _, handle = running
    status, _, body = _get(handle, f"/api/feed?{query}")

    assert status == 400
    payload = json.loads(body)
    assert payload["error"] == "Invalid request parameters"
    assert payload["details"]


def test_tags_and_media_endpoints(running: tuple[FeedService, ServerHandle]) -> None:
    _, handle = running

    status, headers, body = _get(handle, "/api/tags")
    assert status == 200
    assert json.loads(body) == ["goats", "sora"]
    assert headers["Cache-Control"].startswith("public, s-maxage=300")

    status, _, body = _get(handle, "/api/media/hair-game")
    assert status == 200
    assert json.loads(body)["visibility"] == "unlisted"

    status, _, _ = _get(handle, "/api/media/nope")
    assert status == 404


def test_syndication_routes(running: tuple[FeedService, ServerHandle]) -> None:
    _, handle = running
    for path in ("/rss.xml", "/feed.xml"):
        status, headers, body = _get(handle, path)
        assert status == 200
        assert headers["Content-Type"].startswith("application/xml")
        assert b"<rss" in body
        assert b"/m/neon-goat-parade" in body

    status, _, body = _get(handle, "/feed.json")
    assert status == 200
    assert json.loads(body)["version"] == "https://jsonfeed.org/version/1.1"

    status, _, _ = _get(handle, "/atom.xml")
    assert status == 200


def test_unknown_route_is_404(running: tuple[FeedService, ServerHandle]) -> None:
    _, handle = running
    status, _, _ = _get(handle, "/does-not-exist")
    assert status == 404


def test_revalidate_rebuilds_index(tmp_path: Path) -> None:
    source = MemorySource(
        [("first.mdx", "---\ntitle: First\ncreatedAt: 2025-01-01T00:00:00Z\ntype: video\n---\n")]
    )
    config = Config(server=ServerConfig(allow_invalidate=True))
    service = FeedService(IndexCache(source), config)
    handle = start_server(service, port=0)
    try:
        _, _, body = _get(handle, "/api/feed")
        assert len(json.loads(body)["items"]) == 1

        source.add(
            "second.mdx",
            "---\ntitle: Second\ncreatedAt: 2025-02-01T00:00:00Z\ntype: video\n---\n",
        )
        request = Request(f"{handle.url}/api/revalidate", method="POST", data=b"")
        with urlopen(request, timeout=5) as response:
            assert response.status == 200

        _, _, body = _get(handle, "/api/feed")
        assert [item["slug"] for item in json.loads(body)["items"]] == ["second", "first"]
    finally:
        stop_server(handle)


def test_revalidate_forbidden_when_disabled() -> None:
    service = FeedService(IndexCache(MemorySource()), Config())
    handle = start_server(service, port=0)
    try:
        request = Request(f"{handle.url}/api/revalidate", method="POST", data=b"")
        with pytest.raises(HTTPError) as excinfo:
            urlopen(request, timeout=5)
        assert excinfo.value.code == 403
    finally:
        stop_server(handle)


def test_fatal_build_error_maps_to_500() -> None:
    def broken(_source: object) -> IndexBuild:
        raise ContentSourceError("content directory unreadable")

    service = FeedService(IndexCache(MemorySource(), builder=broken), Config())
    handle = start_server(service, port=0)
    try:
        status, _, body = _get(handle, "/api/feed")
        assert status == 500
        assert json.loads(body) == {"error": "Content index unavailable"}
    finally:
        stop_server(handle)


def test_service_stats_and_media_lookup() -> None:
    service = FeedService(IndexCache(DirectorySource(FIXTURE_DIR)), Config())

    stats = service.stats()
    assert (stats.total, stats.public, stats.unlisted, stats.issues) == (3, 2, 1, 1)
    record = service.media("minimal")
    assert record is not None
    assert record.to_api()["createdAt"] == "2025-01-02T00:00:00.000Z"


def test_deeply_nested_cursor_serves_first_page(
    running: tuple[FeedService, ServerHandle],
) -> None:
    _, handle = running
    deep = base64.urlsafe_b64encode(b"[" * 5000).decode().rstrip("=")

    status, _, body = _get(handle, f"/api/feed?cursor={deep}")
    assert status == 200
    assert json.loads(body)["items"][0]["slug"] == "neon-goat-parade"


def test_unexpected_error_maps_to_500() -> None:
    def exploding(_source: object) -> IndexBuild:
        raise RuntimeError("boom")

    service = FeedService(IndexCache(MemorySource(), builder=exploding), Config())
    handle = start_server(service, port=0)
    try:
        status, _, body = _get(handle, "/api/tags")
        assert status == 500
        assert json.loads(body) == {"error": "Internal server error"}
    finally:
        stop_server(handle)
