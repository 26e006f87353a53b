"""HTTP API exposing the feed, tags, media lookup and syndication routes.

The server reuses the standard library threading HTTP server; all requests
share one ``FeedService`` and therefore one index cache.
"""

from __future__ import annotations

import contextlib
import json
import logging
import threading
from dataclasses import dataclass
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Iterator
from urllib.parse import parse_qs, unquote, urlsplit

from .content.sources import ContentSourceError
from .feed.models import QueryError
from .service import FeedService

logger = logging.getLogger(__name__)

FEED_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=300"
TAGS_CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"
SYNDICATION_CACHE_CONTROL = "public, s-maxage=3600, stale-while-revalidate=86400"


class _ThreadingHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True


def make_request_handler(service: FeedService) -> type[BaseHTTPRequestHandler]:
    """Create a request handler bound to ``service``."""

    class FeedRequestHandler(BaseHTTPRequestHandler):
        server_version = "mediafeed"

        def do_GET(self) -> None:  # noqa: N802
            parts = urlsplit(self.path)
            path = parts.path.rstrip("/") or "/"
            params = {key: values[0] for key, values in parse_qs(parts.query).items()}
            try:
                self._dispatch_get(path, params)
            except QueryError as exc:
                self._send_json(
                    {"error": "Invalid request parameters", "details": exc.details},
                    status=HTTPStatus.BAD_REQUEST,
                )
            except ContentSourceError as exc:
                logger.error("Content index unavailable: %s", exc)
                self._send_json(
                    {"error": "Content index unavailable"},
                    status=HTTPStatus.INTERNAL_SERVER_ERROR,
                )
            except Exception:
                logger.exception("Unhandled error serving %s", self.path)
                self._send_json(
                    {"error": "Internal server error"},
                    status=HTTPStatus.INTERNAL_SERVER_ERROR,
                )

        def do_POST(self) -> None:  # noqa: N802
            path = urlsplit(self.path).path.rstrip("/")
            if path != "/api/revalidate":
                self._not_found()
                return
            if not service.config.server.allow_invalidate:
                self._send_json({"error": "Revalidation disabled"}, status=HTTPStatus.FORBIDDEN)
                return
            service.invalidate()
            self._send_json({"revalidated": True})

        def _dispatch_get(self, path: str, params: dict[str, str]) -> None:
            if path == "/api/feed":
                page = service.feed(params)
                self._send_json(page.to_api(), cache_control=FEED_CACHE_CONTROL)
            elif path == "/api/tags":
                self._send_json(service.tags(), cache_control=TAGS_CACHE_CONTROL)
            elif path.startswith("/api/media/"):
                slug = unquote(path[len("/api/media/") :])
                record = service.media(slug)
                if record is None:
                    self._not_found()
                else:
                    self._send_json(record.to_api())
            elif path in ("/rss.xml", "/feed.xml"):
                self._send_text(service.rss(), "application/xml")
            elif path == "/atom.xml":
                self._send_text(service.atom(), "application/atom+xml")
            elif path == "/feed.json":
                self._send_text(service.json_feed(), "application/feed+json")
            else:
                self._not_found()

        def _not_found(self) -> None:
            self._send_json({"error": "Not found"}, status=HTTPStatus.NOT_FOUND)

        def _send_json(
            self,
            payload: Any,
            *,
            status: HTTPStatus = HTTPStatus.OK,
            cache_control: str | None = None,
        ) -> None:
            body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
            self._send(body, "application/json; charset=utf-8", status, cache_control)

        def _send_text(self, text: str, content_type: str) -> None:
            self._send(
                text.encode("utf-8"),
                f"{content_type}; charset=utf-8",
                HTTPStatus.OK,
                SYNDICATION_CACHE_CONTROL,
            )

        def _send(
            self,
            body: bytes,
            content_type: str,
            status: HTTPStatus,
            cache_control: str | None,
        ) -> None:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            if cache_control:
                self.send_header("Cache-Control", cache_control)
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: Any) -> None:
            logger.info("%s - %s", self.address_string(), format % args)

    return FeedRequestHandler


@contextlib.contextmanager
def serve(service: FeedService, host: str, port: int) -> Iterator[ThreadingHTTPServer]:
    """Context manager that creates and cleans up the HTTP server."""
    server = _ThreadingHTTPServer((host, port), make_request_handler(service))
    try:
        yield server
    finally:
        server.server_close()


@dataclass(slots=True)
class ServerHandle:
    server: ThreadingHTTPServer
    thread: threading.Thread
    host: str
    port: int

    @property
    def url(self) -> str:
        host = "127.0.0.1" if self.host in {"0.0.0.0", ""} else self.host
        return f"http://{host}:{self.port}"


def start_server(service: FeedService, *, host: str = "127.0.0.1", port: int = 0) -> ServerHandle:
    """Start the API server in a background thread; ``port=0`` picks a free port."""
    server = _ThreadingHTTPServer((host, port), make_request_handler(service))
    raw_host = server.server_address[0]
    bound_host = raw_host.decode("utf-8", "ignore") if isinstance(raw_host, bytes) else str(raw_host)
    bound_port = int(server.server_address[1])
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return ServerHandle(server=server, thread=thread, host=bound_host, port=bound_port)


def stop_server(handle: ServerHandle | None) -> None:
    """Stop a server started by ``start_server``."""
    if handle is None:
        return
    try:
        handle.server.shutdown()
    finally:
        handle.server.server_close()
    if handle.thread.is_alive():
        handle.thread.join(timeout=2.0)
