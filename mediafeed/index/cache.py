"""Process-wide holder for the built index with explicit invalidation."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from ..content.sources import ContentSource
from .builder import IndexBuild, build_index

logger = logging.getLogger(__name__)

IndexBuilder = Callable[[ContentSource], IndexBuild]


class _PendingBuild:
    """Build in flight; waiters block on ``done`` and read the outcome."""

    def __init__(self, generation: int) -> None:
        self.generation = generation
        self.done = threading.Event()
        self.result: IndexBuild | None = None
        self.error: BaseException | None = None

    def wait(self) -> IndexBuild:
        self.done.wait()
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result


class IndexCache:
    """Lazily build the index once and share it between callers.

    Concurrent ``get()`` calls made while a build is running wait for that
    build instead of starting their own. Failed builds are never cached.
    """

    def __init__(self, source: ContentSource, builder: IndexBuilder = build_index) -> None:
        self._source = source
        self._builder = builder
        self._lock = threading.Lock()
        self._current: IndexBuild | None = None
        self._pending: _PendingBuild | None = None
        self._generation = 0

    @property
    def source(self) -> ContentSource:
        return self._source

    @property
    def is_built(self) -> bool:
        return self._current is not None

    def get(self) -> IndexBuild:
        """Return the cached index, building it on first use.

        A caller that arrives after ``invalidate()`` while an older build is
        still running waits for it to finish and then builds afresh, so at most
        one build runs at a time.
        """
        while True:
            with self._lock:
                current = self._current
                if current is not None:
                    return current
                pending = self._pending
                owner = pending is None
                if pending is None:
                    pending = _PendingBuild(self._generation)
                    self._pending = pending
                generation = self._generation

            if owner:
                self._run(pending)
            elif pending.generation != generation:
                logger.debug("Waiting for superseded index build before rebuilding")
                pending.done.wait()
                continue
            else:
                logger.debug("Waiting for in-flight index build")
            return pending.wait()

    def invalidate(self) -> None:
        """Drop the cached index so the next ``get()`` rebuilds it."""
        with self._lock:
            self._generation += 1
            self._current = None
        logger.info("Index cache invalidated")

    def _run(self, pending: _PendingBuild) -> None:
        started = time.perf_counter()
        try:
            result = self._builder(self._source)
        except BaseException as exc:
            pending.error = exc
            with self._lock:
                if self._pending is pending:
                    self._pending = None
            logger.error("Index build from %r failed: %s", self._source, exc)
            pending.done.set()
            return

        pending.result = result
        with self._lock:
            if self._pending is pending:
                self._pending = None
            if pending.generation == self._generation:
                self._current = result
        logger.info(
            "Built index with %d item(s), %d skipped record(s) in %.3fs",
            len(result.items),
            len(result.issues),
            time.perf_counter() - started,
        )
        pending.done.set()
