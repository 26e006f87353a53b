"""Content sources yielding raw records for the index builder."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Protocol

from .parsers import SUPPORTED_SUFFIXES

logger = logging.getLogger(__name__)


class ContentSourceError(OSError):
    """Raised when the content source location cannot be read."""


@dataclass(frozen=True, slots=True)
class RawRecord:
    """Unparsed record as stored in the source.

    ``error`` is set instead of ``text`` when this one record could not be read.
    """

    name: str
    text: str = ""
    location: str | None = None
    error: str | None = None


class ContentSource(Protocol):
    def iter_records(self) -> Iterator[RawRecord]:
        ...


class DirectorySource:
    """Read ``*.mdx``/``*.md`` files from a flat directory in filename order."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"DirectorySource({str(self.root)!r})"

    def iter_records(self) -> Iterator[RawRecord]:
        for path in self._list_files():
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Failed to read %s: %s", path, exc)
                yield RawRecord(name=path.name, location=str(path), error=str(exc))
                continue
            yield RawRecord(name=path.name, text=text, location=str(path))

    def _list_files(self) -> list[Path]:
        root = self.root
        if not root.exists():
            logger.info("Content directory %s missing; creating it.", root)
            try:
                root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ContentSourceError(f"Cannot create content directory {root}: {exc}") from exc
            return []
        if not root.is_dir():
            raise ContentSourceError(f"Content source {root} is not a directory.")
        try:
            entries = sorted(root.iterdir(), key=lambda entry: entry.name)
        except OSError as exc:
            raise ContentSourceError(f"Cannot read content directory {root}: {exc}") from exc
        return [
            entry
            for entry in entries
            if entry.is_file() and entry.name.lower().endswith(SUPPORTED_SUFFIXES)
        ]


class MemorySource:
    """Serve records from memory, mainly for tests and tooling."""

    def __init__(self, records: Iterable[RawRecord | tuple[str, str]] = ()) -> None:
        self._records: list[RawRecord] = [
            record if isinstance(record, RawRecord) else RawRecord(name=record[0], text=record[1])
            for record in records
        ]

    def add(self, name: str, text: str) -> None:
        self._records.append(RawRecord(name=name, text=text))

    def remove(self, name: str) -> None:
        self._records = [record for record in self._records if record.name != name]

    def iter_records(self) -> Iterator[RawRecord]:
        yield from list(self._records)
