"""Index body parsing into declared (id, source) entries."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from ..errors import FormatError

INDEX_SEPARATOR = "|"


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """One line of a remote index."""

    id: str
    source: str


def parse_index_line(line: str) -> IndexEntry:
    items = line.split(INDEX_SEPARATOR)
    if len(items) != 2:
        raise FormatError(f"expected 2 fields, got {len(items)}")
    entry_id, source = items
    if not entry_id or not source:
        raise FormatError("id or source is empty")
    return IndexEntry(id=entry_id, source=source)


@dataclass(slots=True)
class ParsedIndex:
    entries: list[IndexEntry]
    skipped: int = 0


def parse_index(body: str, logger: structlog.BoundLogger | None = None) -> ParsedIndex:
    """Parse an index body, skipping malformed lines with a warning."""

    log = logger or structlog.get_logger("insight_sync.parser")
    entries: list[IndexEntry] = []
    skipped = 0
    for number, raw_line in enumerate(body.split("\n"), start=1):
        line = raw_line.rstrip("\r")
        if not line:
            continue
        try:
            entries.append(parse_index_line(line))
        except FormatError as exc:
            skipped += 1
            log.warning("index_line_skipped", line_number=number, line=line, reason=str(exc))
    return ParsedIndex(entries=entries, skipped=skipped)


__all__ = ["IndexEntry", "ParsedIndex", "parse_index", "parse_index_line"]
