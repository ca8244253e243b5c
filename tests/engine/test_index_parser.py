from __future__ import annotations

import pytest

from insight_sync.engine import IndexEntry, parse_index
from insight_sync.engine.parser import parse_index_line
from insight_sync.errors import FormatError


def test_parse_index_reads_entries_in_order() -> None:
    parsed = parse_index("a1|alpha\nb2|alpha\n")
    assert parsed.entries == [IndexEntry("a1", "alpha"), IndexEntry("b2", "alpha")]
    assert parsed.skipped == 0


def test_parse_index_skips_malformed_lines() -> None:
    body = "a1|alpha\n\nbroken-line\nc3|alpha|extra\n|alpha\nd4|\nb2|alpha\r\n"
    parsed = parse_index(body)
    assert [entry.id for entry in parsed.entries] == ["a1", "b2"]
    assert parsed.skipped == 4


@pytest.mark.parametrize("line", ["x", "a|b|c", "|b", "a|"])
def test_parse_index_line_errors(line: str) -> None:
    with pytest.raises(FormatError):
        parse_index_line(line)
