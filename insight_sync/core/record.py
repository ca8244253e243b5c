"""Record identity, models and the pipe-delimited line codec."""

from __future__ import annotations

import hashlib
import re
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote_plus, unquote_plus

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import DecodeError, FormatError

FIELD_SEPARATOR = "|"
LINE_FIELD_COUNT = 7
NANOS_PER_SECOND = 1_000_000_000

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ZERO_TIME_NANOS = (datetime(1, 1, 1, tzinfo=timezone.utc) - _EPOCH) // timedelta(microseconds=1) * 1_000
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
_RFC3339 = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d{1,9}))?"
    r"(?P<tz>[Zz]|[+-]\d{2}:\d{2})$"
)
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def compute_id(link: str) -> str:
    """Return the content-addressed identifier of a link (hex SHA-256)."""

    return hashlib.sha256(link.encode("utf-8")).hexdigest()


def _to_nanos(value: Any) -> int:

    if isinstance(value, bool):
        raise ValueError("boolean is not a timestamp")
    if isinstance(value, int):
        return value
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        delta = moment - _EPOCH
        return (delta // timedelta(microseconds=1)) * 1_000
    if not isinstance(value, str):
        raise ValueError(f"unsupported timestamp type: {type(value).__name__}")
    text = value.strip()
    if text.lstrip("-").isdigit():
        return int(text)
    match = _RFC3339.match(text)
    if not match:
        raise ValueError(f"invalid RFC 3339 timestamp: {value!r}")
    offset = match.group("tz")
    if offset in ("Z", "z"):
        offset = "+00:00"
    base = match.group("base").replace("t", "T").replace(" ", "T")
    moment = datetime.fromisoformat(base + offset)
    seconds = (moment - _EPOCH) // timedelta(seconds=1)
    fraction = (match.group("frac") or "").ljust(9, "0")
    return seconds * NANOS_PER_SECOND + int(fraction)


def parse_timestamp(value: Any) -> int:
    """Convert an RFC 3339 string or integer nanoseconds into epoch nanoseconds.

    The zero time ``0001-01-01T00:00:00Z`` maps to 0; anything else outside the
    signed 64-bit nanosecond range is rejected.
    """

    nanos = _to_nanos(value)
    if nanos == _ZERO_TIME_NANOS:
        return 0
    if not INT64_MIN <= nanos <= INT64_MAX:
        raise ValueError(f"timestamp out of range: {value!r}")
    return nanos


def format_timestamp(nanos: int) -> str:
    """Render epoch nanoseconds as an RFC 3339 UTC string without losing precision."""

    seconds, fraction = divmod(nanos, NANOS_PER_SECOND)
    text = (_EPOCH + timedelta(seconds=seconds)).strftime("%Y-%m-%dT%H:%M:%S")
    if fraction:
        text += "." + f"{fraction:09d}".rstrip("0")
    return text + "Z"


class Record(BaseModel):
    """Canonical content item as published by a remote source."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    source: str = ""
    link: str = ""
    title: str = ""
    author: str = ""
    content: str = ""
    published_at: int = 0

    @field_validator("id", "source", "link", "title", "author", "content", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("published_at", mode="before")
    @classmethod
    def _coerce_published_at(cls, value: Any) -> int:
        if value in (None, ""):
            return 0
        return parse_timestamp(value)

    @classmethod
    def create(
        cls,
        *,
        source: str,
        link: str,
        title: str = "",
        author: str = "",
        content: str = "",
        published_at: Any = 0,
    ) -> "Record":
        """Build a record whose id is derived from its link."""

        return cls(
            id=compute_id(link),
            source=source,
            link=link,
            title=title,
            author=author,
            content=content,
            published_at=published_at,
        )

    @classmethod
    def from_json(cls, raw: bytes | str) -> "Record":
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise DecodeError(f"invalid record document: {exc.errors()[0]['msg']}") from exc

    @property
    def published_at_iso(self) -> str:
        return format_timestamp(self.published_at)


class SourceDescriptor(BaseModel):
    """Metadata document describing one source."""

    source: str = Field(min_length=1)
    name: str = ""
    home_page: str = ""

    @field_validator("name", "home_page", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @classmethod
    def from_json(cls, raw: bytes | str) -> "SourceDescriptor":
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise DecodeError(f"invalid descriptor document: {exc.errors()[0]['msg']}") from exc


def _escape(value: str) -> str:
    return quote_plus(value, safe="")


def _unescape(value: str) -> str:
    if _BAD_ESCAPE.search(value):
        raise FormatError(f"malformed escape sequence in field: {value!r}")
    try:
        return unquote_plus(value, errors="strict")
    except UnicodeDecodeError as exc:
        raise FormatError(f"escaped field is not valid UTF-8: {value!r}") from exc


def serialize(record: Record) -> str:
    """Encode a record as a single pipe-delimited line."""

    return FIELD_SEPARATOR.join(
        [
            compute_id(record.link),
            str(record.published_at),
            _escape(record.source),
            _escape(record.link),
            _escape(record.title),
            _escape(record.author),
            _escape(record.content),
        ]
    )


def deserialize(line: str) -> Record:
    """Decode a line produced by :func:`serialize`."""

    items = line.split(FIELD_SEPARATOR)
    if len(items) != LINE_FIELD_COUNT:
        raise FormatError(f"expected {LINE_FIELD_COUNT} fields, got {len(items)}")
    _, published_raw, *escaped = items
    source, link, title, author, content = (_unescape(item) for item in escaped)
    try:
        published_at = parse_timestamp(int(published_raw))
    except ValueError as exc:
        raise FormatError(f"invalid timestamp field: {published_raw!r}") from exc
    return Record.create(
        source=source,
        link=link,
        title=title,
        author=author,
        content=content,
        published_at=published_at,
    )


__all__ = [
    "Record",
    "SourceDescriptor",
    "compute_id",
    "deserialize",
    "format_timestamp",
    "parse_timestamp",
    "serialize",
]
