"""Core data model: records, descriptors and their identity rules."""

from .record import (
    Record,
    SourceDescriptor,
    compute_id,
    deserialize,
    format_timestamp,
    parse_timestamp,
    serialize,
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
