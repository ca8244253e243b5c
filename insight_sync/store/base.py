"""Storage Service Provider Interface consumed by the sync engine."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..core import Record, SourceDescriptor

RECENT_LIMIT = 50


class BaseStore(ABC):
    """Uniform record/metadata storage contract.

    ``record_save`` must be insert-if-absent and safe under concurrent
    callers saving the same id.
    """

    @abstractmethod
    def record_exists(self, record_id: str) -> bool:
        """Return whether a record with this id is on file."""

    @abstractmethod
    def record_save(self, record: Record) -> bool:
        """Insert the record unless its id exists; return True if inserted."""

    @abstractmethod
    def meta_save(self, descriptor: SourceDescriptor) -> None:
        """Upsert a source descriptor keyed by its slug."""

    @abstractmethod
    def meta_info(self, source: str) -> SourceDescriptor | None:
        """Return the stored descriptor for a source, if any."""

    @abstractmethod
    def recent_records(self, limit: int = RECENT_LIMIT) -> list[Record]:
        """Return newest records first across all sources."""

    @abstractmethod
    def recent_records_by_source(self, source: str, limit: int = RECENT_LIMIT) -> list[Record]:
        """Return newest records first for one source."""

    @abstractmethod
    def record_sources(self) -> list[str]:
        """Return the distinct source slugs that have records."""

    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["BaseStore", "RECENT_LIMIT"]
