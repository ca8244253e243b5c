"""In-process store used for dry runs and isolated tests."""

from __future__ import annotations

from threading import Lock

from ..core import Record, SourceDescriptor
from .base import RECENT_LIMIT, BaseStore


class MemoryStore(BaseStore):
    """Keep records and descriptors in dictionaries guarded by a lock."""

    def __init__(self) -> None:
        self._lock = Lock()
        self.records: dict[str, Record] = {}
        self.metas: dict[str, SourceDescriptor] = {}

    def record_exists(self, record_id: str) -> bool:
        with self._lock:
            return record_id in self.records

    def record_save(self, record: Record) -> bool:
        with self._lock:
            if record.id in self.records:
                return False
            self.records[record.id] = record
            return True

    def meta_save(self, descriptor: SourceDescriptor) -> None:
        with self._lock:
            self.metas[descriptor.source] = descriptor

    def meta_info(self, source: str) -> SourceDescriptor | None:
        with self._lock:
            return self.metas.get(source)

    def recent_records(self, limit: int = RECENT_LIMIT) -> list[Record]:
        with self._lock:
            ordered = sorted(self.records.values(), key=lambda r: r.published_at, reverse=True)
        return ordered[:limit]

    def recent_records_by_source(self, source: str, limit: int = RECENT_LIMIT) -> list[Record]:
        return [r for r in self.recent_records(limit=len(self.records)) if r.source == source][:limit]

    def record_sources(self) -> list[str]:
        with self._lock:
            return sorted({record.source for record in self.records.values()})


__all__ = ["MemoryStore"]
