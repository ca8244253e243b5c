"""Fan-out fetcher: download an index and every item it declares."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import structlog

from ..core import Record
from ..errors import AggregateError, IntegrityError, PersistenceError
from ..store import BaseStore
from .aggregator import ErrorAggregator
from .descriptor import SourceTarget
from .fetcher import Fetcher
from .parser import IndexEntry, parse_index
from .thread_pool import run_bounded


@dataclass(slots=True)
class RefreshResult:
    """Summary of one fetch-and-fan-out phase."""

    processed: int = 0
    saved: int = 0
    duplicates: int = 0
    skipped_lines: int = 0
    error: AggregateError | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def failed(self) -> int:
        return len(self.error) if self.error else 0


class Refresher:
    """Walk a source index and persist every item that passes validation."""

    def __init__(
        self,
        fetcher: Fetcher,
        store: BaseStore,
        executor: ThreadPoolExecutor,
        index_timeout: float = 30.0,
        item_timeout: float = 10.0,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.store = store
        self.executor = executor
        self.index_timeout = index_timeout
        self.item_timeout = item_timeout
        self.logger = logger or structlog.get_logger("insight_sync.refresher")

    def refresh(self, target: SourceTarget, logger: structlog.BoundLogger | None = None) -> RefreshResult:
        """Walk ``target``'s index; ``logger`` overrides the refresher's own for this call."""

        log = logger or self.logger
        response = self.fetcher.get(target.index_url, timeout=self.index_timeout)
        parsed = parse_index(response.text, logger=log)

        aggregator = ErrorAggregator()
        result = RefreshResult(processed=len(parsed.entries), skipped_lines=parsed.skipped)
        outcomes = run_bounded(self.executor, lambda entry: self.download(target, entry, log), parsed.entries)
        for outcome in outcomes:
            if not outcome.ok:
                log.error(
                    "item_failed",
                    entry_id=outcome.item.id,
                    entry_source=outcome.item.source,
                    error=str(outcome.error),
                    error_type=type(outcome.error).__name__,
                )
                aggregator.collect(outcome.error)
            elif outcome.value:
                result.saved += 1
            else:
                result.duplicates += 1
        result.error = aggregator.error()
        return result

    def download(
        self, target: SourceTarget, entry: IndexEntry, logger: structlog.BoundLogger | None = None
    ) -> bool:
        """Fetch, validate and store one entry; return True when newly stored."""

        if target.source is not None and entry.source != target.source:
            raise IntegrityError(
                f"entry {entry.id} declares source {entry.source!r} "
                f"but the index belongs to {target.source!r}"
            )
        url = target.content_url(entry)
        (logger or self.logger).debug("item_fetch", url=url, entry_id=entry.id)
        response = self.fetcher.get(url, timeout=self.item_timeout)
        record = Record.from_json(response.content)
        self.validate(entry, record)
        try:
            return self.store.record_save(record)
        except PersistenceError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise PersistenceError(f"failed to save record {record.id}: {exc}") from exc

    @staticmethod
    def validate(entry: IndexEntry, record: Record) -> None:
        if record.id != entry.id:
            raise IntegrityError(
                f"content check failed for {entry.id}: document reports id {record.id!r}"
            )
        if record.source != entry.source:
            raise IntegrityError(
                f"content check failed for {entry.id}: document reports source "
                f"{record.source!r}, index declared {entry.source!r}"
            )


__all__ = ["RefreshResult", "Refresher"]
