"""Collect per-item failures from concurrent fetch workers."""

from __future__ import annotations

from threading import Lock

from ..errors import AggregateError


class ErrorAggregator:
    """Thread-safe, ordered error sink producing one compound error."""

    def __init__(self) -> None:
        self._errors: list[Exception] = []
        self._lock = Lock()

    def collect(self, error: Exception) -> None:
        with self._lock:
            self._errors.append(error)

    def __len__(self) -> int:
        with self._lock:
            return len(self._errors)

    @property
    def errors(self) -> list[Exception]:
        with self._lock:
            return list(self._errors)

    def error(self) -> AggregateError | None:
        """Return the joined error, or None when nothing failed."""

        errors = self.errors
        if not errors:
            return None
        return AggregateError(errors)


__all__ = ["ErrorAggregator"]
