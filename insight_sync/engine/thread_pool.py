"""Thread pool abstraction giving each source its own bounded fetch pool."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Generic, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass(slots=True)
class TaskOutcome(Generic[T, R]):
    """Result of one task submitted through :func:`run_bounded`."""

    item: T
    value: R | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _call(fn: Callable[[T], R], item: T) -> TaskOutcome[T, R]:
    try:
        return TaskOutcome(item=item, value=fn(item))
    except Exception as exc:  # noqa: BLE001
        return TaskOutcome(item=item, error=exc)


def run_bounded(
    executor: ThreadPoolExecutor, fn: Callable[[T], R], items: Iterable[T]
) -> list[TaskOutcome[T, R]]:
    """Apply ``fn`` to every item on the executor and wait for all of them.

    Concurrency is bounded by the executor's worker count. Outcomes come back
    in submission order; a task that raises yields an outcome carrying the error.
    """

    futures: list[Future[TaskOutcome[T, R]]] = [executor.submit(_call, fn, item) for item in items]
    return [future.result() for future in futures]


class ThreadPoolManager:
    """Manage the shared and per-source thread pools."""

    def __init__(self, default_workers: int = 8) -> None:
        self.default_workers = default_workers
        self._default_executor = ThreadPoolExecutor(max_workers=default_workers, thread_name_prefix="sync")
        self._executors: Dict[str, ThreadPoolExecutor] = {}
        self._lock = Lock()

    def get(self, source_name: str | None = None, max_workers: int | None = None) -> ThreadPoolExecutor:
        if source_name is None:
            return self._default_executor
        with self._lock:
            if source_name not in self._executors:
                workers = max_workers or self.default_workers
                self._executors[source_name] = ThreadPoolExecutor(
                    max_workers=workers, thread_name_prefix=f"sync-{source_name}"
                )
            return self._executors[source_name]

    def shutdown(self) -> None:
        self._default_executor.shutdown(wait=False)
        with self._lock:
            for executor in self._executors.values():
                executor.shutdown(wait=False)
            self._executors.clear()


__all__ = ["TaskOutcome", "ThreadPoolManager", "run_bounded"]
