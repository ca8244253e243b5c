"""Per-source poll loop expressed as an explicit state machine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import structlog

from .engine import ChangeDetector, ChangeState, DescriptorResolver, RefreshResult, Refresher, SourceTarget
from .engine.descriptor import link_label
from .errors import SyncError
from .logging_conf import source_logger


class WorkerState(str, Enum):
    IDLE = "idle"
    PROBING = "probing"
    FETCHING = "fetching"
    COOLING = "cooling"


class Cooling(str, Enum):
    """Delay class applied after a cycle."""

    SHORT = "short"
    LONG = "long"


class CycleOutcome(str, Enum):
    UNCHANGED = "unchanged"
    PROBE_FAILED = "probe_failed"
    REFRESHED = "refreshed"
    REFRESH_FAILED = "refresh_failed"


_TRANSITIONS: dict[WorkerState, frozenset[WorkerState]] = {
    WorkerState.IDLE: frozenset({WorkerState.PROBING}),
    WorkerState.PROBING: frozenset({WorkerState.FETCHING, WorkerState.COOLING}),
    WorkerState.FETCHING: frozenset({WorkerState.COOLING}),
    WorkerState.COOLING: frozenset({WorkerState.IDLE}),
}


@dataclass(slots=True)
class CycleReport:
    outcome: CycleOutcome
    cooling: Cooling
    delay: float
    result: RefreshResult | None = None
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.outcome in (CycleOutcome.UNCHANGED, CycleOutcome.REFRESHED)


class SourceWorker:
    """Drive probe → refresh → cooling for one configured link."""

    def __init__(
        self,
        link: str,
        resolver: DescriptorResolver,
        detector: ChangeDetector,
        refresher: Refresher,
        short_delay: float = 10.0,
        long_delay: float = 600.0,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.link = link
        self.resolver = resolver
        self.detector = detector
        self.refresher = refresher
        self.short_delay = short_delay
        self.long_delay = long_delay
        self.logger = (logger or structlog.get_logger("insight_sync.worker")).bind(link=link)
        self.state = WorkerState.IDLE
        self.change_state: ChangeState | None = None
        self.target: SourceTarget | None = None

    # ------------------------------------------------------------------
    def start(self) -> SourceTarget:
        """Resolve the source once; errors are fatal to this worker.

        From here on the worker logs to the file of the source it resolved to.
        """

        self.target = self.resolver.resolve(self.link)
        self.logger = source_logger(self.target.source or link_label(self.link), link=self.link)
        return self.target

    def wake(self) -> None:
        if self.state is WorkerState.COOLING:
            self._transition(WorkerState.IDLE)

    def delay_for(self, cooling: Cooling) -> float:
        return self.long_delay if cooling is Cooling.LONG else self.short_delay

    def run_cycle(self) -> CycleReport:
        """Run one probe and, when the index changed, one fetch phase."""

        if self.target is None:
            raise SyncError(f"worker for {self.link} has not been started")
        self.wake()
        target = self.target
        self._transition(WorkerState.PROBING)
        self.logger.info("cycle_start", index_url=target.index_url)
        try:
            probe = self.detector.probe(target.index_url, self.change_state)
        except SyncError as exc:
            self.logger.warning("probe_failed", error=str(exc))
            return self._cool(CycleOutcome.PROBE_FAILED, Cooling.SHORT, error=exc)
        if not probe.changed:
            self.logger.info(
                "index_unchanged", etag=probe.state.etag, content_length=probe.state.content_length
            )
            return self._cool(CycleOutcome.UNCHANGED, Cooling.SHORT)

        self._transition(WorkerState.FETCHING)
        try:
            result = self.refresher.refresh(target, logger=self.logger)
        except SyncError as exc:
            self.logger.error("refresh_failed", error=str(exc))
            return self._cool(CycleOutcome.REFRESH_FAILED, Cooling.SHORT, error=exc)
        if not result.success:
            self.logger.error(
                "cycle_failed",
                failed=result.failed,
                saved=result.saved,
                processed=result.processed,
                error=str(result.error),
            )
            return self._cool(CycleOutcome.REFRESH_FAILED, Cooling.SHORT, result=result, error=result.error)

        self.change_state = probe.state
        self.logger.info(
            "cycle_completed",
            processed=result.processed,
            saved=result.saved,
            duplicates=result.duplicates,
            skipped_lines=result.skipped_lines,
        )
        return self._cool(CycleOutcome.REFRESHED, Cooling.LONG, result=result)

    def step(self) -> float | None:
        """Run one scheduled iteration and return the delay before the next one.

        The source is resolved on first use; ``None`` means resolution failed
        and the worker must not be scheduled again. A crashed cycle leaves the
        machine in COOLING with the short delay.
        """

        if self.target is None:
            try:
                self.start()
            except Exception as exc:  # noqa: BLE001
                self.logger.error("worker_resolution_failed", error=str(exc), error_type=type(exc).__name__)
                return None
        try:
            return self.run_cycle().delay
        except Exception as exc:  # noqa: BLE001
            self.logger.exception("cycle_crashed", error=str(exc))
            self.state = WorkerState.COOLING
            return self.short_delay

    # ------------------------------------------------------------------
    def _cool(
        self,
        outcome: CycleOutcome,
        cooling: Cooling,
        result: RefreshResult | None = None,
        error: Exception | None = None,
    ) -> CycleReport:
        self._transition(WorkerState.COOLING)
        return CycleReport(
            outcome=outcome,
            cooling=cooling,
            delay=self.delay_for(cooling),
            result=result,
            error=error,
        )

    def _transition(self, new_state: WorkerState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"illegal transition {self.state.value} -> {new_state.value}")
        self.logger.debug("state_transition", from_state=self.state.value, to_state=new_state.value)
        self.state = new_state


__all__ = ["Cooling", "CycleOutcome", "CycleReport", "SourceWorker", "WorkerState"]
