"""APScheduler wrapper driving one self re-arming job per source worker."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count
from threading import Lock
from typing import TYPE_CHECKING

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from ..logging_conf import configure_logging

if TYPE_CHECKING:
    from ..worker import SourceWorker

JOB_PREFIX = "source::"


class APSchedulerAdapter:
    """Manage APScheduler jobs for configured source workers.

    Each run executes exactly one cycle and then schedules the next one after
    the cycle's cooling delay, so a worker never overlaps itself.
    """

    def __init__(self, max_workers: int = 10) -> None:
        self.scheduler = BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(max(1, max_workers))},
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": None},
        )
        self.logger = configure_logging().bind(component="scheduler")
        self.started = False
        self._sequence = count(1)
        self._lock = Lock()

    def start(self) -> None:
        if not self.started:
            self.scheduler.start()
            self.started = True
            self.logger.info("apscheduler_started")

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_worker(self, worker: "SourceWorker", delay: float = 0.0) -> str:
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        with self._lock:
            job_id = f"{JOB_PREFIX}{worker.link}::{next(self._sequence)}"
        self.scheduler.add_job(
            self.run_worker,
            trigger=DateTrigger(run_date=run_date),
            id=job_id,
            args=[worker],
            replace_existing=True,
        )
        self.logger.info("job_scheduled", link=worker.link, delay=delay, job_id=job_id)
        return job_id

    def run_worker(self, worker: "SourceWorker") -> None:
        """Run one iteration of ``worker`` and re-arm it unless it retired."""

        delay = worker.step()
        if delay is None:
            self.logger.warning("worker_retired", link=worker.link)
            return
        if self.started:
            self.schedule_worker(worker, delay)


__all__ = ["APSchedulerAdapter", "JOB_PREFIX"]
