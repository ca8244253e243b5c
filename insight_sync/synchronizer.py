"""Wire configuration, storage, HTTP and scheduling into running source workers."""

from __future__ import annotations

from typing import Iterable

from .config import ConfigRepository, GlobalConfig
from .engine import ChangeDetector, DescriptorResolver, Fetcher, Refresher, ThreadPoolManager
from .logging_conf import configure_logging
from .scheduler import APSchedulerAdapter
from .store import BaseStore
from .worker import CycleReport, SourceWorker


class Synchronizer:
    """Central coordinator managing the lifecycle of source workers."""

    def __init__(
        self,
        config_repository: ConfigRepository,
        scheduler: APSchedulerAdapter,
        thread_pool: ThreadPoolManager,
        store: BaseStore,
        fetcher: Fetcher | None = None,
    ) -> None:
        self.config_repository = config_repository
        self.global_config: GlobalConfig = config_repository.load_global_config()
        self.scheduler = scheduler
        self.thread_pool = thread_pool
        self.store = store
        self.fetcher = fetcher or Fetcher(
            user_agent=self.global_config.user_agent,
            default_timeout=self.global_config.index_timeout,
        )
        self.logger = configure_logging().bind(component="synchronizer")
        self.workers: list[SourceWorker] = []

    # ------------------------------------------------------------------
    def build_worker(self, link: str) -> SourceWorker:
        cfg = self.global_config
        log = self.logger.bind(component="worker", link=link)
        resolver = DescriptorResolver(self.fetcher, self.store, timeout=cfg.descriptor_timeout, logger=log)
        detector = ChangeDetector(self.fetcher, timeout=cfg.probe_timeout)
        refresher = Refresher(
            self.fetcher,
            self.store,
            self.thread_pool.get(link, max_workers=cfg.fetch_workers),
            index_timeout=cfg.index_timeout,
            item_timeout=cfg.item_timeout,
            logger=log,
        )
        return SourceWorker(
            link,
            resolver,
            detector,
            refresher,
            short_delay=cfg.short_delay,
            long_delay=cfg.long_delay,
            logger=log,
        )

    def register_links(self, links: Iterable[str]) -> list[SourceWorker]:
        for link in links:
            worker = self.build_worker(link)
            self.workers.append(worker)
            self.scheduler.schedule_worker(worker)
        self.scheduler.start()
        self.logger.info("workers_registered", count=len(self.workers))
        return self.workers

    def sync_once(self, link: str) -> CycleReport:
        """Resolve ``link`` and run a single cycle in the foreground."""

        worker = self.build_worker(link)
        worker.start()
        return worker.run_cycle()

    def close(self) -> None:
        self.scheduler.shutdown()
        self.thread_pool.shutdown()
        self.fetcher.close()
        self.store.close()


__all__ = ["Synchronizer"]
