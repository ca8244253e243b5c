"""Resolve a configured link into the index and content locations of a source."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

import structlog

from ..core import SourceDescriptor
from ..errors import SyncError
from ..store import BaseStore
from .fetcher import Fetcher
from .parser import IndexEntry

INDEX_SUFFIX = ".txt"
CONTENT_DIR_SUFFIX = ".d"


@dataclass(slots=True)
class SourceTarget:
    """Everything a poll loop needs to walk one source."""

    link: str
    index_url: str
    base_dir: str
    content_url_prefix: str | None = None
    source: str | None = None
    descriptor: SourceDescriptor | None = None

    def content_url(self, entry: IndexEntry) -> str:
        prefix = self.content_url_prefix or f"{self.base_dir}/{entry.source}{CONTENT_DIR_SUFFIX}"
        return f"{prefix}/{entry.id}.json"


def parent_dir(url: str) -> str:
    """Return the URL up to (excluding) its last path separator."""

    parsed = urlparse(url)
    if not parsed.scheme or "/" not in parsed.path:
        raise SyncError(f"link has no directory component: {url}")
    return url[: url.rfind("/")]


def is_index_link(link: str) -> bool:
    return urlparse(link).path.endswith(INDEX_SUFFIX)


def link_label(link: str) -> str:
    """Short label for a link, e.g. ``dunwu`` for ``.../dunwu.meta.json``."""

    name = urlparse(link).path.rstrip("/").rsplit("/", 1)[-1]
    for suffix in (".meta.json", ".json", INDEX_SUFFIX):
        if name.endswith(suffix):
            return name[: -len(suffix)] or link
    return name or link


class DescriptorResolver:
    """Fetch a source descriptor once and derive sibling resource URLs."""

    def __init__(
        self,
        fetcher: Fetcher,
        store: BaseStore,
        timeout: float = 10.0,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.store = store
        self.timeout = timeout
        self.logger = logger or structlog.get_logger("insight_sync.descriptor")

    def resolve(self, link: str) -> SourceTarget:
        base = parent_dir(link)
        if is_index_link(link):
            self.logger.info("index_link_configured", link=link)
            return SourceTarget(link=link, index_url=link, base_dir=base)

        response = self.fetcher.get(link, timeout=self.timeout)
        descriptor = SourceDescriptor.from_json(response.content)
        target = SourceTarget(
            link=link,
            index_url=f"{base}/{descriptor.source}{INDEX_SUFFIX}",
            base_dir=base,
            content_url_prefix=f"{base}/{descriptor.source}{CONTENT_DIR_SUFFIX}",
            source=descriptor.source,
            descriptor=descriptor,
        )
        self.store.meta_save(descriptor)
        self.logger.info(
            "descriptor_resolved",
            link=link,
            source=descriptor.source,
            index_url=target.index_url,
            content_url_prefix=target.content_url_prefix,
        )
        return target


__all__ = ["DescriptorResolver", "SourceTarget", "is_index_link", "link_label", "parent_dir"]
