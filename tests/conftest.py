"""Pytest configuration providing a fake remote host and shared fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Iterable

import httpx
import pytest

from insight_sync.config import ConfigLocator, ConfigRepository, GlobalConfig
from insight_sync.core import SourceDescriptor
from insight_sync.engine import Fetcher
from insight_sync.store import MemoryStore

BASE_URL = "https://data.example/feeds"


class RemoteSite:
    """Serve canned responses through ``httpx.MockTransport`` and record requests."""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes, dict[str, str]]] = {}
        self.failures: dict[str, Exception] = {}
        self.requests: list[tuple[str, str]] = []

    def add(
        self,
        url: str,
        body: str | bytes = b"",
        status: int = 200,
        etag: str | None = None,
    ) -> None:
        content = body.encode("utf-8") if isinstance(body, str) else body
        headers = {"ETag": etag} if etag else {}
        self.routes[url] = (status, content, headers)

    def add_json(self, url: str, payload: Any, status: int = 200) -> None:
        self.add(url, json.dumps(payload), status=status)

    def fail(self, url: str, error: Exception | None = None) -> None:
        self.failures[url] = error or httpx.ConnectError("connection refused")

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append((request.method, url))
        if url in self.failures:
            raise self.failures[url]
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="not found")
        status, content, headers = route
        if request.method == "HEAD":
            head_headers = dict(headers)
            head_headers["Content-Length"] = str(len(content))
            return httpx.Response(status, headers=head_headers)
        return httpx.Response(status, headers=headers, content=content)

    def count(self, method: str, url: str | None = None) -> int:
        return sum(1 for m, u in self.requests if m == method and (url is None or u == url))

    def fetcher(self) -> Fetcher:
        client = httpx.Client(transport=httpx.MockTransport(self.handler))
        return Fetcher(client=client)


class CountingStore(MemoryStore):
    """Memory store that also counts descriptor writes."""

    def __init__(self) -> None:
        super().__init__()
        self.meta_saves = 0

    def meta_save(self, descriptor: SourceDescriptor) -> None:
        self.meta_saves += 1
        super().meta_save(descriptor)


def record_payload(
    entry_id: str,
    source: str,
    *,
    link: str | None = None,
    title: str = "Title",
    published_at: Any = "2024-05-20T12:00:00.123456789Z",
) -> dict[str, Any]:
    return {
        "id": entry_id,
        "source": source,
        "link": link or f"https://{source}.example/posts/{entry_id}",
        "title": title,
        "author": "Author",
        "content": f"Body of {entry_id}",
        "published_at": published_at,
    }


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point data and log directories at a per-test home."""

    monkeypatch.setenv("INSIGHT_SYNC_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def remote() -> RemoteSite:
    return RemoteSite()


@pytest.fixture
def fetcher(remote: RemoteSite) -> Iterable[Fetcher]:
    instance = remote.fetcher()
    yield instance
    instance._client.close()


@pytest.fixture
def store() -> CountingStore:
    return CountingStore()


@pytest.fixture
def publish_source(remote: RemoteSite) -> Callable[..., None]:
    """Publish a descriptor, index and content documents for a source."""

    def _publish(
        source: str,
        entries: dict[str, dict[str, Any]],
        *,
        index_body: str | None = None,
        etag: str = "v1",
        name: str | None = None,
        home_page: str | None = None,
    ) -> None:
        remote.add_json(
            f"{BASE_URL}/{source}.meta.json",
            {
                "source": source,
                "name": name or source.title(),
                "home_page": home_page or f"https://{source}.example",
            },
        )
        body = index_body if index_body is not None else "".join(f"{i}|{source}\n" for i in entries)
        remote.add(f"{BASE_URL}/{source}.txt", body, etag=etag)
        for entry_id, payload in entries.items():
            remote.add_json(f"{BASE_URL}/{source}.d/{entry_id}.json", payload)

    return _publish


@pytest.fixture
def sample_global_config(tmp_path: Path) -> GlobalConfig:
    return GlobalConfig(
        database_path=tmp_path / "insight.db",
        fetch_workers=4,
        short_delay=10,
        long_delay=600,
    )


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("INSIGHT_SYNC_HOME", str(tmp_path))
    monkeypatch.delenv("INSIGHT_HUB_LINKS", raising=False)
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def payload() -> Callable[..., dict[str, Any]]:
    return record_payload
