"""HTTP fetching with status and transport error classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

import httpx
import structlog

from ..errors import DecodeError, HTTPStatusError, TransportError


@dataclass(slots=True)
class FetchRequest:
    """Input for the fetcher."""

    url: str
    method: str = "GET"
    headers: dict[str, str] | None = None
    timeout: float | None = None


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper."""

    url: str
    status_code: int
    content: bytes
    headers: Dict[str, str]
    raw: httpx.Response | None = field(repr=False, default=None)

    @property
    def text(self) -> str:
        try:
            return self.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"{self.url} is not valid UTF-8: {exc}") from exc

    def header(self, name: str) -> str:
        """Case-insensitive header lookup returning an empty string when absent."""

        if self.raw is not None:
            return self.raw.headers.get(name, "")
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return ""


class Fetcher:
    """Execute requests and map failures onto the sync error taxonomy."""

    def __init__(
        self,
        user_agent: str | None = None,
        default_timeout: float = 30.0,
        client: httpx.Client | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.default_timeout = default_timeout
        self.logger = logger or structlog.get_logger("insight_sync.fetcher")
        self._owns_client = client is None
        self._client = client or httpx.Client(
            follow_redirects=True,
            timeout=default_timeout,
            headers={"User-Agent": user_agent} if user_agent else None,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fetch(self, request: FetchRequest) -> FetchResponse:
        timeout = request.timeout or self.default_timeout
        try:
            response = self._client.request(
                request.method,
                request.url,
                headers=request.headers,
                timeout=timeout,
            )
        except httpx.HTTPError as exc:
            self.logger.debug("fetch_transport_error", url=request.url, error=str(exc))
            raise TransportError(f"{request.method} {request.url} failed: {exc}", url=request.url) from exc
        if not response.is_success:
            raise HTTPStatusError(
                f"{request.method} {request.url} returned {response.status_code}",
                url=request.url,
                status_code=response.status_code,
            )
        return FetchResponse(
            url=str(response.url),
            status_code=response.status_code,
            content=response.content,
            headers=dict(response.headers),
            raw=response,
        )

    def get(self, url: str, timeout: float | None = None) -> FetchResponse:
        return self.fetch(FetchRequest(url=url, timeout=timeout))

    def head(self, url: str, timeout: float | None = None) -> FetchResponse:
        return self.fetch(FetchRequest(url=url, method="HEAD", timeout=timeout))


__all__ = ["Fetcher", "FetchRequest", "FetchResponse"]
