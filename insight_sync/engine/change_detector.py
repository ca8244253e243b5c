"""Cheap change detection against an index resource using cache headers."""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import FetchError, ProbeError
from .fetcher import Fetcher


@dataclass(frozen=True, slots=True)
class ChangeState:
    """Validators observed on the last fully successful cycle."""

    etag: str = ""
    content_length: str = ""


EMPTY_STATE = ChangeState()


@dataclass(frozen=True, slots=True)
class ProbeResult:
    changed: bool
    state: ChangeState


class ChangeDetector:
    """Issue a HEAD probe and compare ETag/Content-Length with the prior state."""

    def __init__(self, fetcher: Fetcher, timeout: float = 30.0) -> None:
        self.fetcher = fetcher
        self.timeout = timeout

    def probe(self, index_url: str, prior: ChangeState | None) -> ProbeResult:
        try:
            response = self.fetcher.head(index_url, timeout=self.timeout)
        except FetchError as exc:
            raise ProbeError(f"probe failed: {exc}", url=index_url) from exc
        observed = ChangeState(
            etag=response.header("ETag"),
            content_length=response.header("Content-Length"),
        )
        # No validators at all means nothing to compare: always refresh.
        if prior is not None and observed == prior and prior != EMPTY_STATE:
            return ProbeResult(changed=False, state=observed)
        return ProbeResult(changed=True, state=observed)


__all__ = ["ChangeDetector", "ChangeState", "EMPTY_STATE", "ProbeResult"]
