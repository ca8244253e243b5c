"""Exception taxonomy shared by the synchronisation engine."""

from __future__ import annotations

from typing import Sequence


class SyncError(Exception):
    """Base class for every error raised by insight-sync."""


class FetchError(SyncError):
    """A remote resource could not be retrieved."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class TransportError(FetchError):
    """Network level failure (connect error, timeout, broken stream)."""


class HTTPStatusError(FetchError):
    """Remote answered with a non-2xx status."""

    def __init__(self, message: str, url: str | None = None, status_code: int = 0) -> None:
        super().__init__(message, url)
        self.status_code = status_code


class ProbeError(FetchError):
    """Metadata probe of an index resource failed."""


class DecodeError(SyncError):
    """A body could not be decoded into the expected document."""


class FormatError(SyncError):
    """A line does not follow the expected delimited layout."""


class IntegrityError(SyncError):
    """Fetched content disagrees with what the index declared."""


class PersistenceError(SyncError):
    """The store rejected a write."""


class AggregateError(SyncError):
    """Several per-item failures joined into one value."""

    def __init__(self, errors: Sequence[BaseException]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(str(error) for error in self.errors))

    def __len__(self) -> int:
        return len(self.errors)


__all__ = [
    "AggregateError",
    "DecodeError",
    "FetchError",
    "FormatError",
    "HTTPStatusError",
    "IntegrityError",
    "PersistenceError",
    "ProbeError",
    "SyncError",
    "TransportError",
]
