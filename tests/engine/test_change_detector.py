from __future__ import annotations

import httpx
import pytest

from insight_sync.engine import ChangeDetector, ChangeState, Fetcher
from insight_sync.errors import ProbeError

INDEX = "https://data.example/feeds/alpha.txt"


def test_first_probe_reports_changed(remote, fetcher) -> None:
    remote.add(INDEX, "a1|alpha\n", etag="v1")
    result = ChangeDetector(fetcher).probe(INDEX, None)
    assert result.changed
    assert result.state == ChangeState(etag="v1", content_length="9")


def test_identical_validators_report_unchanged(remote, fetcher) -> None:
    remote.add(INDEX, "a1|alpha\n", etag="v1")
    detector = ChangeDetector(fetcher)
    prior = detector.probe(INDEX, None).state
    result = detector.probe(INDEX, prior)
    assert not result.changed
    assert remote.count("GET") == 0


@pytest.mark.parametrize(
    ("etag", "body"),
    [("v2", "a1|alpha\n"), ("v1", "a1|alpha\nb2|alpha\n")],
)
def test_any_validator_difference_reports_changed(remote, fetcher, etag, body) -> None:
    remote.add(INDEX, body, etag=etag)
    result = ChangeDetector(fetcher).probe(INDEX, ChangeState(etag="v1", content_length="9"))
    assert result.changed


def test_missing_validators_always_change() -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    detector = ChangeDetector(Fetcher(client=client))
    first = detector.probe(INDEX, None)
    assert detector.probe(INDEX, first.state).changed


def test_probe_failures_raise_probe_error(remote, fetcher) -> None:
    remote.add(INDEX, "", status=503)
    with pytest.raises(ProbeError):
        ChangeDetector(fetcher).probe(INDEX, None)
    remote.fail(INDEX)
    with pytest.raises(ProbeError):
        ChangeDetector(fetcher).probe(INDEX, None)
