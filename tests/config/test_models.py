from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from insight_sync.config.models import GlobalConfig


def test_global_config_defaults() -> None:
    config = GlobalConfig()
    assert config.fetch_workers == 8
    assert config.short_delay == 10
    assert config.long_delay == 600
    assert config.database_path == Path("data/insight.db")


@pytest.mark.parametrize(
    "overrides",
    [
        {"fetch_workers": 0},
        {"probe_timeout": 0},
        {"item_timeout": -1},
        {"short_delay": -1},
    ],
)
def test_global_config_rejects_invalid_limits(overrides) -> None:
    with pytest.raises(ValidationError):
        GlobalConfig(**overrides)


def test_resolved_database_path(tmp_path: Path) -> None:
    relative = GlobalConfig(database_path="db/x.db")
    assert relative.resolved_database_path(tmp_path) == (tmp_path / "db" / "x.db").resolve()
    absolute = GlobalConfig(database_path=tmp_path / "abs.db")
    assert absolute.resolved_database_path(Path("/elsewhere")) == tmp_path / "abs.db"


def test_global_config_dump_roundtrip(sample_global_config: GlobalConfig) -> None:
    payload = sample_global_config.model_dump(mode="json")
    assert payload["fetch_workers"] == 4
    assert GlobalConfig.model_validate(payload) == sample_global_config
