from __future__ import annotations

import json

from insight_sync.logging_conf import available_source_logs, source_log_path, source_logger, tail_log


def test_source_logger_writes_bound_context(isolated_home) -> None:
    logger = source_logger("alpha", link="https://data.example/feeds/alpha.meta.json")
    logger.info("cycle_completed", saved=2)

    path = isolated_home / "logs" / "sources" / "alpha.log"
    entry = json.loads(tail_log(path, 1)[0])
    assert entry["event"] == "cycle_completed"
    assert entry["source"] == "alpha"
    assert entry["link"] == "https://data.example/feeds/alpha.meta.json"
    assert entry["saved"] == 2
    assert path in available_source_logs()


def test_source_log_path_is_slugged(isolated_home) -> None:
    assert source_log_path("team/feed one").name == "team_feed_one.log"
    assert source_log_path("").name == "source.log"


def test_tail_log_returns_last_lines(tmp_path) -> None:
    path = tmp_path / "x.log"
    assert tail_log(path) == []
    path.write_text("".join(f"line {i}\n" for i in range(10)), encoding="utf-8")
    assert tail_log(path, 2) == ["line 8\n", "line 9\n"]
