from __future__ import annotations

from typer.testing import CliRunner

from insight_sync.app import AppState, app
from insight_sync.core import Record, SourceDescriptor
from insight_sync.engine import ThreadPoolManager
from insight_sync.infra import SQLiteManager
from insight_sync.scheduler import APSchedulerAdapter
from insight_sync.store import SQLiteStore
from insight_sync.synchronizer import Synchronizer


def make_state(repository, store, fetcher) -> AppState:
    synchronizer = Synchronizer(
        config_repository=repository,
        scheduler=APSchedulerAdapter(max_workers=1),
        thread_pool=ThreadPoolManager(2),
        store=store,
        fetcher=fetcher,
    )
    return AppState(repository=repository, store=store, synchronizer=synchronizer)


def test_cli_links_reads_environment(temp_config_repository, monkeypatch) -> None:
    monkeypatch.setenv("INSIGHT_HUB_LINKS", "https://a.example/a.meta.json\nhttps://b.example/b.txt")
    result = CliRunner().invoke(app, ["links"])
    assert result.exit_code == 0, result.stdout
    assert "共 2 个" in result.stdout
    assert "a.meta.json" in result.stdout


def test_cli_sync_reports_result(
    temp_config_repository, monkeypatch, store, fetcher, publish_source, payload, base_url
) -> None:
    publish_source("alpha", {"a1": payload("a1", "alpha"), "b2": payload("b2", "alpha")})
    state = make_state(temp_config_repository, store, fetcher)
    monkeypatch.setattr("insight_sync.app.build_state", lambda verbose: state)

    result = CliRunner().invoke(app, ["sync", f"{base_url}/alpha.meta.json"])
    assert result.exit_code == 0, result.stdout
    assert "同步结果" in result.stdout
    assert "refreshed" in result.stdout
    assert "新增记录" in result.stdout
    assert len(store.records) == 2


def test_cli_sync_fails_on_item_error(
    temp_config_repository, monkeypatch, store, fetcher, publish_source, payload, base_url
) -> None:
    publish_source("alpha", {"a1": payload("a1", "alpha"), "b2": payload("zz", "alpha")})
    state = make_state(temp_config_repository, store, fetcher)
    monkeypatch.setattr("insight_sync.app.build_state", lambda verbose: state)

    result = CliRunner().invoke(app, ["sync", f"{base_url}/alpha.meta.json"])
    assert result.exit_code == 1
    assert "refresh_failed" in result.stdout
    assert list(store.records) == ["a1"]


def test_cli_sync_fails_on_missing_descriptor(temp_config_repository, monkeypatch, store, fetcher, base_url) -> None:
    state = make_state(temp_config_repository, store, fetcher)
    monkeypatch.setattr("insight_sync.app.build_state", lambda verbose: state)
    result = CliRunner().invoke(app, ["sync", f"{base_url}/missing.meta.json"])
    assert result.exit_code == 1
    assert "解析信息源失败" in result.stdout


def test_cli_records_and_sources(temp_config_repository) -> None:
    store = SQLiteStore(SQLiteManager(), temp_config_repository.database_path())
    store.meta_save(SourceDescriptor(source="alpha", name="Alpha Feed", home_page="https://alpha.example"))
    for index, source in enumerate(["alpha", "beta", "alpha"]):
        store.record_save(
            Record(
                id=f"r{index}",
                source=source,
                link=f"https://{source}.example/{index}",
                title=f"Headline {index}",
                published_at=1_700_000_000_000_000_000 + index,
            )
        )
    store.close()

    runner = CliRunner()
    result = runner.invoke(app, ["records"])
    assert result.exit_code == 0, result.stdout
    assert "最近 3 条记录" in result.stdout
    assert "Headline 2" in result.stdout

    result = runner.invoke(app, ["records", "--source", "beta"])
    assert "beta 最近 1 条记录" in result.stdout
    assert "Headline 0" not in result.stdout

    result = runner.invoke(app, ["sources"])
    assert result.exit_code == 0, result.stdout
    assert "共 2 个" in result.stdout
    assert "Alpha Feed" in result.stdout


def test_cli_log_commands(temp_config_repository) -> None:
    sources_dir = temp_config_repository.locator.logs_dir / "sources"
    sources_dir.mkdir(parents=True, exist_ok=True)
    (sources_dir / "alpha.log").write_text("first line\nsecond line\n", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(app, ["log", "list"])
    assert result.exit_code == 0, result.stdout
    assert "alpha.log" in result.stdout

    result = runner.invoke(app, ["log", "show", "--source", "alpha", "--tail", "1"])
    assert result.exit_code == 0, result.stdout
    assert "最近 1 行" in result.stdout
    assert "second line" in result.stdout
    assert "first line" not in result.stdout


def test_cli_verbose_is_a_plain_flag(temp_config_repository, monkeypatch, store, fetcher) -> None:
    seen: list[bool] = []
    state = make_state(temp_config_repository, store, fetcher)

    def fake_build_state(verbose: bool) -> AppState:
        seen.append(verbose)
        return state

    monkeypatch.setattr("insight_sync.app.build_state", fake_build_state)
    result = CliRunner().invoke(app, ["--verbose", "links"])
    assert result.exit_code == 0, result.stdout
    assert seen == [True]
