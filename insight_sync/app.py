"""Typer CLI entrypoint for insight-sync."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Event
from typing import Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository
from .core import Record
from .engine import ThreadPoolManager
from .errors import SyncError
from .infra import SQLiteManager
from .logging_conf import available_source_logs, configure_logging, log_dir, source_log_path, tail_log
from .scheduler import APSchedulerAdapter
from .store import BaseStore, SQLiteStore
from .synchronizer import Synchronizer
from .worker import CycleReport

app = typer.Typer(
    help="insight-sync 命令行工具",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="日志查看命令",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    store: BaseStore
    synchronizer: Synchronizer


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    global_config = repository.load_global_config()
    links = repository.load_links()
    storage = SQLiteManager()
    store = SQLiteStore(storage, repository.database_path())
    synchronizer = Synchronizer(
        config_repository=repository,
        scheduler=APSchedulerAdapter(max_workers=max(1, len(links))),
        thread_pool=ThreadPoolManager(global_config.fetch_workers),
        store=store,
    )
    return AppState(repository=repository, store=store, synchronizer=synchronizer)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _shorten(text: str, width: int = 60) -> str:
    text = " ".join(text.split())
    return text if len(text) <= width else text[: width - 1] + "…"


def _render_records_table(title: str, records: Sequence[Record]) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("发布时间", style="green", no_wrap=True)
    table.add_column("来源", style="magenta", no_wrap=True)
    table.add_column("标题", style="cyan", overflow="fold")
    table.add_column("链接", overflow="fold")
    for record in records:
        table.add_row(
            record.published_at_iso,
            record.source,
            _shorten(record.title),
            record.link,
        )
    return table


def _render_report(link: str, report: CycleReport) -> Table:
    table = Table(title=f"同步结果 · {link}", box=box.SIMPLE_HEAD)
    table.add_column("指标", style="cyan")
    table.add_column("数值", style="green")
    table.add_row("结果", report.outcome.value)
    table.add_row("下次间隔", f"{report.delay:g}s ({report.cooling.value})")
    if report.result is not None:
        table.add_row("索引条目", str(report.result.processed))
        table.add_row("新增记录", str(report.result.saved))
        table.add_row("已存在", str(report.result.duplicates))
        table.add_row("格式错误行", str(report.result.skipped_lines))
        table.add_row("失败条目", str(report.result.failed))
    return table


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="开启调试日志")
) -> None:
    ctx.obj = build_state(verbose)


@app.command("links", help="列出已配置的信息源链接。")
def links_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    links = state.repository.load_links()
    if not links:
        console.print("暂无配置的链接，可设置 INSIGHT_HUB_LINKS 或编辑 data/links.txt。", style="yellow")
        raise typer.Exit(code=0)
    table = Table(title=f"信息源链接 · 共 {len(links)} 个", box=box.SIMPLE_HEAD)
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("链接", style="cyan", overflow="fold")
    for index, link in enumerate(links, start=1):
        table.add_row(str(index), link)
    console.print(table)


@app.command("run", help="为每个链接启动轮询任务，直到按下 Ctrl+C。")
def run(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    links = state.repository.load_links()
    if not links:
        console.print("暂无配置的链接，无法启动同步。", style="yellow")
        raise typer.Exit(code=1)
    workers = state.synchronizer.register_links(links)
    console.print(f"已启动 {len(workers)} 个同步任务，按 Ctrl+C 退出。", style="green")
    stop = Event()
    try:
        while not stop.wait(1.0):
            pass
    except KeyboardInterrupt:
        console.print("正在停止…", style="yellow")
    finally:
        state.synchronizer.close()


@app.command("sync", help="立即对单个链接执行一次同步周期。")
def sync(
    ctx: typer.Context,
    link: str = typer.Argument(..., help="描述文件（*.meta.json）或索引文件（*.txt）链接。"),
) -> None:
    state = _get_state(ctx)
    try:
        report = state.synchronizer.sync_once(link)
    except SyncError as exc:
        console.print(f"解析信息源失败：{exc}", style="red")
        raise typer.Exit(code=1)
    finally:
        state.synchronizer.close()
    console.print(_render_report(link, report))
    if report.error is not None:
        console.print(str(report.error), style="red", markup=False)
    if not report.success:
        raise typer.Exit(code=1)


@app.command("records", help="查看最近入库的记录。")
def records(
    ctx: typer.Context,
    source: Optional[str] = typer.Option(None, "--source", help="仅显示指定来源。"),
    limit: int = typer.Option(50, "--limit", help="显示记录数量。"),
) -> None:
    state = _get_state(ctx)
    if source:
        rows = state.store.recent_records_by_source(source, limit=limit)
        title = f"{source} 最近 {len(rows)} 条记录"
    else:
        rows = state.store.recent_records(limit=limit)
        title = f"最近 {len(rows)} 条记录"
    if not rows:
        console.print("没有记录。", style="dim")
        return
    console.print(_render_records_table(title, rows))


@app.command("sources", help="列出已入库记录的来源及其描述信息。")
def sources(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    slugs = state.store.record_sources()
    if not slugs:
        console.print("暂无来源。", style="dim")
        return
    table = Table(title=f"来源总览 · 共 {len(slugs)} 个", box=box.SIMPLE_HEAD)
    table.add_column("来源", style="cyan", no_wrap=True)
    table.add_column("名称", style="magenta")
    table.add_column("主页", overflow="fold")
    for slug in slugs:
        meta = state.store.meta_info(slug)
        table.add_row(slug, meta.name if meta else "-", meta.home_page if meta else "-")
    console.print(table)


app.add_typer(log_app, name="log", help="查看日志文件")


@log_app.command("list", help="列出可用的日志文件。")
def log_list() -> None:
    logs = list(available_source_logs())
    console.print("日志文件：", style="cyan")
    if not logs:
        console.print("暂未生成任何信息源日志。", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("文件名", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="查看指定日志的最近内容。")
def log_show(
    name: Optional[str] = typer.Option(None, "--source", help="信息源名称（为空则展示全局日志）。"),
    tail: int = typer.Option(100, "--tail", help="显示最近 N 行内容。"),
) -> None:
    path = source_log_path(name) if name else log_dir() / "sync.log"
    lines = tail_log(path, tail)
    if not lines:
        console.print("暂无日志信息，请稍后再试。", style="dim")
        return
    header = f"{'源日志' if name else '全局日志'} · 最近 {len(lines)} 行"
    console.print(header, style="cyan")
    console.print("".join(lines))


__all__ = ["AppState", "app", "build_state"]
