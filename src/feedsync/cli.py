"""命令行入口."""

import asyncio
import logging
from datetime import datetime

import typer
from rich.console import Console
from rich.table import Table

from feedsync.config import ConfigurationError, get_settings
from feedsync.core.update import UpdateCriteria, UpdateService, UpdateSummary
from feedsync.fetcher.client import FeedFetchError
from feedsync.store.base import RecordStoreError
from feedsync.store.factory import create_record_store

console = Console()

app = typer.Typer(
    name="feedsync",
    help="FeedSync - RSS/Atom 订阅源同步工具",
    no_args_is_help=True,
)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _print_summary(summary: UpdateSummary) -> None:
    table = Table(title="更新结果")
    table.add_column("项目")
    table.add_column("数量", justify="right")
    table.add_row("Feed 总数", str(summary.total))
    table.add_row("成功", str(summary.success))
    table.add_row("未修改", str(summary.not_modified))
    table.add_row("跳过", str(summary.skipped))
    table.add_row("失败", str(summary.errors))
    table.add_row("新文章", str(summary.articles_created))
    table.add_row("更新文章", str(summary.articles_updated))
    console.print(table)


def _service() -> UpdateService:
    settings = get_settings()
    try:
        store = create_record_store(settings)
    except ConfigurationError as e:
        console.print(f"[red]配置错误: {e}[/red]")
        raise typer.Exit(1) from e
    return UpdateService(store, settings)


async def _run_update(service: UpdateService, criteria: UpdateCriteria) -> UpdateSummary:
    try:
        return await service.run(criteria)
    finally:
        await service.store.close()


@app.command("update")
def update_command(
    delay: float | None = typer.Option(
        None, "--delay", help="同一源站请求间隔（秒）"
    ),
    skip_robots_check: bool = typer.Option(
        False, "--skip-robots-check", help="跳过 robots.txt 检查"
    ),
    max_failures: int | None = typer.Option(
        None, "--max-failures", help="跳过连续失败次数超过此值的 Feed"
    ),
    min_popularity: int | None = typer.Option(
        None, "--min-popularity", help="最小订阅数"
    ),
    last_attempted_before: datetime | None = typer.Option(
        None, "--last-attempted-before", help="只更新在此时间前尝试过的 Feed"
    ),
    limit: int | None = typer.Option(None, "--limit", help="最多处理的 Feed 数"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
) -> None:
    """更新 Feed 并同步文章；有 Feed 失败时退出码为 1."""
    _setup_logging(verbose)
    settings = get_settings()
    defaults = UpdateCriteria.from_settings(settings)

    criteria = UpdateCriteria(
        last_attempted_before=last_attempted_before or defaults.last_attempted_before,
        min_popularity=min_popularity if min_popularity is not None else defaults.min_popularity,
        max_failures=max_failures if max_failures is not None else defaults.max_failures,
        limit=limit if limit is not None else defaults.limit,
        delay=delay if delay is not None else defaults.delay,
        skip_robots_check=skip_robots_check or defaults.skip_robots_check,
    )

    try:
        summary = asyncio.run(_run_update(_service(), criteria))
    except RecordStoreError as e:
        console.print(f"[red]记录存储错误: {e}[/red]")
        raise typer.Exit(1) from e

    _print_summary(summary)
    if summary.failed:
        console.print(f"[red]{summary.errors} 个 Feed 更新失败[/red]")
        raise typer.Exit(1)


@app.command("add-feed")
def add_feed_command(
    url: str = typer.Argument(..., help="Feed URL"),
) -> None:
    """抓取一次以验证并添加 Feed."""
    _setup_logging(False)
    service = _service()

    async def _add() -> None:
        try:
            feed = await service.add_feed(url)
        finally:
            await service.store.close()
        console.print(f"[green]已添加: {feed.title or url} ({feed.record_name})[/green]")

    try:
        asyncio.run(_add())
    except (ValueError, FeedFetchError, RecordStoreError) as e:
        console.print(f"[red]添加失败: {e}[/red]")
        raise typer.Exit(1) from e


@app.command("clear")
def clear_command(
    confirm: bool = typer.Option(False, "--confirm", help="确认删除全部数据"),
) -> None:
    """删除全部文章和 Feed."""
    if not confirm:
        console.print("[yellow]将删除全部文章和 Feed，请加 --confirm 确认[/yellow]")
        raise typer.Exit(1)

    _setup_logging(False)
    service = _service()

    async def _clear() -> tuple[int, int]:
        try:
            return await service.clear_all()
        finally:
            await service.store.close()

    try:
        articles, feeds = asyncio.run(_clear())
    except RecordStoreError as e:
        console.print(f"[red]清空失败: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(f"[green]已删除 {articles} 篇文章, {feeds} 个 Feed[/green]")


@app.command("serve")
def serve_command(
    host: str = typer.Option("0.0.0.0", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """启动 HTTP 服务（含定时任务）."""
    import uvicorn

    uvicorn.run("feedsync.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
