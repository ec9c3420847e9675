"""Kanbrawl 命令行入口

- task:  直接调用进程内 BoardStore 创建/更新任务（不经过网关）
- start: 启动网关（uvicorn），或以 --stdio 运行 MCP stdio 服务器
- watch: 终端观察者，通过同步协议实时打印看板
"""

import asyncio
import os
from pathlib import Path

import typer
from kanbrawl.core.config import get_host, get_port
from kanbrawl.core.exceptions import BoardError
from kanbrawl.core.models import Board, BoardEvent, Priority, Task, sort_tasks
from kanbrawl.core.store import BoardStore, create_board_store
from kanbrawl.gateway.middleware.logging_config import setup_logging
from kanbrawl.gateway.services.task_service import TaskService
from kanbrawl.sync import HttpBoardChannel, SyncClient

app = typer.Typer(
    name="kanbrawl",
    help="Live kanban board for humans and AI agents",
    no_args_is_help=True,
)

PRIORITY_BY_LEVEL = {
    0: Priority.CRITICAL,
    1: Priority.NORMAL,
    2: Priority.LOW,
}


def _quiet_logging() -> None:
    """命令行一次性命令默认只输出告警以上的日志"""
    setup_logging(log_level=os.environ.get("KANBRAWL_LOG_LEVEL", "WARNING"))


def find_task_by_title(store: BoardStore, title: str) -> Task | None:
    """按标题查找任务（忽略大小写和首尾空白），返回第一个匹配"""
    needle = title.strip().casefold()
    for task in store.get_tasks():
        if task.title.casefold() == needle:
            return task
    return None


def render_board(board: Board) -> str:
    """将看板渲染为终端文本，每列按其展示排序策略列出任务"""
    lines: list[str] = []
    for column in board.columns:
        tasks = sort_tasks([t for t in board.tasks if t.column == column.name], column)
        lines.append(f"== {column.name} ({len(tasks)}) ==")
        for task in tasks:
            owner = f" @{task.assignee}" if task.assignee else ""
            lines.append(f"  [{task.priority}] {task.title}{owner}  ({task.id})")
    return "\n".join(lines)


@app.command()
def task(
    title: str = typer.Argument(..., help="Task title (lookup key with --update)"),
    description: str | None = typer.Option(
        None, "--description", "-d", help="Task description"
    ),
    column: str | None = typer.Option(
        None, "--column", "-c", help="Target column (defaults to the first column)"
    ),
    priority: int | None = typer.Option(
        None, "--priority", "-p", min=0, max=2, help="0 = critical, 1 = normal, 2 = low"
    ),
    assignee: str | None = typer.Option(None, "--assignee", "-a", help="Assignee"),
    update: bool = typer.Option(
        False, "--update", "-u", help="Update the task with this title instead of creating one"
    ),
    data_file: Path | None = typer.Option(
        None, "--data-file", envvar="KANBRAWL_DATA_FILE", help="Board JSON file"
    ),
) -> None:
    """Create a task, or update an existing one with --update."""
    _quiet_logging()
    level = PRIORITY_BY_LEVEL[priority] if priority is not None else None

    try:
        store = create_board_store(data_file)
        if not update:
            created = store.create_task(title, description, column, level, assignee)
            typer.echo(f"Task created: {created.title} ({created.id})")
            return

        existing = find_task_by_title(store, title)
        if existing is None:
            typer.echo(f'Task with title "{title}" not found.', err=True)
            raise typer.Exit(1)
        updated = TaskService(store).patch_task(
            existing.id,
            column=column,
            description=description,
            priority=level,
            assignee=assignee,
        )
        typer.echo(f"Task updated: {updated.title} ({updated.id})")
    except BoardError as e:
        typer.echo(e.message, err=True)
        raise typer.Exit(1) from e


@app.command()
def start(
    host: str | None = typer.Option(None, "--host", help="Bind address (KANBRAWL_HOST)"),
    port: int | None = typer.Option(None, "--port", help="Bind port (PORT)"),
    data_file: Path | None = typer.Option(
        None, "--data-file", envvar="KANBRAWL_DATA_FILE", help="Board JSON file"
    ),
    stdio: bool = typer.Option(
        False, "--stdio", help="Serve MCP over stdio instead of HTTP"
    ),
) -> None:
    """Start the gateway (REST + SSE + MCP over HTTP)."""
    setup_logging()

    if stdio:
        from kanbrawl.gateway.services.mcp_tools import create_mcp_server

        create_mcp_server(create_board_store(data_file)).run("stdio")
        return

    import uvicorn
    from kanbrawl.gateway.main import create_app

    uvicorn.run(
        create_app(data_file=data_file, configure_logging=False),
        host=host or get_host(),
        port=port or get_port(),
        log_config=None,
    )


async def _watch(url: str) -> None:
    channel = HttpBoardChannel(url)

    def on_change(board: Board, event: BoardEvent) -> None:
        typer.clear()
        typer.echo(f"[{event.type}] {url}\n")
        typer.echo(render_board(board))

    client = SyncClient(channel.events, channel.fetch_board, on_change=on_change)
    try:
        await client.run()
    finally:
        client.close()
        await channel.aclose()


@app.command()
def watch(
    url: str | None = typer.Option(
        None, "--url", help="Gateway URL (defaults to http://KANBRAWL_HOST:PORT)"
    ),
) -> None:
    """Follow the board live in the terminal."""
    _quiet_logging()
    try:
        asyncio.run(_watch(url or f"http://{get_host()}:{get_port()}"))
    except KeyboardInterrupt:
        typer.echo("Stopped.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
