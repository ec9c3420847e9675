"""façade 一致性集成测试

同一逻辑操作分别经 REST、MCP 工具、CLI 执行，得到相同的 Store 状态与事件类型；
并验证 REST 变更经 SSE 推送通道到达 SyncClient 的本地副本。
"""

import asyncio
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from kanbrawl.cli.main import app as cli_app
from kanbrawl.core.models import Board, parse_board_event
from kanbrawl.core.store import BoardStore
from kanbrawl.gateway.main import create_app
from kanbrawl.gateway.routes.stream import board_event_stream
from kanbrawl.gateway.services.mcp_tools import BoardTools
from kanbrawl.sync import SyncClient, SyncState
from typer.testing import CliRunner


def summarize(board: Board) -> list[tuple]:
    """忽略 ID 与时间戳，比较任务的可见内容"""
    return sorted(
        (t.title, t.column, t.priority, t.assignee, t.description) for t in board.tasks
    )


@pytest_asyncio.fixture
async def rest_store(tmp_path: Path):
    store = BoardStore(tmp_path / "rest.json")
    events: list = []
    store.subscribe(events.append)
    app = create_app(store=store, enable_mcp=False, configure_logging=False)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield store, events, client


class TestFacadeParity:
    async def test_create_then_move(self, rest_store, tmp_path: Path):
        store_a, events_a, client = rest_store
        resp = await client.post(
            "/api/tasks", json={"title": "Fix bug", "priority": "P0", "assignee": "alice"}
        )
        await client.patch(f"/api/tasks/{resp.json()['id']}", json={"column": "Done"})

        store_b = BoardStore(tmp_path / "mcp.json")
        events_b: list = []
        store_b.subscribe(events_b.append)
        tools = BoardTools(store_b)
        created = tools.create_task("Fix bug", priority="P0", assignee="alice")
        tools.move_task(created.id, "Done")

        cli_file = tmp_path / "cli.json"
        runner = CliRunner()
        first = runner.invoke(
            cli_app, ["task", "Fix bug", "-p", "0", "-a", "alice", "--data-file", str(cli_file)]
        )
        second = runner.invoke(
            cli_app, ["task", "Fix bug", "-u", "-c", "Done", "--data-file", str(cli_file)]
        )
        assert first.exit_code == 0 and second.exit_code == 0
        store_c = BoardStore(cli_file)

        assert summarize(store_a.get_board()) == summarize(store_b.get_board())
        assert summarize(store_b.get_board()) == summarize(store_c.get_board())
        assert [e.type for e in events_a] == [e.type for e in events_b]
        assert [e.type for e in events_a] == ["task_created", "task_moved"]

    async def test_rejected_operation_emits_nothing(self, rest_store, tmp_path: Path):
        _, events, client = rest_store
        resp = await client.delete("/api/tasks/01MISSING")
        assert resp.status_code == 404
        assert events == []


class TestObserverSync:
    async def test_rest_change_reaches_sync_client(self, tmp_path: Path):
        """REST 变更 -> Store 事件 -> SSEHub -> 事件流 -> SyncClient 副本"""
        store = BoardStore(tmp_path / "board.json")
        app = create_app(store=store, enable_mcp=False, configure_logging=False)
        hub = app.state.sse_hub

        async def open_channel():
            # 直接消费网关的事件流生成器，跳过 SSE 文本编解码
            async for message in board_event_stream(store, hub, heartbeat_interval=5):
                if "data" in message:
                    yield parse_board_event(message["data"])

        async def fetch_board() -> Board:
            return store.get_board()

        synced = asyncio.Event()
        created = asyncio.Event()

        def on_change(board: Board, event) -> None:
            if event.type == "board_sync":
                synced.set()
            if event.type == "task_created":
                created.set()

        client = SyncClient(open_channel, fetch_board, on_change=on_change)
        client.start()
        await asyncio.wait_for(synced.wait(), timeout=1)
        assert client.state == SyncState.SYNCED

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
            resp = await http.post("/api/tasks", json={"title": "Live"})

        await asyncio.wait_for(created.wait(), timeout=1)
        assert client.board.find_task(resp.json()["id"]).title == "Live"

        await client.aclose()
        assert client.state == SyncState.DISCONNECTED
