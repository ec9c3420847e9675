"""SyncClient 状态机测试 -- 使用脚本化的假通道与假 sleep

测试内容：
1. 首次 board_sync -> synced，增量事件应用到副本
2. 通道持续失败时退避序列 1, 2, 4, 8, 16, 30, 30
3. board_sync 后退避重置
4. 重连后的 board_sync 触发一次全量拉取
5. close() 取消等待中的重连与已打开的通道（含 run() 被直接 await 的情况），之后不再有状态变化
"""

import asyncio

import pytest

from kanbrawl.core.models import (
    Board,
    BoardSyncEvent,
    Column,
    TaskDeletedEvent,
)
from kanbrawl.sync import SyncClient, SyncState


def board_with(*names: str) -> Board:
    return Board(columns=[Column(name=n) for n in names])


class ScriptedChannel:
    """每次 open() 按脚本返回一个通道：依次产出事件，最后抛出异常或正常结束"""

    def __init__(self, scripts: list[tuple[list, Exception | None]]) -> None:
        self.scripts = list(scripts)
        self.opened = 0

    def open(self):
        self.opened += 1
        if self.scripts:
            events, error = self.scripts.pop(0)
        else:
            events, error = [], ConnectionError("refused")
        return self._run(events, error)

    async def _run(self, events, error):
        for event in events:
            yield event
        if error is not None:
            raise error


class RecordingSleep:
    """记录等待时长；达到次数上限后关闭客户端"""

    def __init__(self, stop_after: int) -> None:
        self.delays: list[float] = []
        self.stop_after = stop_after
        self.client: SyncClient | None = None

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if len(self.delays) >= self.stop_after:
            self.client.close()


def make_client(channel, sleep, fetch_board=None, on_change=None) -> SyncClient:
    async def default_fetch() -> Board:
        return board_with("Fetched")

    client = SyncClient(
        channel.open,
        fetch_board or default_fetch,
        on_change=on_change,
        sleep=sleep,
    )
    sleep.client = client
    return client


class TestSyncClient:
    async def test_initial_sync_and_incremental_events(self):
        board = board_with("Todo", "Done")
        channel = ScriptedChannel(
            [([BoardSyncEvent(board=board), TaskDeletedEvent(task_id="x")], ConnectionError())]
        )
        sleep = RecordingSleep(stop_after=1)
        changes = []
        states = []

        def on_change(current, event):
            changes.append(event.type)
            states.append(client.state)

        client = make_client(channel, sleep, on_change=on_change)
        await client.run()

        assert changes == ["board_sync", "task_deleted"]
        assert states == [SyncState.SYNCED, SyncState.SYNCED]
        assert client.board.column_names() == ["Todo", "Done"]
        assert client.state == SyncState.DISCONNECTED

    async def test_backoff_sequence_while_failing(self):
        channel = ScriptedChannel([])
        sleep = RecordingSleep(stop_after=7)
        client = make_client(channel, sleep)

        await client.run()

        assert sleep.delays == [1, 2, 4, 8, 16, 30, 30]
        assert channel.opened == 7

    async def test_backoff_resets_after_sync(self):
        channel = ScriptedChannel(
            [
                ([], ConnectionError()),
                ([], ConnectionError()),
                ([BoardSyncEvent(board=board_with("Todo"))], None),
            ]
        )
        sleep = RecordingSleep(stop_after=4)
        client = make_client(channel, sleep)

        await client.run()

        # 失败 1s、2s；同步成功后通道结束，退避从 1s 重新开始
        assert sleep.delays == [1, 2, 1, 2]

    async def test_reconnect_sync_refetches_board(self):
        fetched = []

        async def fetch_board() -> Board:
            fetched.append(True)
            return board_with("Fresh")

        channel = ScriptedChannel(
            [
                ([BoardSyncEvent(board=board_with("First"))], ConnectionError()),
                ([BoardSyncEvent(board=board_with("Stale"))], None),
            ]
        )
        sleep = RecordingSleep(stop_after=2)
        client = make_client(channel, sleep, fetch_board=fetch_board)

        await client.run()

        assert len(fetched) == 1
        assert client.board.column_names() == ["Fresh"]

    async def test_first_sync_does_not_refetch(self):
        fetched = []

        async def fetch_board() -> Board:
            fetched.append(True)
            return board_with("Fresh")

        channel = ScriptedChannel([([BoardSyncEvent(board=board_with("Todo"))], None)])
        sleep = RecordingSleep(stop_after=1)
        client = make_client(channel, sleep, fetch_board=fetch_board)

        await client.run()

        assert fetched == []
        assert client.board.column_names() == ["Todo"]

    async def test_close_cancels_pending_reconnect(self):
        channel = ScriptedChannel([])
        sleeping = asyncio.Event()

        async def slow_sleep(delay: float) -> None:
            sleeping.set()
            await asyncio.sleep(3600)

        client = SyncClient(channel.open, fetch_board=None, sleep=slow_sleep)
        task = client.start()
        await asyncio.wait_for(sleeping.wait(), timeout=1)
        assert client.state == SyncState.RECONNECTING

        await client.aclose()

        assert task.done()
        assert client.state == SyncState.DISCONNECTED
        assert channel.opened == 1

    async def test_close_interrupts_directly_awaited_reconnect_wait(self):
        """run() 被直接 await（watch 命令的用法）时，close() 同样打断重连等待"""
        channel = ScriptedChannel([])

        async def slow_sleep(delay: float) -> None:
            asyncio.get_running_loop().call_soon(client.close)
            await asyncio.sleep(3600)

        client = SyncClient(channel.open, fetch_board=None, sleep=slow_sleep)

        await asyncio.wait_for(client.run(), timeout=1)

        assert client.state == SyncState.DISCONNECTED
        assert channel.opened == 1

    async def test_close_tears_down_open_channel(self):
        """通道阻塞等待事件时 close()：通道被关闭，run() 正常返回"""
        opened = asyncio.Event()
        torn_down = []

        async def idle_channel():
            opened.set()
            try:
                await asyncio.sleep(3600)
                yield BoardSyncEvent(board=board_with("Never"))
            finally:
                torn_down.append(True)

        client = SyncClient(idle_channel, fetch_board=None)
        runner = asyncio.ensure_future(client.run())
        await asyncio.wait_for(opened.wait(), timeout=1)
        assert client.state == SyncState.CONNECTING

        client.close()
        await asyncio.wait_for(runner, timeout=1)

        assert runner.done() and not runner.cancelled()
        assert torn_down == [True]
        assert client.state == SyncState.DISCONNECTED

    async def test_outer_cancellation_still_propagates(self):
        """调用方自身被取消时 run() 不吞掉 CancelledError"""
        opened = asyncio.Event()

        async def idle_channel():
            opened.set()
            await asyncio.sleep(3600)
            yield BoardSyncEvent(board=board_with("Never"))

        client = SyncClient(idle_channel, fetch_board=None)
        runner = asyncio.ensure_future(client.run())
        await asyncio.wait_for(opened.wait(), timeout=1)

        runner.cancel()
        with pytest.raises(asyncio.CancelledError):
            await runner
        assert runner.cancelled()

    async def test_close_is_idempotent(self):
        client = SyncClient(ScriptedChannel([]).open, fetch_board=None)
        client.close()
        client.close()
        assert client.closed
        assert client.state == SyncState.DISCONNECTED
        # 关闭后 run() 立即返回
        await client.run()
        assert client.state == SyncState.DISCONNECTED
