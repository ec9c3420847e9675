"""SyncClient -- 可复用的观察者同步状态机

由 open_channel（打开推送通道、逐个产出领域事件）和 fetch_board（同步读取全量看板）
两个回调参数化，Web、编辑器、终端等观察者共用同一实现。

协议:
- connecting: 打开推送通道
- 收到 board_sync: 替换本地副本 -> synced，退避重置为初始值；
  若是重连后的 board_sync，先再走一次 fetch_board 全量拉取再信任快照
- 其它事件: 增量应用到本地副本
- 通道出错或结束: reconnecting，等待当前退避时长后重试，退避翻倍直至上限
- close(): 取消待执行的重连与已打开的通道，此后不再有状态变化
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable

import httpx
import structlog
from kanbrawl.core.models import Board, BoardEvent, BoardSyncEvent

from .replica import BoardReplica
from .state import ReconnectBackoff, SyncState

log = structlog.get_logger()

OpenChannel = Callable[[], AsyncIterator[BoardEvent]]
FetchBoard = Callable[[], Awaitable[Board]]
ChangeCallback = Callable[[Board, BoardEvent], None]

# 视为连接问题、触发重连的异常（ValueError 覆盖 JSON / pydantic 校验失败）
CHANNEL_ERRORS: tuple[type[BaseException], ...] = (httpx.HTTPError, OSError, ValueError)


class SyncClient:
    """单个观察者连接的同步状态机"""

    def __init__(
        self,
        open_channel: OpenChannel,
        fetch_board: FetchBoard,
        on_change: ChangeCallback | None = None,
        backoff: ReconnectBackoff | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            open_channel: 返回领域事件异步迭代器的函数，每次调用打开一个新通道
            fetch_board: 通过 façade 同步读路径获取全量看板
            on_change: 本地副本每次变化后回调 (board, event)
            backoff: 重连退避策略，默认 1s 起、30s 封顶
            sleep: 等待函数（测试可注入）
        """
        self._open_channel = open_channel
        self._fetch_board = fetch_board
        self._on_change = on_change
        self._backoff = backoff or ReconnectBackoff()
        self._sleep = sleep
        self.replica = BoardReplica()
        self.state = SyncState.DISCONNECTED
        self._has_synced = False
        self._closed = False
        self._task: asyncio.Task | None = None
        self._runner: asyncio.Task | None = None

    @property
    def board(self) -> Board:
        return self.replica.board

    @property
    def closed(self) -> bool:
        return self._closed

    def _set_state(self, state: SyncState) -> None:
        if self._closed or state == self.state:
            return
        log.debug("sync_state_changed", from_state=self.state, to_state=state)
        self.state = state

    def start(self) -> asyncio.Task:
        """在后台任务中运行同步循环"""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def run(self) -> None:
        """同步主循环，直到 close() 被调用

        循环体跑在独立的内部任务里：close() 取消该任务即可打断重连等待和已打开的通道，
        无论 run() 由 start() 启动还是被调用方直接 await。
        """
        if self._closed:
            return
        self._runner = asyncio.ensure_future(self._sync_loop())
        try:
            await self._runner
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        finally:
            self._runner = None

    async def _sync_loop(self) -> None:
        while not self._closed:
            self._set_state(SyncState.CONNECTING)
            try:
                async for event in self._open_channel():
                    await self._handle(event)
                    if self._closed:
                        return
                log.info("sync_channel_ended")
            except CHANNEL_ERRORS as e:
                log.warning("sync_channel_error", error=str(e), error_type=type(e).__name__)

            if self._closed:
                return
            self._set_state(SyncState.RECONNECTING)
            delay = self._backoff.next_delay()
            log.info("sync_reconnect_scheduled", delay_s=delay)
            await self._sleep(delay)

    async def _handle(self, event: BoardEvent) -> None:
        if isinstance(event, BoardSyncEvent):
            self.replica.apply(event)
            if self._has_synced:
                # 重连：补偿“通道已打开”到“首个事件到达”之间可能错过的变更
                board = await self._fetch_board()
                if self._closed:
                    return
                self.replica.replace(board)
                log.info("sync_refetched_after_reconnect", tasks=len(board.tasks))
            self._has_synced = True
            self._set_state(SyncState.SYNCED)
            self._backoff.reset()
        else:
            self.replica.apply(event)

        if self._on_change is not None:
            self._on_change(self.replica.board, event)

    def close(self) -> None:
        """停止同步：取消待执行的重连等待和已打开的通道"""
        if self._closed:
            return
        self.state = SyncState.DISCONNECTED
        self._closed = True
        if self._runner is not None and not self._runner.done():
            self._runner.cancel()
        log.info("sync_client_closed")

    async def aclose(self) -> None:
        """close() 并等待后台任务结束"""
        self.close()
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
