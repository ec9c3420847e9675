"""SSEHub -- 内存中的领域事件广播器

每个订阅者持有一个有界 asyncio.Queue，支持 subscribe/unsubscribe/publish。
投递为即发即弃、每个连接至多一次：不确认、不重试、不缓存错过的事件。
"""

import asyncio
import contextlib

import structlog
from kanbrawl.core.config import SSE_QUEUE_MAXSIZE
from kanbrawl.core.models import BoardEvent

log = structlog.get_logger()


class Subscription:
    """单个推送通道的句柄"""

    def __init__(self, queue_maxsize: int) -> None:
        # None 为关闭标记，用于唤醒阻塞在 get() 上的事件流
        self.queue: asyncio.Queue[BoardEvent | None] = asyncio.Queue(maxsize=queue_maxsize)
        self.closed = False


class SSEHub:
    """SSE 事件广播器 -- 基于 asyncio.Queue 的发布/订阅注册表"""

    def __init__(self, queue_maxsize: int = SSE_QUEUE_MAXSIZE) -> None:
        self._subscribers: set[Subscription] = set()
        self._queue_maxsize = queue_maxsize

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        """注册新的推送通道

        Returns:
            Subscription 句柄，新事件会被推送到其 queue
        """
        subscription = Subscription(self._queue_maxsize)
        self._subscribers.add(subscription)
        log.info("sse_subscribed", subscribers=len(self._subscribers))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """取消订阅（可重复调用），并唤醒正在等待该队列的事件流"""
        if not subscription.closed:
            subscription.closed = True
            # 队列已满时事件流不会阻塞，无需标记
            with contextlib.suppress(asyncio.QueueFull):
                subscription.queue.put_nowait(None)
        if subscription in self._subscribers:
            self._subscribers.discard(subscription)
            log.info("sse_unsubscribed", subscribers=len(self._subscribers))

    def publish(self, event: BoardEvent) -> None:
        """按发出顺序向所有订阅者投递事件

        写入失败（队列已满）的订阅者视为断开：标记关闭并移除，不向调用方报错。
        """
        dead: list[Subscription] = []
        for subscription in self._subscribers:
            try:
                subscription.queue.put_nowait(event)
            except asyncio.QueueFull:
                dead.append(subscription)

        for subscription in dead:
            log.warning("sse_subscriber_dropped", reason="queue_full")
            self.unsubscribe(subscription)

    def close(self) -> None:
        """关闭所有订阅（应用关闭时调用）"""
        for subscription in list(self._subscribers):
            self.unsubscribe(subscription)
