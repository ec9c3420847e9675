"""SSE 事件流路由

GET /events: 长连接推送看板领域事件。
1. 注册到 SSEHub
2. 立即推送 board_sync 全量快照（注册与取快照之间不让出事件循环，
   因此队列中的事件一定晚于快照）
3. 按顺序推送后续增量事件
4. 15 秒心跳保活；订阅被 Hub 关闭时立即结束流，由客户端重连
"""

import asyncio
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from kanbrawl.core.config import SSE_HEARTBEAT_INTERVAL
from kanbrawl.core.models import BoardEvent, BoardSyncEvent
from kanbrawl.core.store import BoardStore
from sse_starlette.sse import EventSourceResponse

from ..deps import get_sse_hub, get_store
from ..services.sse_hub import SSEHub

router = APIRouter()


def _event_to_sse(event: BoardEvent) -> dict:
    """将领域事件转换为 SSE 消息（event 名即事件类型）"""
    return {
        "event": event.type,
        "data": event.model_dump_json(exclude_none=True),
    }


async def board_event_stream(
    store: BoardStore,
    sse_hub: SSEHub,
    heartbeat_interval: float = SSE_HEARTBEAT_INTERVAL,
) -> AsyncIterator[dict]:
    """单个观察者的事件流生成器"""
    subscription = sse_hub.subscribe()
    snapshot = BoardSyncEvent(board=store.get_board())
    try:
        yield _event_to_sse(snapshot)
        while not subscription.closed:
            try:
                event = await asyncio.wait_for(
                    subscription.queue.get(), timeout=heartbeat_interval
                )
            except TimeoutError:
                yield {"comment": "heartbeat"}
                continue
            if event is None:
                break
            yield _event_to_sse(event)
    finally:
        sse_hub.unsubscribe(subscription)


@router.get("/events")
async def stream_events(
    store: BoardStore = Depends(get_store),
    sse_hub: SSEHub = Depends(get_sse_hub),
):
    """SSE 事件流端点"""
    return EventSourceResponse(board_event_stream(store, sse_hub))
