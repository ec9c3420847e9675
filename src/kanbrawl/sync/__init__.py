"""Kanbrawl 观察者同步协议

公共接口:
- SyncClient: 可复用的重连同步状态机
- BoardReplica: 本地看板副本
- HttpBoardChannel: 基于 httpx 的 SSE 通道 + 全量读取
- ReconnectBackoff / SyncState
"""

from .client import CHANNEL_ERRORS, SyncClient
from .http_channel import HttpBoardChannel, iter_sse_events
from .replica import BoardReplica
from .state import ReconnectBackoff, SyncState

__all__ = [
    "SyncClient",
    "CHANNEL_ERRORS",
    "BoardReplica",
    "HttpBoardChannel",
    "iter_sse_events",
    "ReconnectBackoff",
    "SyncState",
]
