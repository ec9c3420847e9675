"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store / SSEHub 实例

实例通过 app.state 管理，在 create_app 中装配。
"""

from fastapi import Request
from kanbrawl.core.store import BoardStore

from .services.sse_hub import SSEHub


def get_store(request: Request) -> BoardStore:
    """从 app.state 获取 BoardStore 实例"""
    return request.app.state.store


def get_sse_hub(request: Request) -> SSEHub:
    """从 app.state 获取 SSEHub 实例"""
    return request.app.state.sse_hub
