"""FastAPI 应用主文件

app 创建 + lifespan 管理：BoardStore 装配、SSEHub 接线、MCP 会话管理、路由注册。
uvicorn 入口使用工厂模式: uvicorn kanbrawl.gateway.main:create_app --factory
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from kanbrawl.core.config import get_static_dir
from kanbrawl.core.store import BoardStore, create_board_store

from .middleware.logging_config import setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .routes import board, health, stream, tasks
from .services.mcp_tools import create_mcp_server
from .services.sse_hub import SSEHub

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动 MCP 会话管理器，关闭时断开所有推送通道"""
    log.info(
        "gateway_started",
        board_file=str(app.state.store.file_path),
        mcp_enabled=app.state.mcp_server is not None,
    )

    if app.state.mcp_server is not None:
        async with app.state.mcp_server.session_manager.run():
            yield
    else:
        yield

    # 关闭：解除 Store -> SSEHub 接线并关闭所有订阅
    app.state.unsubscribe_store()
    app.state.sse_hub.close()
    log.info("gateway_stopped")


def create_app(
    store: BoardStore | None = None,
    data_file: str | Path | None = None,
    enable_mcp: bool = True,
    configure_logging: bool = True,
) -> FastAPI:
    """创建 FastAPI 应用实例

    Args:
        store: 注入已有的 BoardStore（测试用），None 时按配置创建
        data_file: 看板文件路径，None 时使用 KANBRAWL_DATA_FILE
        enable_mcp: 是否在 /mcp 提供 MCP streamable HTTP 端点
        configure_logging: 是否初始化 structlog
    """
    if configure_logging:
        setup_logging()

    app = FastAPI(
        title="Kanbrawl",
        version="0.1.0",
        description="Live kanban board API: REST, SSE push channel and MCP tools",
        lifespan=lifespan,
    )

    # Store -> SSEHub：每个已落盘的领域事件广播给所有观察者
    board_store = store if store is not None else create_board_store(data_file)
    sse_hub = SSEHub()
    app.state.store = board_store
    app.state.sse_hub = sse_hub
    app.state.unsubscribe_store = board_store.subscribe(sse_hub.publish)

    app.add_middleware(LoggingMiddleware)

    # 注册路由
    app.include_router(board.router, tags=["board"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    app.state.mcp_server = None
    if enable_mcp:
        mcp_server = create_mcp_server(board_store)
        app.state.mcp_server = mcp_server
        # 端点精确位于 /mcp；作为子应用挂载时 POST /mcp 会被 307 重定向到 /mcp/
        app.router.routes.extend(mcp_server.streamable_http_app().routes)

    # 挂载 Web UI 静态文件，在所有 API 路由之后，确保 API 优先匹配
    static_dir = get_static_dir()
    if static_dir is not None and static_dir.exists():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="ui")

    return app
