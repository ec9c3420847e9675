"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready:  Readiness 检查，包含看板文件可读、所在目录可写、SSE 订阅数。
"""

import os

import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. board_file: 看板文件存在且可读
    2. data_dir: 所在目录可写（整文件重写依赖临时文件 + 替换）
    3. sse_subscribers: 当前推送通道数量（仅信息）
    """
    checks: dict = {}
    all_ok = True

    store = request.app.state.store
    board_file = store.file_path
    if board_file.is_file() and os.access(board_file, os.R_OK):
        checks["board_file"] = "ok"
    else:
        checks["board_file"] = "error: board file missing or unreadable"
        all_ok = False

    if os.access(board_file.parent, os.W_OK):
        checks["data_dir"] = "ok"
    else:
        checks["data_dir"] = "error: directory not writable"
        all_ok = False

    checks["sse_subscribers"] = request.app.state.sse_hub.subscriber_count

    if not all_ok:
        log.warning("readiness_check_failed", checks=checks)

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={"status": "ready" if all_ok else "not_ready", "checks": checks},
    )
