"""LoggingMiddleware -- 请求级访问日志

每个请求分配一个 ULID request_id 并绑定到 structlog contextvars，
路径为 /api/tasks/{id} 时同时绑定 task_id，Store 内部日志因此可按请求串联。
完成日志携带状态码与耗时；4xx 记 warning，5xx 记 error。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

# 探活请求只记 debug
_QUIET_PATHS = {"/health", "/ready"}


def _task_id_from_path(path: str) -> str | None:
    """从 /api/tasks/{task_id} 提取任务 ID"""
    parts = [p for p in path.split("/") if p]
    if len(parts) >= 3 and parts[0] == "api" and parts[1] == "tasks":
        return parts[2]
    return None


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())
        path = request.url.path

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=path,
        )
        if task_id := _task_id_from_path(path):
            structlog.contextvars.bind_contextvars(task_id=task_id)

        log = structlog.get_logger()
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        status = response.status_code
        if status >= 500:
            await log.aerror("request_failed", status_code=status, duration_ms=duration_ms)
        elif status >= 400:
            await log.awarning("request_rejected", status_code=status, duration_ms=duration_ms)
        elif path in _QUIET_PATHS:
            await log.adebug("request_completed", status_code=status, duration_ms=duration_ms)
        else:
            await log.ainfo("request_completed", status_code=status, duration_ms=duration_ms)

        response.headers["X-Request-ID"] = request_id
        return response
