"""BoardError -> HTTP 错误响应映射

错误体格式: {"error": {"code": ..., "message": ...}}
"""

from kanbrawl.core.exceptions import (
    BoardError,
    BoardValidationError,
    ColumnInvariantError,
    ColumnNotFoundError,
    TaskNotFoundError,
)
from starlette.responses import JSONResponse

HTTP_STATUS_BY_ERROR: dict[type[BoardError], int] = {
    BoardValidationError: 400,
    ColumnNotFoundError: 400,
    TaskNotFoundError: 404,
    ColumnInvariantError: 409,
}


def board_error_response(exc: BoardError) -> JSONResponse:
    """将 Store 错误转换为 JSON 错误响应（未登记的错误类型返回 500）"""
    status_code = HTTP_STATUS_BY_ERROR.get(type(exc), 500)
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )
