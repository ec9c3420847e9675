"""看板查询与列管理路由

GET /api/board:   完整看板快照
PUT /api/columns: 整体替换列集合（元素可为结构化列或纯列名）
"""

from fastapi import APIRouter, Depends
from kanbrawl.core.exceptions import BoardError
from kanbrawl.core.models import Board, Column
from kanbrawl.core.store import BoardStore
from pydantic import BaseModel

from ..deps import get_store
from ..errors import board_error_response
from ..services.task_service import TaskService

router = APIRouter()


class ColumnsRequest(BaseModel):
    """列集合替换请求体"""

    columns: list[Column | str]


class ColumnsResponse(BaseModel):
    """列集合响应"""

    columns: list[Column]


@router.get("/api/board", response_model=Board, response_model_exclude_none=True)
async def get_board(store: BoardStore = Depends(get_store)):
    """返回完整看板（columns + tasks + theme）"""
    return store.get_board()


@router.put("/api/columns", response_model=ColumnsResponse)
async def update_columns(
    body: ColumnsRequest,
    store: BoardStore = Depends(get_store),
):
    """整体替换列集合，被移除列的任务归入新的第一列"""
    service = TaskService(store)
    try:
        columns = service.update_columns(body.columns)
    except BoardError as e:
        return board_error_response(e)
    return ColumnsResponse(columns=columns)
