"""任务变更路由

POST   /api/tasks:       创建任务（201）
PATCH  /api/tasks/{id}:  换列和/或更新字段
DELETE /api/tasks/{id}:  删除任务（204）

处理函数均为 async def，保证 Store 调用在事件循环线程内串行执行。
"""

from fastapi import APIRouter, Depends, Response
from kanbrawl.core.exceptions import BoardError
from kanbrawl.core.models import Priority, Task
from kanbrawl.core.store import BoardStore
from pydantic import BaseModel, Field

from ..deps import get_store
from ..errors import board_error_response
from ..services.task_service import TaskService

router = APIRouter()


class CreateTaskRequest(BaseModel):
    """创建任务请求体"""

    title: str = Field(default="", description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    column: str | None = Field(default=None, description="目标列，缺省为第一列")
    priority: Priority | None = Field(default=None, description="优先级，缺省 P1")
    assignee: str | None = Field(default=None, description="负责人")


class PatchTaskRequest(BaseModel):
    """任务 patch 请求体 -- 只处理出现的字段"""

    column: str | None = Field(default=None, description="目标列")
    title: str | None = Field(default=None, description="新标题")
    description: str | None = Field(default=None, description="新描述")
    priority: Priority | None = Field(default=None, description="新优先级")
    assignee: str | None = Field(default=None, description="新负责人，空串表示取消分配")


@router.post("/api/tasks", status_code=201, response_model=Task)
async def create_task(
    body: CreateTaskRequest,
    store: BoardStore = Depends(get_store),
):
    """创建任务，返回 Store 分配了 ID 与时间戳的任务"""
    service = TaskService(store)
    try:
        return service.create_task(
            body.title,
            body.description,
            body.column,
            body.priority,
            body.assignee,
        )
    except BoardError as e:
        return board_error_response(e)


@router.patch("/api/tasks/{task_id}", response_model=Task)
async def patch_task(
    task_id: str,
    body: PatchTaskRequest,
    store: BoardStore = Depends(get_store),
):
    """换列和/或更新字段；空 patch 返回任务当前状态"""
    service = TaskService(store)
    try:
        return service.patch_task(
            task_id,
            column=body.column,
            title=body.title,
            description=body.description,
            priority=body.priority,
            assignee=body.assignee,
        )
    except BoardError as e:
        return board_error_response(e)


@router.delete("/api/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    store: BoardStore = Depends(get_store),
):
    """删除任务"""
    service = TaskService(store)
    try:
        service.delete_task(task_id)
    except BoardError as e:
        return board_error_response(e)
    return Response(status_code=204)
