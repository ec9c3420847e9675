"""领域事件模型

每个事件描述一次已完成且已落盘的状态变更，以 type 字段区分。
board_sync 是推送通道为新连接观察者合成的全量快照，不由 Store 产生。
"""

from typing import Annotated, Literal

from pydantic import Field, TypeAdapter

from .task import Board, CamelModel, Column, Task


class BoardSyncEvent(CamelModel):
    """全量快照"""

    type: Literal["board_sync"] = "board_sync"
    board: Board


class TaskCreatedEvent(CamelModel):
    type: Literal["task_created"] = "task_created"
    task: Task


class TaskUpdatedEvent(CamelModel):
    type: Literal["task_updated"] = "task_updated"
    task: Task


class TaskMovedEvent(CamelModel):
    """任务换列 -- 携带来源列，观察者据此移除旧位置的渲染"""

    type: Literal["task_moved"] = "task_moved"
    task: Task
    from_column: str


class TaskDeletedEvent(CamelModel):
    """任务删除 -- 只携带 ID，任务内容已不可重放"""

    type: Literal["task_deleted"] = "task_deleted"
    task_id: str


class ColumnsUpdatedEvent(CamelModel):
    type: Literal["columns_updated"] = "columns_updated"
    columns: list[Column]


BoardEvent = Annotated[
    BoardSyncEvent
    | TaskCreatedEvent
    | TaskUpdatedEvent
    | TaskMovedEvent
    | TaskDeletedEvent
    | ColumnsUpdatedEvent,
    Field(discriminator="type"),
]

board_event_adapter: TypeAdapter[BoardEvent] = TypeAdapter(BoardEvent)


def parse_board_event(data: str | bytes) -> BoardEvent:
    """从 JSON 文本解析领域事件

    Raises:
        pydantic.ValidationError: JSON 非法或 type 未知
    """
    return board_event_adapter.validate_json(data)
