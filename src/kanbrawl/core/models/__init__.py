"""Kanbrawl Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import PRIORITY_RANK, Priority, SortBy, SortOrder, Theme
from .event import (
    BoardEvent,
    BoardSyncEvent,
    ColumnsUpdatedEvent,
    TaskCreatedEvent,
    TaskDeletedEvent,
    TaskMovedEvent,
    TaskUpdatedEvent,
    board_event_adapter,
    parse_board_event,
)
from .task import Board, CamelModel, Column, Task, sort_tasks

__all__ = [
    # 枚举
    "Priority",
    "PRIORITY_RANK",
    "SortBy",
    "SortOrder",
    "Theme",
    # 实体
    "CamelModel",
    "Board",
    "Column",
    "Task",
    "sort_tasks",
    # 事件
    "BoardEvent",
    "BoardSyncEvent",
    "TaskCreatedEvent",
    "TaskUpdatedEvent",
    "TaskMovedEvent",
    "TaskDeletedEvent",
    "ColumnsUpdatedEvent",
    "board_event_adapter",
    "parse_board_event",
]
