"""Task / Column / Board 领域模型

线上格式（JSON 文件、REST、SSE、MCP 输出）统一使用 camelCase 字段名，
Python 侧使用 snake_case 属性名。
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

from ..config import ASSIGNEE_MAX_LENGTH, DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH
from .enums import PRIORITY_RANK, Priority, SortBy, SortOrder, Theme

TaskTitle = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=TITLE_MAX_LENGTH),
]
TaskDescription = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=DESCRIPTION_MAX_LENGTH),
]
TaskAssignee = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=ASSIGNEE_MAX_LENGTH),
]


class CamelModel(BaseModel):
    """camelCase 线上格式基类"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        validate_by_name=True,
        validate_by_alias=True,
        serialize_by_alias=True,
    )


class Column(CamelModel):
    """看板列 -- 有序、具名、带展示排序策略"""

    name: Annotated[str, StringConstraints(strip_whitespace=True)] = Field(
        description="列名（区分大小写，去除首尾空白）"
    )
    sort_by: SortBy = Field(default=SortBy.CREATED, description="排序字段")
    sort_order: SortOrder = Field(default=SortOrder.ASC, description="排序方向")


class Task(CamelModel):
    """Task 数据模型

    id 与时间戳只由 BoardStore 分配，调用方不可提供。
    """

    id: str = Field(description="唯一标识，ULID 格式")
    title: TaskTitle = Field(description="任务标题")
    description: TaskDescription = Field(default="", description="任务描述")
    column: str = Field(description="所在列名")
    priority: Priority = Field(default=Priority.NORMAL, description="优先级")
    assignee: TaskAssignee = Field(default="", description="负责人，空串表示未分配")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @model_validator(mode="after")
    def check_timestamps(self) -> "Task":
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt must not be earlier than createdAt")
        return self


class Board(CamelModel):
    """看板聚合根 -- 持久化单元"""

    columns: list[Column] = Field(default_factory=list, description="有序列集合")
    tasks: list[Task] = Field(default_factory=list, description="任务集合")
    theme: Theme | None = Field(default=None, description="展示主题（可选）")

    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def find_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None


def sort_tasks(tasks: list[Task], column: Column) -> list[Task]:
    """按列的排序策略返回排好序的任务副本（稳定排序）

    Args:
        tasks: 待排序任务
        column: 提供 sort_by / sort_order 的列

    Returns:
        新列表，原列表不变
    """
    return sorted(
        tasks,
        key=_SORT_KEYS[column.sort_by],
        reverse=column.sort_order == SortOrder.DESC,
    )


_SORT_KEYS = {
    SortBy.PRIORITY: lambda t: PRIORITY_RANK[t.priority],
    SortBy.CREATED: lambda t: t.created_at,
    SortBy.UPDATED: lambda t: t.updated_at,
}
