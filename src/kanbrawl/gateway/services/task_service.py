"""TaskService -- REST façade 的任务业务逻辑

只做请求形状到 Store 操作的翻译，不重复 Store 已做的校验。
组合 patch（同时换列和改字段）先 move 再 update，
使最终可观察的 updatedAt 来自字段更新。
"""

from kanbrawl.core.exceptions import TaskNotFoundError
from kanbrawl.core.models import Column, Priority, Task
from kanbrawl.core.store import BoardStore


class TaskService:
    """任务业务服务"""

    def __init__(self, store: BoardStore) -> None:
        self._store = store

    def create_task(
        self,
        title: str,
        description: str | None = None,
        column: str | None = None,
        priority: Priority | None = None,
        assignee: str | None = None,
    ) -> Task:
        return self._store.create_task(title, description, column, priority, assignee)

    def patch_task(
        self,
        task_id: str,
        column: str | None = None,
        title: str | None = None,
        description: str | None = None,
        priority: Priority | None = None,
        assignee: str | None = None,
    ) -> Task:
        """换列和/或更新字段

        Raises:
            TaskNotFoundError: 任务不存在
            ColumnNotFoundError: 目标列不存在
            BoardValidationError: 字段非法
        """
        task = None
        if column is not None:
            task = self._store.move_task(task_id, column)

        fields = {
            "title": title,
            "description": description,
            "priority": priority,
            "assignee": assignee,
        }
        if any(v is not None for v in fields.values()):
            return self._store.update_task(task_id, **fields)

        if task is None:
            task = self._store.get_task(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
        return task

    def delete_task(self, task_id: str) -> None:
        self._store.delete_task(task_id)

    def update_columns(self, columns: list[Column | str]) -> list[Column]:
        return self._store.update_columns(columns)
