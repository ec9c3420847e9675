"""BoardReplica -- 观察者侧的本地看板副本

board_sync 整体替换；任务事件按 ID 插入/替换/删除；columns_updated 整体替换列。
"""

from kanbrawl.core.models import (
    Board,
    BoardEvent,
    BoardSyncEvent,
    ColumnsUpdatedEvent,
    Task,
    TaskCreatedEvent,
    TaskDeletedEvent,
    TaskMovedEvent,
    TaskUpdatedEvent,
    sort_tasks,
)


class BoardReplica:
    """本地副本，只通过 apply()/replace() 修改"""

    def __init__(self, board: Board | None = None) -> None:
        self.board = board.model_copy(deep=True) if board else Board()

    def replace(self, board: Board) -> None:
        self.board = board.model_copy(deep=True)

    def _upsert(self, task: Task) -> None:
        for i, existing in enumerate(self.board.tasks):
            if existing.id == task.id:
                self.board.tasks[i] = task
                return
        self.board.tasks.append(task)

    def apply(self, event: BoardEvent) -> None:
        """应用一个领域事件"""
        if isinstance(event, BoardSyncEvent):
            self.replace(event.board)
        elif isinstance(event, (TaskCreatedEvent, TaskUpdatedEvent, TaskMovedEvent)):
            self._upsert(event.task.model_copy(deep=True))
        elif isinstance(event, TaskDeletedEvent):
            self.board.tasks = [t for t in self.board.tasks if t.id != event.task_id]
        elif isinstance(event, ColumnsUpdatedEvent):
            self.board.columns = [c.model_copy() for c in event.columns]

    def tasks_in(self, column_name: str) -> list[Task]:
        """按列的展示排序策略返回该列任务"""
        tasks = [t for t in self.board.tasks if t.column == column_name]
        for column in self.board.columns:
            if column.name == column_name:
                return sort_tasks(tasks, column)
        return tasks
