"""BoardStore -- 看板状态的唯一权威持有者

内存状态 + JSON 文件持久化。所有变更操作都遵循同一流程：
1. 在当前状态的深拷贝上校验并应用变更
2. 整文件重写落盘（临时文件 + 原子替换）
3. 替换内存状态
4. 向监听者发出恰好一个领域事件

任何一步之前的失败都不会改变内存或文件（全有或全无）；
观察者永远不会收到尚未落盘状态的事件。
"""

import json
import os
import tempfile
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path

import structlog
from pydantic import ValidationError
from ulid import ULID

from ..exceptions import (
    BoardFileError,
    BoardValidationError,
    ColumnInvariantError,
    ColumnNotFoundError,
    TaskNotFoundError,
)
from ..models import (
    Board,
    BoardEvent,
    Column,
    ColumnsUpdatedEvent,
    Priority,
    Task,
    TaskCreatedEvent,
    TaskDeletedEvent,
    TaskMovedEvent,
    TaskUpdatedEvent,
)
from .migration import column_from_name, upcast_board

log = structlog.get_logger()

BoardListener = Callable[[BoardEvent], None]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _validation_message(exc: ValidationError) -> str:
    """将 pydantic 校验错误压缩为单行可读信息"""
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"]) or "value"
        parts.append(f"{field}: {err['msg']}")
    return "; ".join(parts)


class BoardStore:
    """文件持久化的看板 Store

    单线程事件循环内使用：变更方法同步执行到底，不需要加锁。
    并发的 update_task 对同一任务后写覆盖先写（无版本号校验）。
    """

    def __init__(
        self,
        file_path: str | Path,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """
        Args:
            file_path: 看板 JSON 文件路径，不存在时以默认看板初始化并立即落盘
            clock: 时间源（测试可注入）
        """
        self.file_path = Path(file_path)
        self._clock = clock
        self._listeners: list[BoardListener] = []
        self._board = self._load()

    # ── 加载与持久化 ────────────────────────────────────────────────

    def _load(self) -> Board:
        if not self.file_path.exists():
            board = Board.model_validate(upcast_board({}))
            self._save(board)
            log.info("board_initialized", path=str(self.file_path))
            return board

        try:
            raw = json.loads(self.file_path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError("top-level JSON value must be an object")
            board = Board.model_validate(upcast_board(raw))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise BoardFileError(
                f"Cannot load board file {self.file_path}: {e}"
            ) from e

        try:
            board = self._reconcile(board)
        except ColumnInvariantError as e:
            raise BoardFileError(
                f"Cannot load board file {self.file_path}: {e.message}"
            ) from e
        log.info(
            "board_loaded",
            path=str(self.file_path),
            columns=len(board.columns),
            tasks=len(board.tasks),
        )
        return board

    def _reconcile(self, board: Board) -> Board:
        """加载后修复：去重列名，并把引用不存在列的任务归入第一列"""
        columns = self._normalize_columns(board.columns)
        names = {c.name for c in columns}
        fallback = columns[0].name
        for task in board.tasks:
            if task.column not in names:
                log.warning(
                    "orphan_task_reassigned",
                    task_id=task.id,
                    column=task.column,
                    fallback=fallback,
                )
                task.column = fallback
        board.columns = columns
        return board

    def _save(self, board: Board) -> None:
        """整文件重写：先写临时文件再原子替换，文件永远不会只写一半

        Raises:
            BoardFileError: 目录不可创建或文件不可写
        """
        payload = board.model_dump(mode="json", exclude_none=True)
        text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
        try:
            self._write_atomically(text)
        except OSError as e:
            raise BoardFileError(f"Cannot write board file {self.file_path}: {e}") from e

    def _write_atomically(self, text: str) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.file_path.parent,
            prefix=f".{self.file_path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_path, self.file_path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def _commit(self, board: Board, event: BoardEvent) -> None:
        """落盘 -> 替换内存状态 -> 发出事件"""
        self._save(board)
        self._board = board
        self._emit(event)

    # ── 监听 ────────────────────────────────────────────────────────

    def subscribe(self, listener: BoardListener) -> Callable[[], None]:
        """注册事件监听者

        Returns:
            取消注册的函数
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: BoardEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # 状态已落盘，监听者失败只影响实时通知
                log.warning("board_listener_failed", event_type=event.type, exc_info=True)

    # ── 读取 ────────────────────────────────────────────────────────

    def get_board(self) -> Board:
        """返回完整看板的深拷贝"""
        return self._board.model_copy(deep=True)

    def get_columns(self) -> list[Column]:
        return [c.model_copy() for c in self._board.columns]

    def get_tasks(self, column: str | None = None) -> list[Task]:
        """返回任务深拷贝，可按列过滤（未知列返回空列表）"""
        tasks = self._board.tasks
        if column is not None:
            tasks = [t for t in tasks if t.column == column]
        return [t.model_copy(deep=True) for t in tasks]

    def get_task(self, task_id: str) -> Task | None:
        task = self._board.find_task(task_id)
        return task.model_copy(deep=True) if task else None

    # ── 变更 ────────────────────────────────────────────────────────

    def _require_column(self, board: Board, column: str) -> None:
        names = board.column_names()
        if column not in names:
            raise ColumnNotFoundError(column, names)

    def _require_task(self, board: Board, task_id: str) -> Task:
        task = board.find_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def create_task(
        self,
        title: str,
        description: str | None = None,
        column: str | None = None,
        priority: Priority | str | None = None,
        assignee: str | None = None,
    ) -> Task:
        """创建任务：ID 与时间戳由 Store 分配

        Raises:
            BoardValidationError: 标题为空或字段超长
            ColumnNotFoundError: 指定列不存在
        """
        board = self.get_board()
        target = column if column is not None else board.columns[0].name
        self._require_column(board, target)

        now = self._clock()
        try:
            task = Task(
                id=str(ULID()),
                title=title,
                description=description if description is not None else "",
                column=target,
                priority=priority if priority is not None else Priority.NORMAL,
                assignee=assignee if assignee is not None else "",
                created_at=now,
                updated_at=now,
            )
        except ValidationError as e:
            raise BoardValidationError(_validation_message(e)) from e

        board.tasks.append(task)
        self._commit(board, TaskCreatedEvent(task=task.model_copy(deep=True)))
        log.info("task_created", task_id=task.id, column=task.column)
        return task.model_copy(deep=True)

    def move_task(self, task_id: str, column: str) -> Task:
        """将任务移动到另一列

        Raises:
            TaskNotFoundError: 任务不存在
            ColumnNotFoundError: 目标列不存在
        """
        board = self.get_board()
        task = self._require_task(board, task_id)
        self._require_column(board, column)

        from_column = task.column
        task.column = column
        task.updated_at = self._clock()
        self._commit(
            board,
            TaskMovedEvent(task=task.model_copy(deep=True), from_column=from_column),
        )
        log.info("task_moved", task_id=task_id, from_column=from_column, to_column=column)
        return task.model_copy(deep=True)

    def update_task(
        self,
        task_id: str,
        title: str | None = None,
        description: str | None = None,
        priority: Priority | str | None = None,
        assignee: str | None = None,
    ) -> Task:
        """仅更新提供的字段（None 表示不修改），并刷新 updatedAt

        Raises:
            TaskNotFoundError: 任务不存在
            BoardValidationError: 新字段值非法
        """
        board = self.get_board()
        task = self._require_task(board, task_id)

        fields = {
            "title": title,
            "description": description,
            "priority": priority,
            "assignee": assignee,
        }
        changes = {k: v for k, v in fields.items() if v is not None}
        data = task.model_dump(by_alias=False)
        data.update(changes)
        data["updated_at"] = self._clock()
        try:
            updated = Task.model_validate(data)
        except ValidationError as e:
            raise BoardValidationError(_validation_message(e)) from e

        index = board.tasks.index(task)
        board.tasks[index] = updated
        self._commit(board, TaskUpdatedEvent(task=updated.model_copy(deep=True)))
        log.info("task_updated", task_id=task_id, fields=sorted(changes))
        return updated.model_copy(deep=True)

    def delete_task(self, task_id: str) -> None:
        """删除任务

        Raises:
            TaskNotFoundError: 任务不存在
        """
        board = self.get_board()
        task = self._require_task(board, task_id)
        board.tasks.remove(task)
        self._commit(board, TaskDeletedEvent(task_id=task_id))
        log.info("task_deleted", task_id=task_id)

    @staticmethod
    def _normalize_columns(columns: Sequence[Column | str]) -> list[Column]:
        """去除首尾空白、丢弃空名、按首次出现去重"""
        result: list[Column] = []
        seen: set[str] = set()
        for entry in columns:
            if isinstance(entry, str):
                name = entry.strip()
                column = Column.model_validate(column_from_name(name))
            else:
                name = entry.name.strip()
                column = entry.model_copy(update={"name": name})
            if not name or name in seen:
                continue
            seen.add(name)
            result.append(column)
        if not result:
            raise ColumnInvariantError("At least one non-empty column name is required.")
        return result

    def update_columns(self, columns: Sequence[Column | str]) -> list[Column]:
        """整体替换列集合

        被移除列中的任务归入新的第一列（同时刷新其 updatedAt），
        整个操作只发出一个 columns_updated 事件。

        Raises:
            ColumnInvariantError: 处理后没有任何列
        """
        new_columns = self._normalize_columns(columns)
        board = self.get_board()

        kept = {c.name for c in new_columns}
        removed = [name for name in board.column_names() if name not in kept]
        fallback = new_columns[0].name
        reassigned = 0
        if removed:
            now = self._clock()
            for task in board.tasks:
                if task.column in removed:
                    task.column = fallback
                    task.updated_at = now
                    reassigned += 1

        board.columns = new_columns
        self._commit(
            board,
            ColumnsUpdatedEvent(columns=[c.model_copy() for c in new_columns]),
        )
        log.info(
            "columns_updated",
            columns=[c.name for c in new_columns],
            removed=removed,
            reassigned_tasks=reassigned,
        )
        return [c.model_copy() for c in new_columns]
