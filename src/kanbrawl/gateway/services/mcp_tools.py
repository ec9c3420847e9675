"""MCP 工具 façade -- 供 AI agent 通过结构化工具调用操作看板

每个工具只调用一个 Store 操作，Store 错误转换为 ToolError（isError 结果）。
输入 schema 来自函数签名，输出 schema 来自返回的 pydantic 模型。
"""

from typing import Annotated

import structlog
from kanbrawl.core.config import LIST_TASKS_DEFAULT_LIMIT
from kanbrawl.core.exceptions import BoardError, ColumnNotFoundError
from kanbrawl.core.models import PRIORITY_RANK, CamelModel, Priority, SortBy, SortOrder, Task
from kanbrawl.core.store import BoardStore
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations
from pydantic import Field

log = structlog.get_logger()


class ColumnSummary(CamelModel):
    """列信息 + 任务数"""

    name: str = Field(description="Column name")
    sort_by: SortBy = Field(description="Field used to order tasks for display")
    sort_order: SortOrder = Field(description="Sort direction")
    task_count: int = Field(description="Number of tasks in the column")


class ColumnsResult(CamelModel):
    columns: list[ColumnSummary]


class TaskListResult(CamelModel):
    tasks: list[Task]


class DeleteResult(CamelModel):
    message: str = Field(description="Confirmation message")


class BoardTools:
    """工具调用到 Store 操作的翻译层"""

    def __init__(self, store: BoardStore) -> None:
        self._store = store

    def get_columns(self) -> ColumnsResult:
        tasks = self._store.get_tasks()
        return ColumnsResult(
            columns=[
                ColumnSummary(
                    name=c.name,
                    sort_by=c.sort_by,
                    sort_order=c.sort_order,
                    task_count=sum(1 for t in tasks if t.column == c.name),
                )
                for c in self._store.get_columns()
            ]
        )

    def list_tasks(
        self,
        column: str | None = None,
        priority: Priority | None = None,
        assignee: str | None = None,
        limit: int = LIST_TASKS_DEFAULT_LIMIT,
    ) -> TaskListResult:
        """按列（默认第一列）、优先级、负责人过滤

        结果按优先级升序、创建时间升序排列（稳定排序），最多 limit 条。
        负责人为不区分大小写的精确匹配。
        """
        names = [c.name for c in self._store.get_columns()]
        target = column if column is not None else names[0]
        if target not in names:
            raise ToolError(ColumnNotFoundError(target, names).message)

        tasks = self._store.get_tasks(target)
        if priority is not None:
            tasks = [t for t in tasks if t.priority == priority]
        if assignee is not None:
            wanted = assignee.strip().casefold()
            tasks = [t for t in tasks if t.assignee.casefold() == wanted]

        tasks.sort(key=lambda t: (PRIORITY_RANK[t.priority], t.created_at))
        return TaskListResult(tasks=tasks[:limit])

    def create_task(
        self,
        title: str,
        description: str | None = None,
        column: str | None = None,
        priority: Priority | None = None,
        assignee: str | None = None,
    ) -> Task:
        try:
            return self._store.create_task(title, description, column, priority, assignee)
        except BoardError as e:
            raise ToolError(e.message) from e

    def move_task(self, task_id: str, column: str) -> Task:
        try:
            return self._store.move_task(task_id, column)
        except BoardError as e:
            raise ToolError(e.message) from e

    def update_task(
        self,
        task_id: str,
        title: str | None = None,
        description: str | None = None,
        priority: Priority | None = None,
        assignee: str | None = None,
    ) -> Task:
        try:
            return self._store.update_task(
                task_id,
                title=title,
                description=description,
                priority=priority,
                assignee=assignee,
            )
        except BoardError as e:
            raise ToolError(e.message) from e

    def delete_task(self, task_id: str) -> DeleteResult:
        try:
            self._store.delete_task(task_id)
        except BoardError as e:
            raise ToolError(e.message) from e
        return DeleteResult(message=f'Task "{task_id}" has been deleted.')


_READ_ONLY = ToolAnnotations(
    readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=False
)
_WRITE = ToolAnnotations(
    readOnlyHint=False, destructiveHint=False, idempotentHint=False, openWorldHint=False
)
_IDEMPOTENT_WRITE = ToolAnnotations(
    readOnlyHint=False, destructiveHint=False, idempotentHint=True, openWorldHint=False
)
_DESTRUCTIVE = ToolAnnotations(
    readOnlyHint=False, destructiveHint=True, idempotentHint=True, openWorldHint=False
)

TaskId = Annotated[str, Field(description="Task ID")]


def register_tools(mcp: FastMCP, tools: BoardTools) -> None:
    """在 FastMCP 实例上注册全部看板工具"""

    @mcp.tool(
        name="get_columns",
        title="Get Columns",
        description="Get the list of kanban board columns with their task counts.",
        annotations=_READ_ONLY,
    )
    def get_columns() -> ColumnsResult:
        return tools.get_columns()

    @mcp.tool(
        name="list_tasks",
        title="List Tasks",
        description=(
            "List tasks on the kanban board, filtered by column (defaults to the "
            "first column), priority and assignee. Sorted by priority, then creation time."
        ),
        annotations=_READ_ONLY,
    )
    def list_tasks(
        column: Annotated[
            str | None, Field(description="Column name. Defaults to the first column")
        ] = None,
        priority: Annotated[
            Priority | None, Field(description="Filter by priority level (P0, P1, P2)")
        ] = None,
        assignee: Annotated[
            str | None, Field(description="Filter by assignee (case-insensitive)")
        ] = None,
        limit: Annotated[
            int, Field(ge=1, le=200, description="Maximum number of tasks to return")
        ] = LIST_TASKS_DEFAULT_LIMIT,
    ) -> TaskListResult:
        return tools.list_tasks(column, priority, assignee, limit)

    @mcp.tool(
        name="create_task",
        title="Create Task",
        description="Create a new task on the kanban board.",
        annotations=_WRITE,
    )
    def create_task(
        title: Annotated[str, Field(description="Task title")],
        description: Annotated[str | None, Field(description="Task description")] = None,
        column: Annotated[
            str | None, Field(description="Column to place the task in. Defaults to the first column")
        ] = None,
        priority: Annotated[
            Priority | None, Field(description="Task priority. Defaults to P1")
        ] = None,
        assignee: Annotated[
            str | None, Field(description="Name of the person or agent assigned to this task")
        ] = None,
    ) -> Task:
        return tools.create_task(title, description, column, priority, assignee)

    @mcp.tool(
        name="move_task",
        title="Move Task",
        description="Move an existing task to a different column.",
        annotations=_IDEMPOTENT_WRITE,
    )
    def move_task(
        id: TaskId,
        column: Annotated[str, Field(description="Target column")],
    ) -> Task:
        return tools.move_task(id, column)

    @mcp.tool(
        name="update_task",
        title="Update Task",
        description="Update a task's title, description, priority, and/or assignee.",
        annotations=_IDEMPOTENT_WRITE,
    )
    def update_task(
        id: TaskId,
        title: Annotated[str | None, Field(description="New task title")] = None,
        description: Annotated[str | None, Field(description="New task description")] = None,
        priority: Annotated[Priority | None, Field(description="New task priority")] = None,
        assignee: Annotated[
            str | None, Field(description="New assignee name (empty string to unassign)")
        ] = None,
    ) -> Task:
        return tools.update_task(id, title, description, priority, assignee)

    @mcp.tool(
        name="delete_task",
        title="Delete Task",
        description=(
            "Permanently delete a task from the kanban board. Only use this for "
            "erroneous or test tasks; it cannot be undone."
        ),
        annotations=_DESTRUCTIVE,
    )
    def delete_task(id: TaskId) -> DeleteResult:
        return tools.delete_task(id)

    log.info("mcp_tools_registered", count=6)


def create_mcp_server(store: BoardStore) -> FastMCP:
    """创建已注册看板工具的 MCP 服务器

    streamable HTTP 使用无状态 + JSON 响应模式，端点路径为 /mcp，由网关并入主路由。
    """
    mcp = FastMCP(
        "kanbrawl",
        instructions=(
            "Kanban board for tracking work. Check existing tasks with list_tasks "
            "before creating new ones, set yourself as assignee when starting a task, "
            "and move tasks between columns with move_task to report progress."
        ),
        stateless_http=True,
        json_response=True,
        streamable_http_path="/mcp",
    )
    register_tools(mcp, BoardTools(store))
    return mcp
