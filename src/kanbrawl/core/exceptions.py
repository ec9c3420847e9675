"""看板异常体系

所有错误均在状态变更之前同步抛出，不会部分生效；Store 自身不做重试。
各 façade 负责转换为自己的错误表示（HTTP 状态码 / MCP ToolError / CLI 退出码）。
"""


class BoardError(Exception):
    """看板基础异常"""

    code: str = "BOARD_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BoardValidationError(BoardError):
    """字段缺失、超长或格式非法"""

    code = "VALIDATION_ERROR"


class TaskNotFoundError(BoardError):
    """任务 ID 不存在"""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f'Task with id "{task_id}" not found.')
        self.task_id = task_id


class ColumnNotFoundError(BoardError):
    """列名不在当前列集合中"""

    code = "COLUMN_NOT_FOUND"

    def __init__(self, column: str, available: list[str]) -> None:
        """
        Args:
            column: 请求的列名
            available: 当前可用列名（用于错误提示）
        """
        super().__init__(
            f'Column "{column}" does not exist. '
            f"Available columns: {', '.join(available)}"
        )
        self.column = column
        self.available = available


class ColumnInvariantError(BoardError):
    """列集合更新会导致没有任何列"""

    code = "COLUMN_INVARIANT_VIOLATION"


class BoardFileError(BoardError):
    """看板数据文件无法读取或内容损坏"""

    code = "BOARD_FILE_ERROR"
