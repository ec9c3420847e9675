"""看板文件 Schema 升级 -- 加载时一次性执行

历史格式:
    v1: columns 为纯字符串列表，例如 ["Todo", "Done"]
    v2: columns 为 {name, sortBy, sortOrder} 结构（当前格式）

upcast_board() 逐版本应用升级函数，保证内存中的数据始终是当前格式。
文件本身不记录版本号，版本由结构推断。
"""

from collections.abc import Callable
from typing import Any

import structlog

from ..models.enums import SortBy, SortOrder

log = structlog.get_logger()

CURRENT_SCHEMA_VERSION = 2

DEFAULT_COLUMNS: list[dict[str, str]] = [
    {"name": "Todo", "sortBy": "priority", "sortOrder": "asc"},
    {"name": "In progress", "sortBy": "created", "sortOrder": "asc"},
    {"name": "Blocked", "sortBy": "created", "sortOrder": "asc"},
    {"name": "Done", "sortBy": "updated", "sortOrder": "desc"},
]

_BACKLOG_NAMES = {"todo", "to do", "to-do", "backlog"}
_FINISHED_NAMES = {"done", "completed", "complete", "closed", "archived"}


def infer_sort_policy(name: str) -> tuple[SortBy, SortOrder]:
    """根据惯用列名推断排序策略

    待办类列按优先级升序，完成类列按更新时间降序，其余按创建时间升序。
    """
    normalized = name.strip().lower()
    if normalized in _BACKLOG_NAMES:
        return SortBy.PRIORITY, SortOrder.ASC
    if normalized in _FINISHED_NAMES:
        return SortBy.UPDATED, SortOrder.DESC
    return SortBy.CREATED, SortOrder.ASC


def column_from_name(name: str) -> dict[str, str]:
    """由纯列名构造结构化列（推断排序策略）"""
    sort_by, sort_order = infer_sort_policy(name)
    return {"name": name, "sortBy": sort_by.value, "sortOrder": sort_order.value}


def detect_schema_version(raw: dict[str, Any]) -> int:
    """根据 columns 结构推断文件版本"""
    columns = raw.get("columns")
    if columns and any(isinstance(c, str) for c in columns):
        return 1
    return CURRENT_SCHEMA_VERSION


def _upcast_v1_to_v2(raw: dict[str, Any]) -> dict[str, Any]:
    columns = []
    for entry in raw.get("columns", []):
        if isinstance(entry, str):
            columns.append(column_from_name(entry))
        else:
            columns.append(entry)
    return {**raw, "columns": columns}


# from_version -> 升级到 from_version + 1 的函数
UPCASTERS: dict[int, Callable[[dict[str, Any]], dict[str, Any]]] = {
    1: _upcast_v1_to_v2,
}


def upcast_board(raw: dict[str, Any]) -> dict[str, Any]:
    """将任意历史格式的看板数据升级为当前格式

    缺失的 columns / tasks 使用默认值补齐。

    Args:
        raw: 从文件解析出的原始 dict（不会被修改）

    Returns:
        当前格式的 dict，可直接交给 Board.model_validate
    """
    data = dict(raw)
    if not data.get("columns"):
        data["columns"] = [dict(c) for c in DEFAULT_COLUMNS]
    data.setdefault("tasks", [])

    version = detect_schema_version(data)
    if version != CURRENT_SCHEMA_VERSION:
        log.info(
            "board_schema_upcast",
            from_version=version,
            to_version=CURRENT_SCHEMA_VERSION,
        )
    while version < CURRENT_SCHEMA_VERSION:
        data = UPCASTERS[version](data)
        version += 1

    # v2 中缺失排序字段的列同样按列名推断
    data["columns"] = [
        {**column_from_name(c.get("name", "")), **c} for c in data["columns"]
    ]
    return data
