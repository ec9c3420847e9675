"""枚举定义

包含 Priority 三级优先级、列排序策略 SortBy / SortOrder、主题 Theme。
"""

from enum import StrEnum


class Priority(StrEnum):
    """任务优先级 -- 持久化为 P0/P1/P2"""

    CRITICAL = "P0"
    NORMAL = "P1"
    LOW = "P2"


# 优先级排序权重（数值越小越靠前）
PRIORITY_RANK: dict[Priority, int] = {
    Priority.CRITICAL: 0,
    Priority.NORMAL: 1,
    Priority.LOW: 2,
}


class SortBy(StrEnum):
    """列内任务展示排序字段"""

    PRIORITY = "priority"
    CREATED = "created"
    UPDATED = "updated"


class SortOrder(StrEnum):
    """排序方向"""

    ASC = "asc"
    DESC = "desc"


class Theme(StrEnum):
    """展示主题（纯展示偏好，不参与 Store 不变量）"""

    LIGHT = "light"
    DARK = "dark"

