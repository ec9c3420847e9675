"""Kanbrawl Core Store -- JSON 文件持久化实现

提供工厂函数按配置创建 BoardStore 实例。
"""

from pathlib import Path

from ..config import get_data_file
from .board_store import BoardListener, BoardStore
from .migration import (
    CURRENT_SCHEMA_VERSION,
    DEFAULT_COLUMNS,
    detect_schema_version,
    infer_sort_policy,
    upcast_board,
)


def create_board_store(file_path: str | Path | None = None) -> BoardStore:
    """创建 BoardStore 实例

    Args:
        file_path: 看板文件路径，None 时使用 KANBRAWL_DATA_FILE 配置

    Returns:
        已完成加载（或初始化落盘）的 BoardStore
    """
    return BoardStore(file_path if file_path is not None else get_data_file())


__all__ = [
    "BoardStore",
    "BoardListener",
    "create_board_store",
    "CURRENT_SCHEMA_VERSION",
    "DEFAULT_COLUMNS",
    "detect_schema_version",
    "infer_sort_policy",
    "upcast_board",
]
