"""配置常量模块 -- 可通过环境变量覆盖

包含看板数据文件路径、HTTP 监听地址、SSE 心跳与队列、客户端重连退避等可配置常量。
"""

import os
from pathlib import Path

# 看板数据文件默认文件名（位于当前工作目录）
DEFAULT_DATA_FILENAME = "kanbrawl.json"


def get_data_file() -> Path:
    """获取看板 JSON 数据文件路径"""
    return Path(
        os.environ.get(
            "KANBRAWL_DATA_FILE",
            str(Path.cwd() / DEFAULT_DATA_FILENAME),
        )
    )


def get_host() -> str:
    """获取 HTTP 监听地址"""
    return os.environ.get("KANBRAWL_HOST", "127.0.0.1")


def get_port() -> int:
    """获取 HTTP 监听端口"""
    return int(os.environ.get("PORT", "3000"))


# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("KANBRAWL_SSE_HEARTBEAT_INTERVAL", "15")
)

# 单个订阅者的事件队列容量，写满即视为断开
SSE_QUEUE_MAXSIZE: int = int(os.environ.get("KANBRAWL_SSE_QUEUE_MAXSIZE", "100"))

# 客户端重连退避：初始值与上限（秒）
RECONNECT_BASE_DELAY: float = float(os.environ.get("KANBRAWL_RECONNECT_BASE_S", "1"))
RECONNECT_MAX_DELAY: float = float(os.environ.get("KANBRAWL_RECONNECT_MAX_S", "30"))

# 字段长度上限
TITLE_MAX_LENGTH: int = 200
DESCRIPTION_MAX_LENGTH: int = 2000
ASSIGNEE_MAX_LENGTH: int = 100

# list_tasks 默认返回条数
LIST_TASKS_DEFAULT_LIMIT: int = 10


def get_static_dir() -> Path | None:
    """获取 Web UI 构建产物目录（未配置时不挂载静态文件）"""
    value = os.environ.get("KANBRAWL_STATIC_DIR")
    return Path(value) if value else None
