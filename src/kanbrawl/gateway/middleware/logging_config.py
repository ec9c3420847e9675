"""structlog 配置模块

dev 模式：ConsoleRenderer 彩色输出
json 模式：每行一个 JSON 对象（异常以结构化 traceback 输出）

日志一律写到 stderr：`kanbrawl start --stdio` 时 stdout 属于 MCP 协议。
"""

import logging
import os
import sys

import structlog

# 第三方库的逐条日志默认压到 WARNING，KANBRAWL_LOG_LEVEL=DEBUG 时放开
_CHATTY_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "sse_starlette.sse",
    "mcp.server.lowlevel.server",
    "mcp.server.streamable_http_manager",
)


def _renderer(log_format: str) -> list[structlog.types.Processor]:
    if log_format == "json":
        return [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    return [structlog.dev.ConsoleRenderer()]


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog + 标准库 logging

    Args:
        log_format: "dev" 或 "json"，默认读取 KANBRAWL_LOG_FORMAT（缺省 dev）
        log_level: 日志级别名，默认读取 KANBRAWL_LOG_LEVEL（缺省 INFO）
    """
    log_format = log_format or os.environ.get("KANBRAWL_LOG_FORMAT", "dev")
    log_level = (log_level or os.environ.get("KANBRAWL_LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, log_level, logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # uvicorn / httpx / mcp 等标准库日志经同一渲染链输出
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_renderer(log_format),
        ],
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    chatty_level = level if level <= logging.DEBUG else max(level, logging.WARNING)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)
