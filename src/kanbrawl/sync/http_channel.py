"""HttpBoardChannel -- 基于 httpx 的推送通道与全量读取

events():      GET /events 流式解析 SSE 帧，逐个产出领域事件
fetch_board(): GET /api/board
"""

from collections.abc import AsyncIterator

import httpx
import structlog
from kanbrawl.core.models import Board, BoardEvent, parse_board_event
from pydantic import ValidationError

log = structlog.get_logger()

# 读超时需大于服务端心跳间隔，超时视为连接失效
STREAM_TIMEOUT = httpx.Timeout(10.0, read=60.0)


async def iter_sse_events(lines: AsyncIterator[str]) -> AsyncIterator[BoardEvent]:
    """将 SSE 文本行解析为领域事件

    空行分隔消息；多行 data 以换行拼接；注释行（以 ":" 开头）忽略。
    无法解析的消息记录告警后跳过。
    """
    event_name = ""
    data_lines: list[str] = []

    async for raw_line in lines:
        line = raw_line.rstrip("\r")
        if not line:
            if data_lines:
                data = "\n".join(data_lines)
                try:
                    yield parse_board_event(data)
                except ValidationError:
                    log.warning("sse_message_malformed", event=event_name, size=len(data))
            event_name = ""
            data_lines = []
            continue
        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            event_name = value
        elif field == "data":
            data_lines.append(value)


class HttpBoardChannel:
    """Kanbrawl 网关的 HTTP 客户端"""

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None) -> None:
        """
        Args:
            base_url: 网关地址，例如 http://localhost:3000
            client: 可注入的 httpx.AsyncClient，None 时自建并在 aclose() 时关闭
        """
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    async def events(self) -> AsyncIterator[BoardEvent]:
        """打开推送通道；非 200 响应抛出 httpx.HTTPStatusError"""
        async with self._client.stream(
            "GET",
            f"{self.base_url}/events",
            headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
            timeout=STREAM_TIMEOUT,
        ) as response:
            response.raise_for_status()
            async for event in iter_sse_events(response.aiter_lines()):
                yield event

    async def fetch_board(self) -> Board:
        response = await self._client.get(f"{self.base_url}/api/board")
        response.raise_for_status()
        return Board.model_validate(response.json())

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
