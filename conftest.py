"""全局 pytest 配置 -- 临时看板文件 + 可控时钟 + Store fixture"""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest


class FakeClock:
    """每次调用前进固定步长的时钟，保证时间戳严格递增且可预测"""

    def __init__(
        self,
        start: datetime = datetime(2026, 1, 1, 9, 0, tzinfo=UTC),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current += self.step
        return now


@pytest.fixture
def board_file(tmp_path: Path) -> Path:
    """临时看板文件路径（尚不存在）"""
    return tmp_path / "kanbrawl.json"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(board_file: Path, clock: FakeClock):
    """以默认看板初始化的 BoardStore"""
    from kanbrawl.core.store import BoardStore

    return BoardStore(board_file, clock=clock)


@pytest.fixture
def events(store) -> list:
    """记录 store 发出的全部领域事件"""
    recorded: list = []
    store.subscribe(recorded.append)
    return recorded
