"""同步状态机的状态与重连退避策略"""

from enum import StrEnum

from kanbrawl.core.config import RECONNECT_BASE_DELAY, RECONNECT_MAX_DELAY


class SyncState(StrEnum):
    """观察者连接状态

    disconnected -> connecting -> synced -> reconnecting -> connecting -> ...
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SYNCED = "synced"
    RECONNECTING = "reconnecting"


class ReconnectBackoff:
    """指数退避：每次取值后翻倍，封顶后保持不变

    默认序列: 1, 2, 4, 8, 16, 30, 30, ...（秒）
    """

    def __init__(
        self,
        base: float = RECONNECT_BASE_DELAY,
        ceiling: float = RECONNECT_MAX_DELAY,
    ) -> None:
        if base <= 0 or ceiling < base:
            raise ValueError("require 0 < base <= ceiling")
        self.base = base
        self.ceiling = ceiling
        self._current = base

    @property
    def current(self) -> float:
        return self._current

    def next_delay(self) -> float:
        """返回本次等待时长，并把下次时长翻倍（不超过上限）"""
        delay = self._current
        self._current = min(self._current * 2, self.ceiling)
        return delay

    def reset(self) -> None:
        self._current = self.base
