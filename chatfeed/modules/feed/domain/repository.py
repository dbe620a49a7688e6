"""Filter preset repository interface."""

from abc import ABC, abstractmethod

from chatfeed.modules.feed.domain.entities import FilterPreset


class FilterPresetRepository(ABC):
    """过滤器预设存储接口（整体读写）。

    实现必须保证 save_all 不抛出异常：写入失败只能降级，不能影响内存状态。
    """

    @abstractmethod
    async def load_all(self) -> list[FilterPreset]:
        """读取全部预设，丢弃不合法的条目。"""
        pass

    @abstractmethod
    async def save_all(self, presets: list[FilterPreset]) -> int:
        """写入全部预设，返回实际持久化的数量。"""
        pass
