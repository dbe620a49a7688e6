"""Redis Key 命名规范。

Redis 用于：
- Feed Filters: 过滤器预设持久化（JSON 数组）
"""

from chatfeed.core.config import settings


class RedisKeys:
    """Redis Key 命名空间管理。"""

    @classmethod
    def feed_filters(cls, owner: str | None = None) -> str:
        """生成过滤器预设 key。

        Args:
            owner: 可选的归属标识（多用户部署时隔离），不提供则使用全局命名空间

        Returns:
            格式化的 Redis key，如 feed:filters 或 feed:filters:{owner}
        """
        if owner:
            return f"{settings.FEED_FILTERS_STORAGE_KEY}:{owner}"
        return settings.FEED_FILTERS_STORAGE_KEY
