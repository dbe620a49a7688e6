"""Redis 客户端封装。"""

from chatfeed.core.infrastructure.redis.client import (
    RedisClient,
    RedisUnavailableError,
    get_redis_client,
    redis_client,
)
from chatfeed.core.infrastructure.redis.keys import RedisKeys

__all__ = [
    "RedisClient",
    "RedisKeys",
    "RedisUnavailableError",
    "get_redis_client",
    "redis_client",
]
