"""Redis 客户端封装。

提供统一的 Redis 访问接口，支持：
- 连接管理
- 健康检查
- 常用 KV / JSON 操作封装
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import redis.asyncio as aioredis
from loguru import logger

if TYPE_CHECKING:
    from redis.asyncio import Redis

from chatfeed.core.config import settings
from chatfeed.core.infrastructure.health import HealthStatus, RedisHealthResult


class RedisUnavailableError(RuntimeError):
    """Redis 不可用（连接失败/超时等）。"""


class RedisClient:
    """Redis 客户端封装类。"""

    def __init__(self, url: str | None = None):
        """初始化 Redis 客户端。

        Args:
            url: Redis 连接 URL，默认使用配置中的 REDIS_URL
        """
        self._url = url or settings.REDIS_URL
        self._client: Redis | None = None

    @property
    def client(self) -> Redis:
        """获取 Redis 客户端实例（延迟初始化）。"""
        if self._client is None:
            self._client = aioredis.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=10.0,  # 读写超时 10 秒
                socket_connect_timeout=5.0,  # 连接超时 5 秒
                retry_on_timeout=True,
            )
        return self._client

    async def close(self) -> None:
        """关闭 Redis 连接。"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def ping(self) -> bool:
        """检查 Redis 连接是否正常。"""
        try:
            return await self.client.ping()
        except Exception as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    @asynccontextmanager
    async def ensure_available(
        self,
        *,
        timeout: float = 5.0,
    ) -> AsyncGenerator[RedisClient, None]:
        """确保进入上下文时 Redis 连接可用。

        Usage:
            try:
                async with redis_client.ensure_available(timeout=5.0):
                    ...
            except RedisUnavailableError:
                # Redis 不可用，按需降级/跳过
                ...
        """
        try:
            ok = await asyncio.wait_for(self.client.ping(), timeout=timeout)
        except TimeoutError as e:
            raise RedisUnavailableError("Redis ping timeout") from e
        except Exception as e:
            raise RedisUnavailableError(f"Redis ping failed: {e}") from e
        if not ok:
            raise RedisUnavailableError("Redis ping returned falsy result")

        yield self

    async def health_check(self) -> RedisHealthResult:
        """执行 Redis 健康检查。"""
        try:
            is_connected = await self.ping()
            info = await self.client.info("server") if is_connected else {}
            return RedisHealthResult(
                status=HealthStatus.OK if is_connected else HealthStatus.ERROR,
                connected=is_connected,
                version=info.get("redis_version", "unknown"),
            )
        except Exception as e:
            return RedisHealthResult(
                status=HealthStatus.ERROR,
                connected=False,
                error=str(e),
            )

    # ============ 缓存操作 ============

    async def get(self, key: str) -> str | None:
        """获取字符串值。"""
        return await self.client.get(key)

    async def set(
        self,
        key: str,
        value: str,
        ex: int | timedelta | None = None,
        nx: bool = False,
    ) -> bool:
        """设置字符串值。

        Args:
            key: 键名
            value: 值
            ex: 过期时间（秒或 timedelta）
            nx: 仅当键不存在时设置

        Returns:
            设置成功返回 True
        """
        return await self.client.set(key, value, ex=ex, nx=nx)

    async def delete(self, *keys: str) -> int:
        """删除一个或多个键。"""
        return await self.client.delete(*keys)

    # ============ JSON 操作 ============

    async def get_json(self, key: str) -> Any | None:
        """获取 JSON 值。

        Raises:
            json.JSONDecodeError: 存储内容不是合法 JSON
        """
        value = await self.get(key)
        if value is None:
            return None
        return json.loads(value)

    async def set_json(
        self,
        key: str,
        value: Any,
        ex: int | timedelta | None = None,
    ) -> bool:
        """设置 JSON 值。"""
        return await self.set(key, json.dumps(value, ensure_ascii=False), ex=ex)


# 全局 Redis 客户端实例
redis_client = RedisClient()


def get_redis_client() -> RedisClient:
    """获取 Redis 客户端依赖。"""
    return redis_client
