"""多源并发抓取服务。

对每个源并发调用抓取网关，逐源收集结果：
- 单个源失败只记录失败结果，不影响其他源
- 每个源抓取完成后立即发布 SourceItemsFetchedEvent（供外部消息存储索引）
"""

import asyncio
import time

from loguru import logger

from chatfeed.core.domain.events import EventBus
from chatfeed.core.infrastructure.logging import BusinessEvents
from chatfeed.modules.sources.domain.entities import Source
from chatfeed.modules.sources.domain.events import (
    SourceFetchFailedEvent,
    SourceItemsFetchedEvent,
)
from chatfeed.modules.sources.domain.fetcher import (
    SourceFetchGateway,
    SourceFetchResult,
)


class SourceFetchService:
    """多源抓取协调。

    职责：
    - 扇出：每个源一个并发请求，条目数受 limit 限制
    - 汇合：收集每个源的成功/失败结果
    - 发布抓取事件
    """

    def __init__(self, gateway: SourceFetchGateway, event_bus: EventBus):
        self.gateway = gateway
        self.event_bus = event_bus

    async def fetch_all(
        self,
        sources: list[Source],
        limit: int,
        cursor: int | None = None,
    ) -> list[SourceFetchResult]:
        """并发抓取所有源，结果顺序与 sources 一致。

        Args:
            sources: 要抓取的源
            limit: 每个源的最大条目数
            cursor: 排他的时间上界，None 表示最新一页

        Returns:
            每个源一个 SourceFetchResult，从不抛出单源异常
        """
        if not sources:
            return []

        return list(
            await asyncio.gather(
                *(self.fetch_source(source, limit, cursor) for source in sources)
            )
        )

    async def fetch_source(
        self,
        source: Source,
        limit: int,
        cursor: int | None = None,
    ) -> SourceFetchResult:
        """抓取单个源，失败转换为失败结果。"""
        start_time = time.time()
        try:
            items = await self.gateway.fetch(source, cursor, limit)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.warning(f"Fetch failed for source {source.title or source.id}: {e}")
            BusinessEvents.source_fetch_failed(
                source_id=source.id, error=str(e), cursor=cursor
            )
            await self.event_bus.publish(
                SourceFetchFailedEvent(source_id=source.id, error=str(e), cursor=cursor)
            )
            return SourceFetchResult.failed(
                source_id=source.id,
                error_message=str(e),
                duration_ms=duration_ms,
            )

        items = list(items)[:limit]
        duration_ms = int((time.time() - start_time) * 1000)

        if items:
            await self.event_bus.publish(
                SourceItemsFetchedEvent(
                    source_id=source.id, items=tuple(items), cursor=cursor
                )
            )

        logger.debug(
            f"Fetched {len(items)} items from {source.title or source.id} "
            f"(cursor={cursor}, duration={duration_ms}ms)"
        )
        return SourceFetchResult.success(
            source_id=source.id, items=items, duration_ms=duration_ms
        )
