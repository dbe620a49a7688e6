"""多源聚合服务。

Aggregation 流程：
1. 挑选可抓取的源（排除用户排除的源、收藏夹、私聊，最多 FEED_MAX_SOURCES 个）
2. 并发抓取每个源的最新一页
3. 与已有条目合并去重，按时间排序
4. 合并相册，生成规范时间线
"""

import time
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field

from loguru import logger

from chatfeed.core.config import settings
from chatfeed.core.infrastructure.logging import BusinessEvents
from chatfeed.modules.feed.domain.entities import FeedItem
from chatfeed.modules.feed.domain.timeline import (
    build_timeline,
    merge_items,
    select_eligible_sources,
)
from chatfeed.modules.sources.application.fetch_service import SourceFetchService
from chatfeed.modules.sources.domain.entities import Source
from chatfeed.modules.sources.domain.fetcher import SourceFetchResult


@dataclass
class AggregationResult:
    """一次聚合的结果。"""

    source_items: tuple[FeedItem, ...] = ()
    timeline: tuple[FeedItem, ...] = ()
    results: list[SourceFetchResult] = field(default_factory=list)

    @property
    def sources_total(self) -> int:
        return len(self.results)

    @property
    def sources_failed(self) -> int:
        return sum(1 for r in self.results if not r.is_success)

    @property
    def fetched_items(self) -> int:
        return sum(r.items_count for r in self.results)


class AggregationService:
    """Feed 聚合服务。"""

    def __init__(
        self,
        fetch_service: SourceFetchService,
        max_sources: int | None = None,
        items_per_source: int | None = None,
        self_source_id: str | None = None,
    ):
        self.fetch_service = fetch_service
        self.max_sources = max_sources or settings.FEED_MAX_SOURCES
        self.items_per_source = items_per_source or settings.FEED_ITEMS_PER_SOURCE
        self.self_source_id = self_source_id or settings.FEED_SELF_SOURCE_ID

    def eligible_sources(
        self, sources: Iterable[Source], excluded_source_ids: Collection[str]
    ) -> list[Source]:
        return select_eligible_sources(
            sources,
            excluded_source_ids,
            max_sources=self.max_sources,
            self_source_id=self.self_source_id,
        )

    async def load_initial(
        self,
        sources: Iterable[Source],
        excluded_source_ids: Collection[str],
        existing_items: Sequence[FeedItem] = (),
    ) -> AggregationResult:
        """抓取所有可用源的最新一页并构建规范时间线。

        Args:
            sources: 已知的源
            excluded_source_ids: 当前排除的源
            existing_items: 已有的底层条目（轮询时传入，新抓取的版本覆盖旧版本）

        Returns:
            AggregationResult，单个源的失败不会中断聚合
        """
        start_time = time.time()
        eligible = self.eligible_sources(sources, excluded_source_ids)
        if not eligible:
            logger.info("No eligible sources for feed")
            source_items = merge_items(existing_items)
            return AggregationResult(
                source_items=source_items, timeline=build_timeline(source_items)
            )

        results = await self.fetch_service.fetch_all(eligible, self.items_per_source)

        fetched = [item for r in results if r.is_success for item in r.items]
        source_items = merge_items(existing_items, fetched)
        timeline = build_timeline(source_items)

        result = AggregationResult(
            source_items=source_items, timeline=timeline, results=results
        )
        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Feed loaded: {len(eligible)} sources ({result.sources_failed} failed), "
            f"{len(fetched)} fetched, {len(timeline)} in timeline, {duration_ms}ms"
        )
        BusinessEvents.feed_loaded(
            sources_total=len(eligible),
            sources_failed=result.sources_failed,
            items=len(timeline),
            duration_ms=duration_ms,
        )
        return result
