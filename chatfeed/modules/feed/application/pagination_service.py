"""向前翻页服务：加载比当前最早条目更早的历史。"""

from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass, field

from loguru import logger

from chatfeed.core.infrastructure.logging import BusinessEvents
from chatfeed.modules.feed.application.aggregation_service import AggregationService
from chatfeed.modules.feed.domain.entities import FeedItem
from chatfeed.modules.feed.domain.timeline import (
    build_timeline,
    merge_items,
    oldest_timestamp,
)
from chatfeed.modules.sources.domain.entities import Source
from chatfeed.modules.sources.domain.fetcher import SourceFetchResult


@dataclass
class PaginationResult:
    """一次翻页的结果。"""

    source_items: tuple[FeedItem, ...] = ()
    timeline: tuple[FeedItem, ...] = ()
    cursor: int | None = None
    new_items: int = 0
    results: list[SourceFetchResult] = field(default_factory=list)
    # 可见时间线为空时退化为初始加载
    is_initial_load: bool = False

    @property
    def history_exhausted(self) -> bool:
        return not self.is_initial_load and self.new_items == 0


class PaginationService:
    """Pagination 服务。

    游标为过滤后时间线中最早条目的时间戳，每个未排除的源抓取严格早于游标的条目。
    被排除的源仍留在底层条目里，但不参与游标计算。
    合并后全局重新排序并重新合并相册，不做追加式拼接。
    """

    def __init__(self, aggregation_service: AggregationService):
        self.aggregation = aggregation_service

    async def load_older(
        self,
        sources: Iterable[Source],
        excluded_source_ids: Collection[str],
        source_items: Sequence[FeedItem],
        visible_timeline: Sequence[FeedItem],
    ) -> PaginationResult:
        cursor = oldest_timestamp(visible_timeline)
        if cursor is None:
            logger.debug("Visible timeline empty, falling back to initial load")
            initial = await self.aggregation.load_initial(
                sources, excluded_source_ids, existing_items=source_items
            )
            return PaginationResult(
                source_items=initial.source_items,
                timeline=initial.timeline,
                new_items=len(initial.source_items),
                results=initial.results,
                is_initial_load=True,
            )

        eligible = self.aggregation.eligible_sources(sources, excluded_source_ids)
        results = await self.aggregation.fetch_service.fetch_all(
            eligible, self.aggregation.items_per_source, cursor=cursor
        )

        existing_keys = {item.key for item in source_items}
        fetched = [
            item
            for r in results
            if r.is_success
            for item in r.items
            if item.timestamp < cursor
        ]
        new_count = len({item.key for item in fetched} - existing_keys)

        if new_count == 0:
            logger.info(f"No older items before cursor {cursor}")
            timeline = build_timeline(source_items)
            BusinessEvents.feed_paginated(
                cursor=cursor, new_items=0, items=len(timeline)
            )
            return PaginationResult(
                source_items=tuple(source_items),
                timeline=timeline,
                cursor=cursor,
                results=results,
            )

        merged = merge_items(source_items, fetched)
        merged_timeline = build_timeline(merged)
        logger.info(
            f"Loaded {new_count} older items before cursor {cursor}, "
            f"timeline now {len(merged_timeline)}"
        )
        BusinessEvents.feed_paginated(
            cursor=cursor, new_items=new_count, items=len(merged_timeline)
        )
        return PaginationResult(
            source_items=merged,
            timeline=merged_timeline,
            cursor=cursor,
            new_items=new_count,
            results=results,
        )
