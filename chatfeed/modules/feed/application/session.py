"""Feed 会话：视图状态的唯一写入方。

FeedSession 串行应用纯状态转换，并负责：
- 单飞保护：is_loading / is_loading_more 在第一次 await 之前同步检查并设置
- 轮询：可取消的 asyncio.Task，按间隔重新聚合，有加载在进行时跳过
- 滚动：锚定、回到底部按钮、触顶加载、新消息角标、初始滚动
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger

from chatfeed.core.config import settings
from chatfeed.core.domain.events import EventBus
from chatfeed.modules.feed.application.aggregation_service import AggregationService
from chatfeed.modules.feed.application.filter_service import FilterService
from chatfeed.modules.feed.application.pagination_service import PaginationService
from chatfeed.modules.feed.domain import state as transitions
from chatfeed.modules.feed.domain.entities import FeedItem, FilterPreset
from chatfeed.modules.feed.domain.events import (
    FeedItemNavigationRequestedEvent,
    FeedTimelineUpdatedEvent,
)
from chatfeed.modules.feed.domain.scrolling import (
    LayoutSnapshot,
    NewPostsTracker,
    ScrollAnchor,
    should_load_older,
    should_show_scroll_button,
)
from chatfeed.modules.feed.domain.state import FeedViewState
from chatfeed.modules.feed.domain.virtualization import (
    VisibleRange,
    compute_visible_range,
)
from chatfeed.modules.sources.application.services import SourceCatalogService


@dataclass(frozen=True)
class ScrollCommit:
    """提交一次布局测量后的结果。"""

    scroll_offset: float
    show_scroll_button: bool
    should_load_older: bool
    new_posts: int


class FeedSession:
    """Feed 会话（状态容器）。"""

    def __init__(
        self,
        catalog: SourceCatalogService,
        aggregation: AggregationService,
        pagination: PaginationService,
        filters: FilterService,
        event_bus: EventBus,
        poll_interval: float | None = None,
    ):
        self.catalog = catalog
        self.aggregation = aggregation
        self.pagination = pagination
        self.filters = filters
        self.event_bus = event_bus
        self.poll_interval = poll_interval or settings.FEED_POLL_INTERVAL_SEC

        self._state = FeedViewState()
        self._poll_task: asyncio.Task[None] | None = None
        self._anchor = ScrollAnchor(settings.FEED_ANCHOR_NEAR_TOP_PX)
        self._new_posts = NewPostsTracker(settings.FEED_SCROLL_BUTTON_THRESHOLD_PX)

    @property
    def state(self) -> FeedViewState:
        return self._state

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    # ============================================
    # 加载
    # ============================================

    async def load(self, reason: str = "load") -> FeedViewState:
        """加载最新一页，合并到已有条目中。已有加载在进行时直接返回。"""
        if self._state.is_busy:
            logger.debug(f"Feed {reason} skipped, another load in flight")
            return self._state

        self._state = transitions.start_loading(self._state)
        try:
            sources = await self.catalog.list_sources()
            result = await self.aggregation.load_initial(
                sources,
                self._state.excluded_source_ids,
                existing_items=self._state.source_items,
            )
            self._state = transitions.timeline_loaded(self._state, result.source_items)
        finally:
            if self._state.is_loading:
                self._state = transitions.finish_loading(self._state)

        await self._timeline_updated(reason)
        return self._state

    async def refresh(self) -> FeedViewState:
        return await self.load(reason="poll")

    async def reset(self) -> FeedViewState:
        """清空时间线后重新加载。"""
        if self._state.is_busy:
            logger.debug("Feed reset skipped, another load in flight")
            return self._state

        self._state = transitions.reset_timeline(self._state)
        self._anchor.reset()
        self._new_posts.clear()
        return await self.load(reason="reset")

    async def load_older(self) -> FeedViewState:
        """加载更早的历史。游标取自过滤后的时间线，可见条目为空时退化为初始加载。"""
        if self._state.is_busy:
            logger.debug("Load older skipped, another load in flight")
            return self._state

        self._state = transitions.start_loading_more(self._state)
        try:
            sources = await self.catalog.list_sources()
            result = await self.pagination.load_older(
                sources,
                self._state.excluded_source_ids,
                self._state.source_items,
                self._state.filtered_timeline,
            )
            if result.is_initial_load:
                self._state = transitions.finish_loading_more(
                    transitions.timeline_loaded(self._state, result.source_items)
                )
            elif result.history_exhausted:
                self._state = transitions.finish_loading_more(
                    self._state, history_exhausted=True
                )
            else:
                self._state = transitions.older_loaded(self._state, result.source_items)
        finally:
            if self._state.is_loading_more:
                self._state = transitions.finish_loading_more(self._state)

        await self._timeline_updated("paginate")
        return self._state

    # ============================================
    # 轮询
    # ============================================

    def start_polling(self) -> None:
        if self.is_polling:
            return
        self._poll_task = asyncio.create_task(self._poll_loop())
        logger.info(f"Feed polling started (interval={self.poll_interval}s)")

    async def stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Feed polling stopped")

    async def close(self) -> None:
        await self.stop_polling()

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            if self._state.is_busy:
                logger.debug("Poll tick skipped, load in flight")
                continue
            try:
                await self.refresh()
            except Exception as e:
                logger.exception(f"Feed poll failed: {e}")

    # ============================================
    # 过滤
    # ============================================

    async def load_filters(self) -> FeedViewState:
        presets = await self.filters.load_presets()
        self._state = transitions.filters_changed(self._state, presets)
        return self._state

    def apply_filter(self, filter_id: str) -> FeedViewState:
        self._state = self.filters.apply_filter(self._state, filter_id)
        return self._state

    def clear_filter(self) -> FeedViewState:
        self._state = self.filters.clear_filter(self._state)
        return self._state

    def detach_filter(self) -> FeedViewState:
        self._state = self.filters.detach_filter(self._state)
        return self._state

    def toggle_source(self, source_id: str) -> FeedViewState:
        self._state = self.filters.toggle_source(self._state, source_id)
        return self._state

    def set_sources_excluded(
        self, source_ids: Iterable[str], excluded: bool
    ) -> FeedViewState:
        self._state = self.filters.set_sources_excluded(
            self._state, source_ids, excluded
        )
        return self._state

    async def save_filter(self, name: str) -> FilterPreset:
        self._state, preset = self.filters.save_filter(self._state, name)
        await self.filters.persist(self._state)
        return preset

    async def update_filter(self, filter_id: str) -> FeedViewState:
        self._state = self.filters.update_filter(self._state, filter_id)
        await self.filters.persist(self._state)
        return self._state

    async def rename_filter(self, filter_id: str, name: str) -> FeedViewState:
        self._state = self.filters.rename_filter(self._state, filter_id, name)
        await self.filters.persist(self._state)
        return self._state

    async def delete_filter(self, filter_id: str) -> FeedViewState:
        self._state = self.filters.delete_filter(self._state, filter_id)
        await self.filters.persist(self._state)
        return self._state

    # ============================================
    # 渲染与滚动
    # ============================================

    def visible_range(
        self, container_height: float | None = None
    ) -> tuple[VisibleRange, tuple[FeedItem, ...]]:
        """计算当前滚动位置下需要渲染的区间及对应条目。"""
        timeline = self._state.filtered_timeline
        window = compute_visible_range(
            item_count=len(timeline),
            scroll_offset=self._state.scroll_offset,
            container_height=(
                container_height
                if container_height is not None
                else settings.FEED_DEFAULT_CONTAINER_HEIGHT
            ),
            estimated_item_height=settings.FEED_ESTIMATED_ITEM_HEIGHT,
            overscan=settings.FEED_OVERSCAN,
        )
        return window, tuple(window.slice(timeline))

    def commit_layout(
        self,
        content_height: float,
        scroll_offset: float,
        container_height: float,
    ) -> ScrollCommit:
        """提交渲染后的布局测量，返回锚定后的滚动位置及滚动相关判定。"""
        timeline = self._state.filtered_timeline
        offset = self._anchor.reconcile(
            LayoutSnapshot(
                item_count=len(timeline),
                content_height=content_height,
                scroll_offset=max(0.0, scroll_offset),
                container_height=container_height,
            )
        )
        self._state = transitions.save_scroll_position(self._state, offset)

        layout = LayoutSnapshot(
            item_count=len(timeline),
            content_height=content_height,
            scroll_offset=offset,
            container_height=container_height,
        )
        self._new_posts.observe(
            last_key=timeline[-1].key if timeline else None,
            item_count=len(timeline),
            distance_from_bottom=layout.distance_from_bottom,
            is_loading_more=self._state.is_loading_more,
        )
        new_posts = self._new_posts.on_scroll(layout.distance_from_bottom)

        return ScrollCommit(
            scroll_offset=offset,
            show_scroll_button=should_show_scroll_button(
                layout, settings.FEED_SCROLL_BUTTON_THRESHOLD_PX
            ),
            should_load_older=should_load_older(
                offset,
                settings.FEED_LOAD_MORE_THRESHOLD_PX,
                is_busy=self._state.is_busy,
                item_count=len(timeline),
                history_exhausted=self._state.is_history_exhausted,
            ),
            new_posts=new_posts,
        )

    def initial_scroll(
        self, content_height: float, container_height: float
    ) -> float | None:
        """每个会话只滚动到底部一次；时间线为空或已滚动过时返回 None。"""
        if self._state.has_initial_scroll or not self._state.filtered_timeline:
            return None
        offset = max(0.0, content_height - container_height)
        self._state = transitions.mark_initial_scroll(
            transitions.save_scroll_position(self._state, offset)
        )
        return offset

    def save_scroll(self, scroll_offset: float) -> FeedViewState:
        self._state = transitions.save_scroll_position(self._state, scroll_offset)
        return self._state

    # ============================================
    # 导航
    # ============================================

    async def navigate_to(self, source_id: str, item_id: int) -> None:
        """请求跳转到条目所在的聊天。"""
        await self.event_bus.publish(
            FeedItemNavigationRequestedEvent(source_id=source_id, item_id=item_id)
        )

    async def _timeline_updated(self, reason: str) -> None:
        await self.event_bus.publish(
            FeedTimelineUpdatedEvent(
                reason=reason,
                total_items=len(self._state.canonical_timeline),
                visible_items=len(self._state.filtered_timeline),
            )
        )
