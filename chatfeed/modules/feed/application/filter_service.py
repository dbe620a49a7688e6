"""过滤器预设服务。

内存状态先变更，再持久化；持久化失败由存储层降级处理，从不回滚内存状态。
"""

from collections.abc import Iterable
from uuid import uuid4

from loguru import logger

from chatfeed.core.config import settings
from chatfeed.core.infrastructure.logging import BusinessEvents
from chatfeed.modules.feed.domain import state as transitions
from chatfeed.modules.feed.domain.entities import FilterPreset
from chatfeed.modules.feed.domain.exceptions import (
    FilterLimitReachedError,
    FilterPresetNotFoundError,
    InvalidFilterNameError,
)
from chatfeed.modules.feed.domain.repository import FilterPresetRepository
from chatfeed.modules.feed.domain.state import FeedViewState


class FilterService:
    """Filter preset 管理与应用。"""

    def __init__(
        self,
        repository: FilterPresetRepository,
        max_filters: int | None = None,
        max_name_length: int | None = None,
        max_excluded_sources: int | None = None,
    ):
        self.repository = repository
        self.max_filters = max_filters or settings.FEED_MAX_FILTERS
        self.max_name_length = max_name_length or settings.FEED_MAX_FILTER_NAME_LENGTH
        self.max_excluded_sources = (
            max_excluded_sources or settings.FEED_MAX_EXCLUDED_SOURCES
        )

    # ============================================
    # 应用
    # ============================================

    def apply_filter(self, state: FeedViewState, filter_id: str) -> FeedViewState:
        """应用预设。未知的预设 ID 保持状态不变。"""
        preset = transitions.find_filter(state, filter_id)
        if preset is None:
            logger.debug(f"Ignoring unknown filter preset {filter_id}")
            return state

        new_state = transitions.apply_filter(state, preset)
        BusinessEvents.filter_applied(
            filter_id=preset.id,
            excluded_count=len(new_state.excluded_source_ids),
            visible_items=len(new_state.filtered_timeline),
            total_items=len(new_state.canonical_timeline),
        )
        return new_state

    def clear_filter(self, state: FeedViewState) -> FeedViewState:
        new_state = transitions.clear_filter(state)
        BusinessEvents.filter_applied(
            filter_id=None,
            excluded_count=0,
            visible_items=len(new_state.filtered_timeline),
            total_items=len(new_state.canonical_timeline),
        )
        return new_state

    def toggle_source(self, state: FeedViewState, source_id: str) -> FeedViewState:
        return transitions.toggle_source_exclusion(state, source_id)

    def set_sources_excluded(
        self, state: FeedViewState, source_ids: Iterable[str], excluded: bool
    ) -> FeedViewState:
        return transitions.set_sources_excluded(state, source_ids, excluded)

    def detach_filter(self, state: FeedViewState) -> FeedViewState:
        return transitions.detach_filter(state)

    # ============================================
    # 管理
    # ============================================

    async def load_presets(self) -> list[FilterPreset]:
        presets = await self.repository.load_all()
        logger.info(f"Loaded {len(presets)} filter presets")
        return presets

    async def persist(self, state: FeedViewState) -> None:
        """持久化当前预设集合（不抛出异常）。"""
        saved = await self.repository.save_all(list(state.saved_filters))
        if saved < len(state.saved_filters):
            logger.warning(
                f"Only {saved}/{len(state.saved_filters)} filter presets persisted"
            )

    def save_filter(
        self, state: FeedViewState, name: str
    ) -> tuple[FeedViewState, FilterPreset]:
        """以当前排除集合新建预设。

        Raises:
            InvalidFilterNameError: 名称为空
            FilterLimitReachedError: 预设数量已达上限
        """
        clean_name = self._normalize_name(name)
        if len(state.saved_filters) >= self.max_filters:
            raise FilterLimitReachedError(self.max_filters)

        preset = FilterPreset(
            id=uuid4().hex,
            name=clean_name,
            excluded_source_ids=self._snapshot_exclusions(state),
        )
        new_state = transitions.filters_changed(
            state, [*state.saved_filters, preset]
        )
        BusinessEvents.filter_saved(
            filter_id=preset.id,
            name=preset.name,
            excluded_count=len(preset.excluded_source_ids),
        )
        return new_state, preset

    def update_filter(self, state: FeedViewState, filter_id: str) -> FeedViewState:
        """用当前排除集合覆盖预设。"""
        preset = self._require(state, filter_id)
        updated = preset.model_copy(
            update={"excluded_source_ids": self._snapshot_exclusions(state)}
        )
        new_state = self._replace(state, updated)
        BusinessEvents.filter_saved(
            filter_id=updated.id,
            name=updated.name,
            excluded_count=len(updated.excluded_source_ids),
        )
        return new_state

    def rename_filter(
        self, state: FeedViewState, filter_id: str, name: str
    ) -> FeedViewState:
        clean_name = self._normalize_name(name)
        preset = self._require(state, filter_id)
        new_state = self._replace(state, preset.model_copy(update={"name": clean_name}))
        return new_state

    def delete_filter(self, state: FeedViewState, filter_id: str) -> FeedViewState:
        self._require(state, filter_id)
        new_state = transitions.filters_changed(
            state, [f for f in state.saved_filters if f.id != filter_id]
        )
        logger.info(f"Deleted filter preset {filter_id}")
        return new_state

    # ============================================
    # 内部方法
    # ============================================

    def _normalize_name(self, name: str) -> str:
        clean_name = (name or "").strip()
        if not clean_name:
            raise InvalidFilterNameError()
        return clean_name[: self.max_name_length]

    def _snapshot_exclusions(self, state: FeedViewState) -> tuple[str, ...]:
        # ID 长度必须小于 FEED_MAX_ID_LENGTH，否则预设无法通过校验
        valid_ids = (
            source_id
            for source_id in state.excluded_source_ids
            if len(source_id) < settings.FEED_MAX_ID_LENGTH
        )
        return tuple(sorted(valid_ids))[: self.max_excluded_sources]

    @staticmethod
    def _require(state: FeedViewState, filter_id: str) -> FilterPreset:
        preset = transitions.find_filter(state, filter_id)
        if preset is None:
            raise FilterPresetNotFoundError(filter_id)
        return preset

    @staticmethod
    def _replace(state: FeedViewState, preset: FilterPreset) -> FeedViewState:
        return transitions.filters_changed(
            state,
            [preset if f.id == preset.id else f for f in state.saved_filters],
        )

