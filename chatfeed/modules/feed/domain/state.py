"""Feed 视图状态与纯状态转换。

所有转换都是 (state, ...) -> state 的纯函数，不访问网络和存储；
由 FeedSession 作为唯一写入方串行应用。
"""

from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from chatfeed.modules.feed.domain.entities import FeedItem, FilterPreset
from chatfeed.modules.feed.domain.timeline import build_timeline, filter_timeline


class FeedViewState(BaseModel):
    """Feed 视图状态。"""

    model_config = ConfigDict(frozen=True)

    source_items: tuple[FeedItem, ...] = Field(
        default=(), description="去重排序后的底层条目（相册合并前）"
    )
    canonical_timeline: tuple[FeedItem, ...] = Field(
        default=(), description="规范时间线（未过滤）"
    )
    filtered_timeline: tuple[FeedItem, ...] = Field(
        default=(), description="过滤后的时间线（派生，不持久化）"
    )
    excluded_source_ids: frozenset[str] = Field(
        default_factory=frozenset, description="当前排除的源"
    )
    saved_filters: tuple[FilterPreset, ...] = Field(default=(), description="已保存的预设")
    active_filter_id: str | None = Field(default=None, description="当前激活的预设")
    is_loading: bool = Field(default=False)
    is_loading_more: bool = Field(default=False)
    is_history_exhausted: bool = Field(default=False, description="没有更早的历史")
    scroll_offset: float = Field(default=0.0, ge=0)
    has_initial_scroll: bool = Field(default=False)

    @property
    def is_busy(self) -> bool:
        return self.is_loading or self.is_loading_more


def find_filter(state: FeedViewState, filter_id: str | None) -> FilterPreset | None:
    if filter_id is None:
        return None
    return next((f for f in state.saved_filters if f.id == filter_id), None)


def _with_exclusions(
    state: FeedViewState, excluded: Iterable[str], **changes: object
) -> FeedViewState:
    excluded_ids = frozenset(excluded)
    return state.model_copy(
        update={
            "excluded_source_ids": excluded_ids,
            "filtered_timeline": filter_timeline(state.canonical_timeline, excluded_ids),
            # 可抓取的源集合变了，之前的“无更多历史”不再成立
            "is_history_exhausted": False,
            **changes,
        }
    )


def _with_source_items(
    state: FeedViewState, source_items: Sequence[FeedItem], **changes: object
) -> FeedViewState:
    canonical = build_timeline(source_items)
    return state.model_copy(
        update={
            "source_items": tuple(source_items),
            "canonical_timeline": canonical,
            "filtered_timeline": filter_timeline(canonical, state.excluded_source_ids),
            **changes,
        }
    )


# ============================================
# 加载
# ============================================


def start_loading(state: FeedViewState) -> FeedViewState:
    return state.model_copy(update={"is_loading": True})


def finish_loading(state: FeedViewState) -> FeedViewState:
    return state.model_copy(update={"is_loading": False})


def timeline_loaded(
    state: FeedViewState, source_items: Sequence[FeedItem]
) -> FeedViewState:
    """初始加载/轮询完成：替换底层条目并重建两条时间线。"""
    return _with_source_items(state, source_items, is_loading=False)


def start_loading_more(state: FeedViewState) -> FeedViewState:
    return state.model_copy(update={"is_loading_more": True})


def finish_loading_more(
    state: FeedViewState, history_exhausted: bool = False
) -> FeedViewState:
    return state.model_copy(
        update={"is_loading_more": False, "is_history_exhausted": history_exhausted}
    )


def older_loaded(
    state: FeedViewState, source_items: Sequence[FeedItem]
) -> FeedViewState:
    """更早的历史加载完成。"""
    return _with_source_items(state, source_items, is_loading_more=False)


def reset_timeline(state: FeedViewState) -> FeedViewState:
    """显式重置：清空时间线，保留过滤设置。"""
    return state.model_copy(
        update={
            "source_items": (),
            "canonical_timeline": (),
            "filtered_timeline": (),
            "is_history_exhausted": False,
            "scroll_offset": 0.0,
            "has_initial_scroll": False,
        }
    )


# ============================================
# 过滤
# ============================================


def apply_filter(state: FeedViewState, preset: FilterPreset) -> FeedViewState:
    """应用预设：排除集合取自预设，过滤结果由规范时间线重算。"""
    return _with_exclusions(
        state, preset.excluded_source_ids, active_filter_id=preset.id
    )


def clear_filter(state: FeedViewState) -> FeedViewState:
    return _with_exclusions(state, (), active_filter_id=None)


def detach_filter(state: FeedViewState) -> FeedViewState:
    """取消激活预设，但保留当前排除集合（用于基于当前选择新建预设）。"""
    return state.model_copy(update={"active_filter_id": None})


def toggle_source_exclusion(state: FeedViewState, source_id: str) -> FeedViewState:
    excluded = set(state.excluded_source_ids)
    if source_id in excluded:
        excluded.remove(source_id)
    else:
        excluded.add(source_id)
    return _with_exclusions(state, excluded)


def set_sources_excluded(
    state: FeedViewState, source_ids: Iterable[str], excluded: bool
) -> FeedViewState:
    """批量包含/排除（全选/取消全选）。"""
    current = set(state.excluded_source_ids)
    ids = set(source_ids)
    updated = current | ids if excluded else current - ids
    if updated == current:
        return state
    return _with_exclusions(state, updated)


def filters_changed(
    state: FeedViewState, presets: Sequence[FilterPreset]
) -> FeedViewState:
    """替换预设集合；激活的预设被删除时清除 active_filter_id。"""
    active_id = state.active_filter_id
    if active_id is not None and not any(p.id == active_id for p in presets):
        active_id = None
    return state.model_copy(
        update={"saved_filters": tuple(presets), "active_filter_id": active_id}
    )


# ============================================
# 滚动
# ============================================


def save_scroll_position(state: FeedViewState, scroll_offset: float) -> FeedViewState:
    return state.model_copy(update={"scroll_offset": max(0.0, scroll_offset)})


def mark_initial_scroll(state: FeedViewState) -> FeedViewState:
    return state.model_copy(update={"has_initial_scroll": True})
