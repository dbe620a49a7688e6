"""Feed API schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from chatfeed.modules.feed.domain.entities import FeedItem, FilterPreset, MediaKind
from chatfeed.modules.feed.domain.state import FeedViewState
from chatfeed.modules.feed.domain.virtualization import VisibleRange
from chatfeed.modules.sources.domain.entities import SourceKind


class MediaResponse(BaseModel):
    kind: MediaKind = Field(..., description="媒体类型")
    caption: str | None = Field(None, description="媒体说明")


class FeedItemResponse(BaseModel):
    """Feed item response."""

    key: str = Field(..., description="复合主键 {source_id}_{item_id}")
    source_id: str = Field(..., description="来源ID")
    item_id: int = Field(..., description="源内消息ID")
    timestamp: int = Field(..., description="发布时间（Unix 秒）")
    group_id: str | None = Field(None, description="相册分组ID")
    text: str | None = Field(None, description="文本内容")
    media: MediaResponse | None = Field(None, description="媒体描述")
    reactions: dict[str, int] = Field(default_factory=dict, description="Reaction 汇总")
    caption_source: str | None = Field(None, description="借用文本的消息键")

    @classmethod
    def from_domain(cls, item: FeedItem) -> "FeedItemResponse":
        return cls(
            key=str(item.key),
            source_id=item.source_id,
            item_id=item.item_id,
            timestamp=item.timestamp,
            group_id=item.group_id,
            text=item.own_text,
            media=(
                MediaResponse(kind=item.media.kind, caption=item.media.caption)
                if item.media
                else None
            ),
            reactions=dict(item.reactions.counts) if item.reactions else {},
            caption_source=str(item.caption_source) if item.caption_source else None,
        )


class FeedStateResponse(BaseModel):
    """Feed state summary."""

    total_items: int = Field(..., description="规范时间线条目数")
    visible_items: int = Field(..., description="过滤后条目数")
    is_loading: bool = Field(..., description="初始加载/轮询进行中")
    is_loading_more: bool = Field(..., description="翻页进行中")
    is_history_exhausted: bool = Field(..., description="没有更早的历史")
    active_filter_id: str | None = Field(None, description="当前激活的预设")
    excluded_source_ids: list[str] = Field(default_factory=list, description="排除的源")
    scroll_offset: float = Field(0.0, description="保存的滚动位置")

    @classmethod
    def from_state(cls, state: FeedViewState) -> "FeedStateResponse":
        return cls(
            total_items=len(state.canonical_timeline),
            visible_items=len(state.filtered_timeline),
            is_loading=state.is_loading,
            is_loading_more=state.is_loading_more,
            is_history_exhausted=state.is_history_exhausted,
            active_filter_id=state.active_filter_id,
            excluded_source_ids=sorted(state.excluded_source_ids),
            scroll_offset=state.scroll_offset,
        )


class VisibleRangeResponse(BaseModel):
    start_index: int = Field(..., description="起始下标（含）")
    end_index: int = Field(..., description="结束下标（不含）")
    top_offset: float = Field(..., description="渲染块的顶部偏移")
    total_height: float = Field(..., description="滚动容器总高度")

    @classmethod
    def from_domain(cls, window: VisibleRange) -> "VisibleRangeResponse":
        return cls(
            start_index=window.start_index,
            end_index=window.end_index,
            top_offset=window.top_offset,
            total_height=window.total_height,
        )


class TimelineWindowResponse(BaseModel):
    """Rendered slice of the filtered timeline."""

    range: VisibleRangeResponse = Field(..., description="可见区间")
    items: list[FeedItemResponse] = Field(default_factory=list, description="区间内条目")
    state: FeedStateResponse = Field(..., description="Feed 状态")


class LayoutCommitRequest(BaseModel):
    """Measured layout after a render."""

    content_height: float = Field(..., ge=0, description="内容总高度")
    scroll_offset: float = Field(..., description="当前滚动位置")
    container_height: float = Field(..., ge=0, description="视口高度")


class ScrollCommitResponse(BaseModel):
    scroll_offset: float = Field(..., description="锚定后的滚动位置")
    show_scroll_button: bool = Field(..., description="是否显示回到底部按钮")
    should_load_older: bool = Field(..., description="是否应加载更早的历史")
    new_posts: int = Field(..., description="新消息角标数")


class InitialScrollRequest(BaseModel):
    content_height: float = Field(..., ge=0, description="内容总高度")
    container_height: float = Field(..., ge=0, description="视口高度")


class InitialScrollResponse(BaseModel):
    scroll_offset: float | None = Field(None, description="初始滚动位置，已滚动过时为空")


class SaveScrollRequest(BaseModel):
    scroll_offset: float = Field(..., description="滚动位置")


class NavigateRequest(BaseModel):
    source_id: str = Field(..., min_length=1, description="来源ID")
    item_id: int = Field(..., description="消息ID")


class SourceEntryResponse(BaseModel):
    """Source catalog entry."""

    id: str = Field(..., description="源ID")
    title: str = Field(..., description="源名称")
    kind: SourceKind = Field(..., description="源类型")
    is_excluded: bool = Field(..., description="是否被排除")


class SourceExclusionRequest(BaseModel):
    """Bulk include / exclude sources."""

    source_ids: list[str] = Field(..., description="源ID列表")
    excluded: bool = Field(..., description="true 排除，false 包含")


class CreateFilterRequest(BaseModel):
    name: str = Field(..., max_length=1000, description="预设名称（超过 100 字符会被截断）")


class RenameFilterRequest(BaseModel):
    name: str = Field(..., max_length=1000, description="新名称")


class FilterPresetResponse(BaseModel):
    """Filter preset response."""

    id: str = Field(..., description="预设ID")
    name: str = Field(..., description="预设名称")
    excluded_source_ids: list[str] = Field(default_factory=list, description="排除的源")
    created_at: datetime = Field(..., description="创建时间")
    is_active: bool = Field(False, description="是否为当前激活的预设")

    @classmethod
    def from_domain(
        cls, preset: FilterPreset, active_filter_id: str | None = None
    ) -> "FilterPresetResponse":
        return cls(
            id=preset.id,
            name=preset.name,
            excluded_source_ids=list(preset.excluded_source_ids),
            created_at=preset.created_at,
            is_active=preset.id == active_filter_id,
        )
