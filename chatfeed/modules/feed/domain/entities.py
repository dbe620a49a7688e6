"""Feed domain entities."""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, NamedTuple

from pydantic import BaseModel, ConfigDict, Field


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class FeedItemKey(NamedTuple):
    """FeedItem 的复合主键 (source_id, item_id)。"""

    source_id: str
    item_id: int

    def __str__(self) -> str:
        return f"{self.source_id}_{self.item_id}"


class MediaKind(str, Enum):
    """Media kind enum."""

    PHOTO = "photo"
    VIDEO = "video"
    DOCUMENT = "document"
    OTHER = "other"


class MediaDescriptor(BaseModel):
    """媒体描述（渲染由外部负责）。"""

    model_config = ConfigDict(frozen=True)

    kind: MediaKind = Field(..., description="媒体类型")
    caption: str | None = Field(default=None, description="媒体自带的说明文字")


class ReactionSummary(BaseModel):
    """Reaction 汇总。"""

    model_config = ConfigDict(frozen=True)

    counts: dict[str, int] = Field(default_factory=dict, description="reaction -> 数量")

    @property
    def total(self) -> int:
        return sum(self.counts.values())


class FeedItem(BaseModel):
    """FeedItem - Feed 中的一条消息。

    不可变：更新时按复合主键整体替换。
    """

    model_config = ConfigDict(frozen=True)

    source_id: str = Field(..., min_length=1, description="来源ID")
    item_id: int = Field(..., description="源内消息ID")
    timestamp: int = Field(..., description="发布时间（Unix 秒）")
    group_id: str | None = Field(default=None, description="相册分组ID")
    text: str | None = Field(default=None, description="文本内容")
    media: MediaDescriptor | None = Field(default=None, description="媒体描述")
    reactions: ReactionSummary | None = Field(default=None, description="Reaction 汇总")
    caption_source: FeedItemKey | None = Field(
        default=None, description="借用文本的独立消息（相册合并时设置）"
    )

    @property
    def key(self) -> FeedItemKey:
        return FeedItemKey(self.source_id, self.item_id)

    @property
    def own_text(self) -> str | None:
        """消息自身的文本：正文优先，其次是图片或视频的说明。

        文件等其他媒体的说明不算作文本。
        """
        if self.text:
            return self.text
        if self.media is not None and self.has_visual_media and self.media.caption:
            return self.media.caption
        return None

    @property
    def has_text(self) -> bool:
        return bool(self.own_text)

    @property
    def has_visual_media(self) -> bool:
        return self.media is not None and self.media.kind in (
            MediaKind.PHOTO,
            MediaKind.VIDEO,
        )


SourceIdStr = Annotated[str, Field(min_length=1, max_length=99)]


class FilterPreset(BaseModel):
    """FilterPreset - 命名的排除源集合。"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, max_length=99, description="预设ID")
    name: str = Field(..., min_length=1, max_length=100, description="预设名称")
    excluded_source_ids: tuple[SourceIdStr, ...] = Field(
        default=(), max_length=500, description="排除的源ID"
    )
    created_at: datetime = Field(default_factory=_utc_now, description="创建时间")

    @property
    def excluded(self) -> frozenset[str]:
        return frozenset(self.excluded_source_ids)
