"""Source domain entities."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SourceKind(str, Enum):
    """Source kind enum."""

    CHANNEL = "channel"
    GROUP = "group"
    BASIC_GROUP = "basic_group"
    PRIVATE = "private"


FEED_SOURCE_KINDS = frozenset(
    {SourceKind.CHANNEL, SourceKind.GROUP, SourceKind.BASIC_GROUP}
)


class Source(BaseModel):
    """Source - 聊天信息源（频道/群组）。

    由外部聊天列表提供，会话期间不可变。
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="源ID")
    title: str = Field(default="", description="显示名称")
    kind: SourceKind = Field(..., description="源类型")
    is_self: bool = Field(default=False, description="是否为自己的收藏夹（Saved Messages）")

    @property
    def is_feed_applicable(self) -> bool:
        """频道、超级群和普通群都可以进入 Feed。"""
        return self.kind in FEED_SOURCE_KINDS and not self.is_self
