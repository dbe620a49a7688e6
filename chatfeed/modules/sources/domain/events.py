"""Source domain events."""

from pydantic import Field

from chatfeed.core.domain.events import DomainEvent
from chatfeed.modules.feed.domain.entities import FeedItem


class SourceItemsFetchedEvent(DomainEvent):
    """Event raised as soon as one source's page is fetched.

    外部消息存储订阅该事件以便之后按主键查找单条消息。
    """

    source_id: str = Field(..., description="源ID")
    items: tuple[FeedItem, ...] = Field(..., description="抓取到的条目")
    cursor: int | None = Field(default=None, description="翻页游标")


class SourceFetchFailedEvent(DomainEvent):
    """Event raised when a source fetch fails."""

    source_id: str = Field(..., description="源ID")
    error: str = Field(..., description="错误信息")
    cursor: int | None = Field(default=None, description="翻页游标")
