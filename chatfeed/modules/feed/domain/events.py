"""Feed domain events."""

from pydantic import Field

from chatfeed.core.domain.events import DomainEvent


class FeedItemNavigationRequestedEvent(DomainEvent):
    """Event raised when the user jumps to an item's origin chat."""

    source_id: str = Field(..., description="源ID")
    item_id: int = Field(..., description="消息ID")


class FeedTimelineUpdatedEvent(DomainEvent):
    """Event raised after the canonical timeline is replaced."""

    reason: str = Field(..., description="load / poll / paginate / reset")
    total_items: int = Field(..., description="规范时间线条目数")
    visible_items: int = Field(..., description="过滤后条目数")
