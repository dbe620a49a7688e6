"""Domain events infrastructure.

进程内事件总线：
- SourceItemsFetchedEvent: 每个源抓取完成后发布，供外部消息存储建立索引
- FeedItemNavigationRequestedEvent: 用户请求跳转到原始聊天
- FeedTimelineUpdatedEvent: 规范时间线被替换
"""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import cast
from uuid import uuid4

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field


class DomainEvent(BaseModel, ABC):
    """Base class for all domain events."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    event_version: int = Field(default=1)

    model_config = ConfigDict(frozen=True)

    @property
    def event_type(self) -> str:
        """Return the event type name."""
        return self.__class__.__name__


class DomainEventHandler(ABC):
    """Base class for domain event handlers."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        """Handle the domain event."""
        pass


HandlerFunc = Callable[[DomainEvent], Awaitable[None] | None]


class FunctionEventHandler(DomainEventHandler):
    """把普通函数/协程包装为事件处理器。"""

    def __init__(self, func: HandlerFunc) -> None:
        self._func = func

    async def handle(self, event: DomainEvent) -> None:
        result = self._func(event)
        if inspect.isawaitable(result):
            await cast(Awaitable[None], result)


class EventBus:
    """Event bus for publishing and subscribing to domain events.

    处理器异常只记录日志，不会传播给发布方：抓取和导航不因订阅方失败而中断。
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[DomainEventHandler]] = {}

    def subscribe(
        self, event_type: type[DomainEvent], handler: DomainEventHandler
    ) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(
            f"Subscribed handler {handler.__class__.__name__} to {event_type.__name__}"
        )

    def subscribe_func(
        self, event_type: type[DomainEvent], func: HandlerFunc
    ) -> DomainEventHandler:
        handler = FunctionEventHandler(func)
        self.subscribe(event_type, handler)
        return handler

    def unsubscribe(
        self, event_type: type[DomainEvent], handler: DomainEventHandler
    ) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    async def publish(self, event: DomainEvent) -> None:
        handlers = list(self._handlers.get(type(event), []))

        logger.debug(f"Publishing event {event.event_type} to {len(handlers)} handlers")

        for handler in handlers:
            try:
                await handler.handle(event)
            except Exception as e:
                logger.error(
                    f"Error handling event {event.event_type} "
                    f"by {handler.__class__.__name__}: {e}"
                )


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the global event bus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus
