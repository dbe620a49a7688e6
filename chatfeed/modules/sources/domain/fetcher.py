"""Fetch gateway domain interfaces and models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from chatfeed.modules.feed.domain.entities import FeedItem
from chatfeed.modules.sources.domain.entities import Source


class FetchStatus(str, Enum):
    """抓取状态枚举。"""

    SUCCESS = "success"
    FAILED = "failed"
    EMPTY = "empty"


@dataclass
class SourceFetchResult:
    """单个源一次抓取的结果。"""

    source_id: str
    status: FetchStatus
    items: list[FeedItem] = field(default_factory=list)
    error_message: str | None = None
    duration_ms: int = 0

    @property
    def is_success(self) -> bool:
        return self.status in (FetchStatus.SUCCESS, FetchStatus.EMPTY)

    @property
    def items_count(self) -> int:
        return len(self.items)

    @classmethod
    def success(
        cls,
        source_id: str,
        items: list[FeedItem],
        duration_ms: int = 0,
    ) -> "SourceFetchResult":
        status = FetchStatus.EMPTY if not items else FetchStatus.SUCCESS
        return cls(
            source_id=source_id,
            status=status,
            items=items,
            duration_ms=duration_ms,
        )

    @classmethod
    def failed(
        cls,
        source_id: str,
        error_message: str,
        duration_ms: int = 0,
    ) -> "SourceFetchResult":
        return cls(
            source_id=source_id,
            status=FetchStatus.FAILED,
            items=[],
            error_message=error_message,
            duration_ms=duration_ms,
        )


class SourceFetchGateway(Protocol):
    """Port for fetching one page of items from one source.

    cursor 为排他的时间上界（Unix 秒）：只返回更早的条目；None 表示最新一页。
    可能抛出异常，超时由实现负责。
    """

    async def fetch(
        self,
        source: Source,
        cursor: int | None,
        limit: int,
    ) -> list[FeedItem]: ...
