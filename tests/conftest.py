"""
pytest 配置和共享 fixtures。

测试分层：
- unit/: 单元测试（不依赖外部服务，网关和 Redis 全部替换为内存实现/Mock）

使用方法：
    # 运行所有测试
    uv run pytest

    # 只运行单元测试
    uv run pytest tests/unit/

    # 运行带覆盖率
    uv run pytest --cov=chatfeed --cov-report=html
"""

from collections.abc import AsyncGenerator, Callable, Iterable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from chatfeed.core.config import Settings
from chatfeed.core.domain.events import EventBus
from chatfeed.modules.feed.application.aggregation_service import AggregationService
from chatfeed.modules.feed.application.filter_service import FilterService
from chatfeed.modules.feed.application.pagination_service import PaginationService
from chatfeed.modules.feed.application.session import FeedSession
from chatfeed.modules.feed.domain.entities import (
    FeedItem,
    FilterPreset,
    MediaDescriptor,
    MediaKind,
)
from chatfeed.modules.feed.domain.repository import FilterPresetRepository
from chatfeed.modules.sources.application.fetch_service import SourceFetchService
from chatfeed.modules.sources.application.services import SourceCatalogService
from chatfeed.modules.sources.domain.entities import Source, SourceKind
from chatfeed.modules.sources.infrastructure.repositories import (
    InMemorySourceRepository,
)

# ============================================
# 配置 Fixtures
# ============================================


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    """测试环境配置。"""
    return Settings(
        ENVIRONMENT="local",
        REDIS_URL="redis://localhost:6379/1",  # 使用 DB 1 隔离测试
        FEED_GATEWAY_BASE_URL="http://gateway.test",
    )


# ============================================
# Redis Fixtures
# ============================================


@pytest.fixture
def mock_redis_client() -> MagicMock:
    """Mock Redis 客户端。"""
    from chatfeed.core.infrastructure.redis.client import RedisClient

    client = MagicMock(spec=RedisClient)
    client.ping = AsyncMock(return_value=True)
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.get_json = AsyncMock(return_value=None)
    client.set_json = AsyncMock(return_value=True)
    return client


# ============================================
# 内存替身
# ============================================


class StubGateway:
    """内存抓取网关：按源返回预置条目，可以让指定源失败。"""

    def __init__(self, items: dict[str, list[FeedItem]] | None = None):
        self.items: dict[str, list[FeedItem]] = items or {}
        self.failing: set[str] = set()
        self.calls: list[tuple[str, int | None, int]] = []

    def add(self, *items: FeedItem) -> None:
        for item in items:
            self.items.setdefault(item.source_id, []).append(item)

    async def fetch(
        self, source: Source, cursor: int | None, limit: int
    ) -> list[FeedItem]:
        self.calls.append((source.id, cursor, limit))
        if source.id in self.failing:
            raise ConnectionError(f"source {source.id} unavailable")

        items = sorted(self.items.get(source.id, []), key=lambda i: i.timestamp)
        if cursor is not None:
            items = [i for i in items if i.timestamp < cursor]
        # 最新一页：取时间最近的 limit 条
        return items[-limit:] if limit else []


class InMemoryFilterPresetRepository(FilterPresetRepository):
    """内存预设存储，可模拟写入失败。"""

    def __init__(self, presets: Iterable[FilterPreset] = ()):
        self.presets: list[FilterPreset] = list(presets)
        self.save_calls = 0

    async def load_all(self) -> list[FilterPreset]:
        return list(self.presets)

    async def save_all(self, presets: list[FilterPreset]) -> int:
        self.save_calls += 1
        self.presets = list(presets)
        return len(presets)


# ============================================
# 领域对象 Fixtures
# ============================================


@pytest.fixture
def make_item() -> Callable[..., FeedItem]:
    """FeedItem 工厂。"""

    def _make(
        source_id: str,
        item_id: int,
        timestamp: int,
        text: str | None = None,
        group_id: str | None = None,
        media: MediaKind | None = None,
        **extra: Any,
    ) -> FeedItem:
        return FeedItem(
            source_id=source_id,
            item_id=item_id,
            timestamp=timestamp,
            text=text,
            group_id=group_id,
            media=MediaDescriptor(kind=media) if media else None,
            **extra,
        )

    return _make


@pytest.fixture
def sample_sources() -> list[Source]:
    """示例源：三个频道/群组 + 私聊 + 收藏夹。"""
    return [
        Source(id="A", title="Alpha News", kind=SourceKind.CHANNEL),
        Source(id="B", title="Beta Group", kind=SourceKind.GROUP),
        Source(id="C", title="Gamma Chat", kind=SourceKind.BASIC_GROUP),
        Source(id="dm", title="Direct Message", kind=SourceKind.PRIVATE),
        Source(id="me", title="Saved Messages", kind=SourceKind.CHANNEL, is_self=True),
    ]


@pytest.fixture
def stub_gateway(make_item) -> StubGateway:
    """A: [1,3,5]，B: [2,4]，C: [6]。"""
    gateway = StubGateway()
    gateway.add(
        make_item("A", 1, 1, "a1"),
        make_item("A", 3, 3, "a3"),
        make_item("A", 5, 5, "a5"),
        make_item("B", 2, 2, "b2"),
        make_item("B", 4, 4, "b4"),
        make_item("C", 6, 6, "c6"),
        make_item("dm", 7, 7, "private"),
        make_item("me", 8, 8, "saved"),
    )
    return gateway


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def preset_repository() -> InMemoryFilterPresetRepository:
    return InMemoryFilterPresetRepository()


@pytest.fixture
def source_repository(sample_sources) -> InMemorySourceRepository:
    return InMemorySourceRepository(sample_sources)


@pytest.fixture
def aggregation_service(stub_gateway, event_bus) -> AggregationService:
    return AggregationService(SourceFetchService(stub_gateway, event_bus))


@pytest.fixture
def feed_session(
    source_repository, aggregation_service, preset_repository, event_bus
) -> FeedSession:
    return FeedSession(
        catalog=SourceCatalogService(source_repository),
        aggregation=aggregation_service,
        pagination=PaginationService(aggregation_service),
        filters=FilterService(preset_repository),
        event_bus=event_bus,
        poll_interval=0.01,
    )


# ============================================
# HTTP Client Fixtures
# ============================================


@pytest.fixture
async def async_client(
    test_settings, feed_session, source_repository
) -> AsyncGenerator[AsyncClient, None]:
    """异步 HTTP 客户端（用于 API 测试）。"""
    _ = test_settings
    from main import app
    from chatfeed.modules.feed.application.dependencies import get_feed_session
    from chatfeed.modules.sources.application.dependencies import (
        get_source_repository,
    )

    # 覆盖依赖
    saved_overrides = dict(app.dependency_overrides)
    app.dependency_overrides[get_feed_session] = lambda: feed_session
    app.dependency_overrides[get_source_repository] = lambda: source_repository

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    # 恢复依赖覆盖
    app.dependency_overrides.clear()
    app.dependency_overrides.update(saved_overrides)
