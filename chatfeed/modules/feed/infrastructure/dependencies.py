"""Feed module infrastructure dependencies."""

from chatfeed.core.domain.events import get_event_bus
from chatfeed.core.infrastructure.redis import get_redis_client
from chatfeed.modules.feed.application.aggregation_service import AggregationService
from chatfeed.modules.feed.application.filter_service import FilterService
from chatfeed.modules.feed.application.pagination_service import PaginationService
from chatfeed.modules.feed.application.session import FeedSession
from chatfeed.modules.feed.infrastructure.filter_store import (
    RedisFilterPresetRepository,
)
from chatfeed.modules.sources.application.fetch_service import SourceFetchService
from chatfeed.modules.sources.application.services import SourceCatalogService
from chatfeed.modules.sources.infrastructure.dependencies import (
    get_source_gateway,
    get_source_repository,
)

_feed_session: FeedSession | None = None


def get_filter_preset_repository() -> RedisFilterPresetRepository:
    return RedisFilterPresetRepository(get_redis_client())


async def build_feed_session() -> FeedSession:
    """组装 FeedSession：HTTP 网关 + 内存源列表 + Redis 预设存储。"""
    gateway = get_source_gateway()
    event_bus = get_event_bus()
    catalog = SourceCatalogService(await get_source_repository(), provider=gateway)
    aggregation = AggregationService(SourceFetchService(gateway, event_bus))
    return FeedSession(
        catalog=catalog,
        aggregation=aggregation,
        pagination=PaginationService(aggregation),
        filters=FilterService(get_filter_preset_repository()),
        event_bus=event_bus,
    )


async def get_feed_session() -> FeedSession:
    global _feed_session
    if _feed_session is None:
        _feed_session = await build_feed_session()
    return _feed_session


async def close_feed_session() -> None:
    global _feed_session
    if _feed_session is not None:
        await _feed_session.close()
        _feed_session = None
