"""Source module infrastructure dependencies."""

from chatfeed.modules.sources.infrastructure.gateway import HttpSourceFetchGateway
from chatfeed.modules.sources.infrastructure.repositories import (
    InMemorySourceRepository,
)

# 进程内共享：聊天列表快照与网关连接池
_source_repository = InMemorySourceRepository()
_source_gateway: HttpSourceFetchGateway | None = None


async def get_source_repository() -> InMemorySourceRepository:
    return _source_repository


def get_source_gateway() -> HttpSourceFetchGateway:
    global _source_gateway
    if _source_gateway is None:
        _source_gateway = HttpSourceFetchGateway()
    return _source_gateway


async def close_source_gateway() -> None:
    global _source_gateway
    if _source_gateway is not None:
        await _source_gateway.close()
        _source_gateway = None
