"""HTTP source gateway.

通过 HTTP 网关抓取聊天源的消息分页和聊天列表：
- GET {base}/sources/{id}/items?limit=&before=  -> {"items": [...]}
- GET {base}/sources                            -> {"sources": [...]}
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from chatfeed.core.config import settings
from chatfeed.modules.feed.domain.entities import FeedItem
from chatfeed.modules.sources.domain.entities import Source
from chatfeed.modules.sources.infrastructure.mappers import (
    FeedItemMapper,
    SourceMapper,
)


class HttpSourceFetchGateway:
    """SourceFetchGateway / SourceCatalogProvider 的 HTTP 实现。

    网络层错误（超时、连接失败）重试一次；HTTP 状态错误直接抛出，
    由 SourceFetchService 转换为单源失败结果。
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.FEED_GATEWAY_BASE_URL).rstrip("/")
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=settings.FEED_GATEWAY_TIMEOUT_SEC,
                follow_redirects=False,
                headers={
                    "User-Agent": settings.FEED_GATEWAY_USER_AGENT,
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(
        self, source: Source, cursor: int | None, limit: int
    ) -> list[FeedItem]:
        params: dict[str, Any] = {"limit": limit}
        if cursor is not None:
            params["before"] = cursor

        try:
            payload = await self._get_json(f"/sources/{source.id}/items", params)
        except httpx.HTTPStatusError as exc:
            logger.warning(
                f"Gateway HTTP error for {source.id}: {exc.response.status_code}"
            )
            raise

        items = FeedItemMapper.to_domain_list(source.id, payload)
        return items[:limit]

    async def list_sources(self) -> list[Source]:
        payload = await self._get_json("/sources", None)
        sources = SourceMapper.to_domain_list(payload)
        logger.info(f"Loaded {len(sources)} sources from gateway")
        return sources

    @retry(
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError)),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        reraise=True,
    )
    async def _get_json(self, path: str, params: dict[str, Any] | None) -> Any:
        response = await self.client.get(f"{self.base_url}{path}", params=params)
        response.raise_for_status()
        return response.json()
