"""Source application services."""

from collections.abc import Collection

from chatfeed.modules.sources.domain.catalog import (
    SourceCatalogEntry,
    SourceCatalogProvider,
)
from chatfeed.modules.sources.domain.entities import Source
from chatfeed.modules.sources.domain.repository import SourceRepository


class SourceCatalogService:
    """Source catalog service for the feed settings list."""

    def __init__(
        self,
        source_repository: SourceRepository,
        provider: SourceCatalogProvider | None = None,
    ) -> None:
        self.source_repo = source_repository
        self.provider = provider

    async def refresh(self) -> int:
        """Reload the chat list from the provider, if one is configured."""
        if self.provider is None:
            return len(await self.source_repo.list_all())
        sources = await self.provider.list_sources()
        await self.source_repo.replace_all(sources)
        return len(sources)

    async def list_sources(self) -> list[Source]:
        return await self.source_repo.list_all()

    async def list_entries(
        self,
        excluded_source_ids: Collection[str],
        query: str | None = None,
    ) -> list[SourceCatalogEntry]:
        """列出可进入 Feed 的源（频道/群组），按标题做不区分大小写的搜索。"""
        sources = await self.source_repo.list_all()
        needle = (query or "").strip().lower()

        entries: list[SourceCatalogEntry] = []
        for source in sources:
            if not source.is_feed_applicable:
                continue
            if needle and needle not in source.title.lower():
                continue
            entries.append(
                SourceCatalogEntry(
                    id=source.id,
                    title=source.title,
                    kind=source.kind,
                    is_excluded=source.id in excluded_source_ids,
                )
            )
        return entries
