"""Source catalog domain models and ports."""

from dataclasses import dataclass
from typing import Protocol

from chatfeed.modules.sources.domain.entities import Source, SourceKind


@dataclass(frozen=True)
class SourceCatalogEntry:
    """Feed 设置中的一行：源及其是否被排除。"""

    id: str
    title: str
    kind: SourceKind
    is_excluded: bool


class SourceCatalogProvider(Protocol):
    """Port for loading the chat list from the messaging backend."""

    async def list_sources(self) -> list[Source]: ...
