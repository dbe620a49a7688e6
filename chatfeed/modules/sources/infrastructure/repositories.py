"""Source repository implementations."""

from collections import OrderedDict

from chatfeed.modules.sources.domain.entities import Source
from chatfeed.modules.sources.domain.repository import SourceRepository


class InMemorySourceRepository(SourceRepository):
    """In-memory snapshot of the chat list, kept in chat-list order."""

    def __init__(self, sources: list[Source] | None = None) -> None:
        self._sources: OrderedDict[str, Source] = OrderedDict()
        for source in sources or []:
            self._sources[source.id] = source

    async def list_all(self) -> list[Source]:
        return list(self._sources.values())

    async def replace_all(self, sources: list[Source]) -> None:
        self._sources = OrderedDict((source.id, source) for source in sources)
