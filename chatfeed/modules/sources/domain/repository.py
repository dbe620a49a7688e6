"""Source repository interface."""

from abc import ABC, abstractmethod

from chatfeed.modules.sources.domain.entities import Source


class SourceRepository(ABC):
    """Source repository interface.

    源由外部聊天列表提供，这里只负责在会话内保存快照。
    """

    @abstractmethod
    async def list_all(self) -> list[Source]:
        """List all known sources in chat-list order."""
        pass

    @abstractmethod
    async def replace_all(self, sources: list[Source]) -> None:
        """Replace the snapshot with a fresh chat list."""
        pass
