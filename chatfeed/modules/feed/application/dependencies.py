"""Feed module application dependencies."""

from typing import NoReturn

from chatfeed.modules.feed.application.session import FeedSession


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_feed_session() -> FeedSession:
    _missing_dependency("FeedSession")
