"""Gateway payload mappers."""

from typing import Any

from loguru import logger
from pydantic import ValidationError

from chatfeed.modules.feed.domain.entities import (
    FeedItem,
    MediaDescriptor,
    MediaKind,
    ReactionSummary,
)
from chatfeed.modules.sources.domain.entities import Source, SourceKind


class FeedItemMapper:
    """Map gateway JSON items to FeedItem."""

    @staticmethod
    def to_domain(source_id: str, raw: dict[str, Any]) -> FeedItem:
        media_raw = raw.get("media")
        media = None
        if isinstance(media_raw, dict):
            kind_value = media_raw.get("kind", MediaKind.OTHER.value)
            try:
                kind = MediaKind(kind_value)
            except ValueError:
                kind = MediaKind.OTHER
            media = MediaDescriptor(kind=kind, caption=media_raw.get("caption"))

        reactions_raw = raw.get("reactions")
        reactions = None
        if isinstance(reactions_raw, dict):
            try:
                reactions = ReactionSummary(counts=reactions_raw)
            except ValidationError as e:
                logger.debug(f"Ignoring malformed reactions on item {raw.get('id')}: {e}")

        group_id = raw.get("group_id")
        return FeedItem(
            source_id=source_id,
            item_id=raw["id"],
            timestamp=raw["date"],
            group_id=str(group_id) if group_id is not None else None,
            text=raw.get("text") or None,
            media=media,
            reactions=reactions,
        )

    @classmethod
    def to_domain_list(cls, source_id: str, payload: Any) -> list[FeedItem]:
        """解析网关响应，跳过格式不正确的条目。"""
        if not isinstance(payload, dict):
            raise ValueError("Gateway response payload must be an object")

        items_raw = payload.get("items")
        if not isinstance(items_raw, list):
            raise ValueError("Gateway response missing items list")

        items: list[FeedItem] = []
        for raw in items_raw:
            if not isinstance(raw, dict):
                continue
            try:
                items.append(cls.to_domain(source_id, raw))
            except (KeyError, TypeError, ValidationError) as e:
                logger.debug(f"Skipping malformed item from {source_id}: {e}")
        return items


class SourceMapper:
    """Map gateway JSON chats to Source."""

    @staticmethod
    def to_domain(raw: dict[str, Any]) -> Source:
        return Source(
            id=str(raw["id"]),
            title=raw.get("title") or "",
            kind=SourceKind(raw.get("kind", SourceKind.PRIVATE.value)),
            is_self=bool(raw.get("is_self", False)),
        )

    @classmethod
    def to_domain_list(cls, payload: Any) -> list[Source]:
        if not isinstance(payload, dict) or not isinstance(payload.get("sources"), list):
            raise ValueError("Gateway response missing sources list")

        sources: list[Source] = []
        for raw in payload["sources"]:
            if not isinstance(raw, dict):
                continue
            try:
                sources.append(cls.to_domain(raw))
            except (KeyError, ValueError) as e:
                logger.debug(f"Skipping malformed source: {e}")
        return sources
