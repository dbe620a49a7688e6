"""Redis 过滤器预设存储。

所有预设以一个 JSON 数组存放在同一个键下（默认 feed:filters）：
- 读取时丢弃不合法的条目，有丢弃则回写清理后的列表
- 内容无法解析或不是数组时删除该键
- 写入失败时只保留前一半预设重试一次，仍失败则记录并放弃
"""

import json
from typing import Any

from loguru import logger
from pydantic import ValidationError

from chatfeed.core.config import settings
from chatfeed.core.infrastructure.logging import BusinessEvents
from chatfeed.core.infrastructure.redis import RedisClient, RedisKeys
from chatfeed.modules.feed.domain.entities import FilterPreset
from chatfeed.modules.feed.domain.repository import FilterPresetRepository


class RedisFilterPresetRepository(FilterPresetRepository):
    """FilterPresetRepository 的 Redis 实现。"""

    def __init__(
        self,
        redis: RedisClient,
        key: str | None = None,
        max_filters: int | None = None,
    ):
        self.redis = redis
        self.key = key or RedisKeys.feed_filters()
        self.max_filters = max_filters or settings.FEED_MAX_FILTERS

    async def load_all(self) -> list[FilterPreset]:
        try:
            payload = await self.redis.get_json(self.key)
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt filter presets under {self.key}, clearing: {e}")
            await self._clear()
            return []
        except Exception as e:
            logger.warning(f"Failed to read filter presets: {e}")
            BusinessEvents.feature_degraded(
                feature="filter_presets", reason=f"read failed: {e}"
            )
            return []

        if payload is None:
            return []
        if not isinstance(payload, list):
            logger.warning(f"Filter presets under {self.key} is not a list, clearing")
            await self._clear()
            return []

        presets = self._parse_entries(payload)
        if len(presets) != len(payload):
            logger.info(
                f"Dropped {len(payload) - len(presets)} invalid filter presets, "
                "rewriting cleaned list"
            )
            await self.save_all(presets)
        return presets

    async def save_all(self, presets: list[FilterPreset]) -> int:
        presets = list(presets)[: self.max_filters]
        try:
            await self.redis.set_json(self.key, self._dump(presets))
            return len(presets)
        except Exception as e:
            logger.warning(f"Failed to save {len(presets)} filter presets: {e}")

        reduced = presets[: settings.feed_reduced_filter_count]
        try:
            await self.redis.set_json(self.key, self._dump(reduced))
            logger.info(f"Saved reduced filter preset list ({len(reduced)} presets)")
            BusinessEvents.feature_degraded(
                feature="filter_presets",
                reason="write failed, saved reduced list",
                saved=len(reduced),
                requested=len(presets),
            )
            return len(reduced)
        except Exception as e:
            logger.error(f"Failed to save reduced filter preset list: {e}")
            BusinessEvents.feature_degraded(
                feature="filter_presets", reason=f"write failed: {e}"
            )
            return 0

    def _parse_entries(self, payload: list[Any]) -> list[FilterPreset]:
        presets: list[FilterPreset] = []
        seen_ids: set[str] = set()
        for raw in payload:
            if len(presets) >= self.max_filters:
                break
            if not isinstance(raw, dict):
                continue
            try:
                preset = FilterPreset.model_validate(raw)
            except ValidationError as e:
                logger.debug(f"Dropping invalid filter preset: {e.error_count()} errors")
                continue
            if preset.id in seen_ids:
                continue
            seen_ids.add(preset.id)
            presets.append(preset)
        return presets

    @staticmethod
    def _dump(presets: list[FilterPreset]) -> list[dict[str, Any]]:
        return [preset.model_dump(mode="json") for preset in presets]

    async def _clear(self) -> None:
        try:
            await self.redis.delete(self.key)
        except Exception as e:
            logger.warning(f"Failed to clear filter presets key {self.key}: {e}")
