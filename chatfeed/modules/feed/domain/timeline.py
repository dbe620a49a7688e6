"""时间线合并与过滤的纯函数。"""

from collections.abc import Collection, Iterable, Sequence

from chatfeed.modules.feed.domain.consolidation import consolidate
from chatfeed.modules.feed.domain.entities import FeedItem, FeedItemKey
from chatfeed.modules.sources.domain.entities import Source


def merge_items(*batches: Iterable[FeedItem]) -> tuple[FeedItem, ...]:
    """合并多批条目：按复合主键去重后按时间升序排序。

    后出现的批次覆盖先出现的同键条目（新抓取的版本替换旧版本）。
    """
    by_key: dict[FeedItemKey, FeedItem] = {}
    for batch in batches:
        for item in batch:
            by_key[item.key] = item
    return tuple(sorted(by_key.values(), key=lambda item: item.timestamp))


def build_timeline(source_items: Iterable[FeedItem]) -> tuple[FeedItem, ...]:
    """由底层条目构建规范时间线（合并相册）。"""
    return tuple(consolidate(source_items))


def filter_timeline(
    timeline: Sequence[FeedItem],
    excluded_source_ids: Collection[str],
) -> tuple[FeedItem, ...]:
    """移除被排除源的条目，保持相对顺序。"""
    if not excluded_source_ids:
        return tuple(timeline)
    excluded = frozenset(excluded_source_ids)
    return tuple(item for item in timeline if item.source_id not in excluded)


def oldest_timestamp(timeline: Sequence[FeedItem]) -> int | None:
    """时间线中最早条目的时间戳，空时间线返回 None。"""
    if not timeline:
        return None
    return timeline[0].timestamp


def select_eligible_sources(
    sources: Iterable[Source],
    excluded_source_ids: Collection[str],
    max_sources: int,
    self_source_id: str | None = None,
) -> list[Source]:
    """挑选需要抓取的源。

    排除：用户排除的源、自己的收藏夹、私聊；结果截断到 max_sources。
    """
    excluded = frozenset(excluded_source_ids)
    eligible: list[Source] = []
    for source in sources:
        if source.id in excluded:
            continue
        if self_source_id is not None and source.id == self_source_id:
            continue
        if not source.is_feed_applicable:
            continue
        eligible.append(source)
        if len(eligible) >= max_sources:
            break
    return eligible
