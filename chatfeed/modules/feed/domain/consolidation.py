"""相册（分组消息）合并。

一组共享 group_id 的消息在 Feed 中只保留一个代表条目：
- 组内第一条自带文本的消息作为代表
- 若整组都没有文本，则取第一条消息，并从组结束之后的第一条纯文本独立消息
  借用文本作为说明；被借用的独立消息不再单独出现
"""

from collections.abc import Iterable

from chatfeed.modules.feed.domain.entities import FeedItem, FeedItemKey


def consolidate(items: Iterable[FeedItem]) -> list[FeedItem]:
    """合并相册，返回按时间升序排列的新列表。

    纯函数：相同输入总是得到相同输出。组的遍历顺序与代表的选取都依赖
    输入顺序，调用方应先按时间排序。

    Args:
        items: 已去重的条目

    Returns:
        未被借用的独立条目 + 每组一个代表，按 timestamp 稳定排序
    """
    standalone: list[FeedItem] = []
    groups: dict[str, list[FeedItem]] = {}

    for item in items:
        if item.group_id is None:
            standalone.append(item)
        else:
            groups.setdefault(item.group_id, []).append(item)

    consumed: set[FeedItemKey] = set()
    representatives: list[FeedItem] = []

    for members in groups.values():
        with_text = next((m for m in members if m.has_text), None)
        if with_text is not None:
            representatives.append(with_text)
            continue

        selected = members[0]
        donor = _find_caption_donor(
            standalone,
            after=max(m.timestamp for m in members),
            consumed=consumed,
        )
        if donor is not None:
            consumed.add(donor.key)
            selected = selected.model_copy(
                update={"text": donor.own_text, "caption_source": donor.key}
            )
        representatives.append(selected)

    survivors = [item for item in standalone if item.key not in consumed]
    return sorted([*survivors, *representatives], key=lambda item: item.timestamp)


def _find_caption_donor(
    standalone: list[FeedItem],
    after: int,
    consumed: set[FeedItemKey],
) -> FeedItem | None:
    for candidate in standalone:
        if (
            candidate.timestamp > after
            and candidate.text
            and not candidate.has_visual_media
            and candidate.key not in consumed
        ):
            return candidate
    return None
