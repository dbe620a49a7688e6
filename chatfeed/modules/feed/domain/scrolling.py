"""滚动锚定与滚动相关的判定。

ScrollAnchor 只接收已提交（已完成布局）的测量结果，返回应写回的滚动位置：
先测量，再修改。
"""

from dataclasses import dataclass

from chatfeed.modules.feed.domain.entities import FeedItemKey


@dataclass(frozen=True)
class LayoutSnapshot:
    """一次已提交布局的测量结果。"""

    item_count: int
    content_height: float
    scroll_offset: float
    container_height: float = 0.0

    @property
    def distance_from_bottom(self) -> float:
        return self.content_height - self.scroll_offset - self.container_height


class ScrollAnchor:
    """向顶部插入更早的条目时，保持视口下的内容不跳动。"""

    def __init__(self, near_top_threshold: float = 100.0):
        self.near_top_threshold = near_top_threshold
        self._previous: LayoutSnapshot | None = None

    @property
    def previous(self) -> LayoutSnapshot | None:
        return self._previous

    def reconcile(self, committed: LayoutSnapshot) -> float:
        """对比上一次提交的布局，返回需要写回的滚动位置。

        条目数增加、内容高度增长且视口靠近顶部时，把高度差加到滚动位置上。
        返回值作为下一次对比的基线，连续多次加载也不会丢失锚点。
        """
        offset = committed.scroll_offset
        previous = self._previous

        if (
            previous is not None
            and committed.item_count > previous.item_count
            and previous.content_height > 0
        ):
            delta = committed.content_height - previous.content_height
            if delta > 0 and committed.scroll_offset < self.near_top_threshold:
                offset = committed.scroll_offset + delta

        self._previous = LayoutSnapshot(
            item_count=committed.item_count,
            content_height=committed.content_height,
            scroll_offset=offset,
            container_height=committed.container_height,
        )
        return offset

    def reset(self) -> None:
        self._previous = None


def should_show_scroll_button(layout: LayoutSnapshot, threshold: float) -> bool:
    """离底部足够远时显示“回到底部”按钮。"""
    return layout.distance_from_bottom > threshold


def should_load_older(
    scroll_offset: float,
    threshold: float,
    *,
    is_busy: bool,
    item_count: int,
    history_exhausted: bool = False,
) -> bool:
    """滚动接近顶部时请求更早的历史。"""
    return (
        scroll_offset < threshold
        and not is_busy
        and item_count > 0
        and not history_exhausted
    )


class NewPostsTracker:
    """统计用户不在底部时追加到底部的新条目数（“新消息”角标）。"""

    def __init__(self, threshold: float = 500.0):
        self.threshold = threshold
        self.count = 0
        self._last_key: FeedItemKey | None = None
        self._item_count = 0

    def observe(
        self,
        last_key: FeedItemKey | None,
        item_count: int,
        distance_from_bottom: float,
        is_loading_more: bool = False,
    ) -> int:
        """时间线变化后调用，返回当前角标数。"""
        previous_key = self._last_key
        if (
            previous_key is not None
            and last_key is not None
            and previous_key != last_key
            and not is_loading_more
            and item_count > self._item_count
            and distance_from_bottom > self.threshold
        ):
            self.count += item_count - self._item_count

        self._last_key = last_key
        self._item_count = item_count
        return self.count

    def on_scroll(self, distance_from_bottom: float) -> int:
        if distance_from_bottom < self.threshold:
            self.count = 0
        return self.count

    def clear(self) -> None:
        self.count = 0
