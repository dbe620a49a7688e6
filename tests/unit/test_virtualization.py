"""虚拟化窗口与滚动判定单元测试。

测试覆盖：
- compute_visible_range 公式、空列表、边界夹取、参数校验
- ScrollAnchor 顶部插入锚定
- 回到底部按钮、触顶加载、新消息角标
"""

import pytest

from chatfeed.core.domain.exceptions import ValidationError
from chatfeed.modules.feed.domain.entities import FeedItemKey
from chatfeed.modules.feed.domain.scrolling import (
    LayoutSnapshot,
    NewPostsTracker,
    ScrollAnchor,
    should_load_older,
    should_show_scroll_button,
)
from chatfeed.modules.feed.domain.virtualization import (
    EMPTY_RANGE,
    compute_visible_range,
)

pytestmark = pytest.mark.anyio


# ============================================
# 可见区间
# ============================================


class TestComputeVisibleRange:
    """可见区间计算测试。"""

    def test_empty_list(self):
        """条目数为 0 时区间全为 0。"""
        window = compute_visible_range(0, 500, 800, 350, 5)

        assert window == EMPTY_RANGE
        assert (window.start_index, window.end_index) == (0, 0)
        assert window.top_offset == 0
        assert window.total_height == 0

    def test_top_of_list(self):
        window = compute_visible_range(100, 0, 800, 350, 5)

        assert window.start_index == 0
        # ceil(800 / 350) = 3, + overscan 5
        assert window.end_index == 8
        assert window.top_offset == 0
        assert window.total_height == 35000

    def test_scrolled_middle(self):
        window = compute_visible_range(100, 3500, 800, 350, 5)

        # first visible = 10
        assert window.start_index == 5
        assert window.end_index == 18
        assert window.top_offset == 5 * 350

    def test_end_clamped_to_item_count(self):
        window = compute_visible_range(12, 3500, 800, 350, 5)

        assert window.end_index == 12

    def test_start_never_past_end(self):
        """滚动位置超出内容时 start 夹取到 end。"""
        window = compute_visible_range(3, 100_000, 800, 350, 5)

        assert window.start_index == window.end_index == 3
        assert window.count == 0

    def test_negative_offset_clamped(self):
        """回弹产生的负滚动位置按 0 处理。"""
        assert compute_visible_range(50, -120, 800, 350, 5) == compute_visible_range(
            50, 0, 800, 350, 5
        )

    def test_slice(self):
        items = list(range(100))
        window = compute_visible_range(100, 3500, 800, 350, 5)

        assert list(window.slice(items)) == list(range(5, 18))

    @pytest.mark.parametrize(
        ("height", "overscan", "container", "count"),
        [(0, 5, 800, 10), (-1, 5, 800, 10), (350, -1, 800, 10), (350, 5, -1, 10), (350, 5, 800, -1)],
    )
    def test_invalid_arguments(self, height, overscan, container, count):
        with pytest.raises(ValidationError):
            compute_visible_range(count, 0, container, height, overscan)


# ============================================
# 滚动锚定
# ============================================


class TestScrollAnchor:
    """顶部插入锚定测试。"""

    def test_first_commit_keeps_offset(self):
        anchor = ScrollAnchor(near_top_threshold=100)

        assert anchor.reconcile(LayoutSnapshot(10, 3500, 40)) == 40

    def test_prepend_near_top_shifts_offset(self):
        """在顶部附近插入更早的条目，滚动位置加上高度差。"""
        anchor = ScrollAnchor(near_top_threshold=100)
        anchor.reconcile(LayoutSnapshot(10, 3500, 20))

        offset = anchor.reconcile(LayoutSnapshot(15, 5250, 20))

        assert offset == 20 + 1750

    def test_far_from_top_unchanged(self):
        anchor = ScrollAnchor(near_top_threshold=100)
        anchor.reconcile(LayoutSnapshot(10, 3500, 900))

        assert anchor.reconcile(LayoutSnapshot(15, 5250, 900)) == 900

    def test_same_count_unchanged(self):
        anchor = ScrollAnchor(near_top_threshold=100)
        anchor.reconcile(LayoutSnapshot(10, 3500, 20))

        assert anchor.reconcile(LayoutSnapshot(10, 3800, 20)) == 20

    def test_previous_zero_height_unchanged(self):
        """上一次布局高度为 0（首次渲染）时不调整。"""
        anchor = ScrollAnchor(near_top_threshold=100)
        anchor.reconcile(LayoutSnapshot(0, 0, 0))

        assert anchor.reconcile(LayoutSnapshot(10, 3500, 0)) == 0

    def test_anchored_offset_is_next_baseline(self):
        """锚定后的位置作为下一次对比的基线，不会重复调整。"""
        anchor = ScrollAnchor(near_top_threshold=100)
        anchor.reconcile(LayoutSnapshot(10, 3500, 20))
        shifted = anchor.reconcile(LayoutSnapshot(15, 5250, 20))

        assert anchor.previous.scroll_offset == shifted
        assert anchor.reconcile(LayoutSnapshot(15, 5250, shifted)) == shifted

    def test_reset(self):
        anchor = ScrollAnchor()
        anchor.reconcile(LayoutSnapshot(10, 3500, 20))

        anchor.reset()

        assert anchor.previous is None


# ============================================
# 滚动判定
# ============================================


class TestScrollHelpers:
    """滚动相关判定测试。"""

    def test_scroll_button(self):
        far = LayoutSnapshot(20, 7000, 1000, container_height=800)
        near = LayoutSnapshot(20, 7000, 6000, container_height=800)

        assert far.distance_from_bottom == 5200
        assert should_show_scroll_button(far, 500) is True
        assert should_show_scroll_button(near, 500) is False

    def test_load_older_near_top(self):
        assert should_load_older(200, 1000, is_busy=False, item_count=10) is True

    @pytest.mark.parametrize(
        ("offset", "busy", "count", "exhausted"),
        [(1500, False, 10, False), (200, True, 10, False), (200, False, 0, False), (200, False, 10, True)],
    )
    def test_load_older_blocked(self, offset, busy, count, exhausted):
        assert (
            should_load_older(
                offset, 1000, is_busy=busy, item_count=count, history_exhausted=exhausted
            )
            is False
        )


class TestNewPostsTracker:
    """新消息角标测试。"""

    def test_counts_appended_items_when_scrolled_away(self):
        tracker = NewPostsTracker(threshold=500)
        tracker.observe(FeedItemKey("A", 1), 10, distance_from_bottom=2000)

        count = tracker.observe(FeedItemKey("A", 3), 12, distance_from_bottom=2000)

        assert count == 2

    def test_no_count_near_bottom(self):
        tracker = NewPostsTracker(threshold=500)
        tracker.observe(FeedItemKey("A", 1), 10, distance_from_bottom=100)

        assert tracker.observe(FeedItemKey("A", 3), 12, distance_from_bottom=100) == 0

    def test_prepend_not_counted(self):
        """翻页插入顶部不计入（最后一条未变）。"""
        tracker = NewPostsTracker(threshold=500)
        tracker.observe(FeedItemKey("A", 5), 10, distance_from_bottom=2000)

        assert tracker.observe(FeedItemKey("A", 5), 20, distance_from_bottom=2000) == 0

    def test_scroll_to_bottom_resets(self):
        tracker = NewPostsTracker(threshold=500)
        tracker.observe(FeedItemKey("A", 1), 10, distance_from_bottom=2000)
        tracker.observe(FeedItemKey("A", 3), 12, distance_from_bottom=2000)

        assert tracker.on_scroll(200) == 0
