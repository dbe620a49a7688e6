"""虚拟化窗口计算。

按统一的估计高度近似每个条目的高度，O(1) 计算需要渲染的连续下标区间。
真实高度不一，滚动条比例会有有限的漂移。
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

from chatfeed.core.domain.exceptions import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class VisibleRange:
    """渲染边界：[start_index, end_index) 放在 top_offset 处，容器总高 total_height。"""

    start_index: int
    end_index: int
    top_offset: float
    total_height: float

    @property
    def count(self) -> int:
        return self.end_index - self.start_index

    def slice(self, items: Sequence[T]) -> Sequence[T]:
        return items[self.start_index : self.end_index]


EMPTY_RANGE = VisibleRange(start_index=0, end_index=0, top_offset=0, total_height=0)


def compute_visible_range(
    item_count: int,
    scroll_offset: float,
    container_height: float,
    estimated_item_height: float,
    overscan: int,
) -> VisibleRange:
    """计算可见区间。

    Args:
        item_count: 条目总数
        scroll_offset: 当前滚动位置（负值按 0 处理）
        container_height: 视口高度
        estimated_item_height: 估计的条目高度
        overscan: 视口上下额外渲染的条目数

    Raises:
        ValidationError: 参数不合法
    """
    if estimated_item_height <= 0:
        raise ValidationError("estimated_item_height must be positive")
    if overscan < 0:
        raise ValidationError("overscan must not be negative")
    if container_height < 0:
        raise ValidationError("container_height must not be negative")
    if item_count < 0:
        raise ValidationError("item_count must not be negative")

    if item_count == 0:
        return EMPTY_RANGE

    first_visible = math.floor(max(0.0, scroll_offset) / estimated_item_height)
    visible_count = math.ceil(container_height / estimated_item_height)

    end_index = min(item_count, first_visible + visible_count + overscan)
    start_index = min(max(0, first_visible - overscan), end_index)

    return VisibleRange(
        start_index=start_index,
        end_index=end_index,
        top_offset=start_index * estimated_item_height,
        total_height=item_count * estimated_item_height,
    )
