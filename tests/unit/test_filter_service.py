"""过滤器预设服务单元测试。

测试覆盖：
- 保存（空名拒绝、截断、数量上限、排除集合快照）
- 应用 / 清除 / 未知预设
- 更新、重命名、删除
- 会话层持久化（内存状态先变更）
"""

from unittest.mock import AsyncMock

import pytest

from chatfeed.modules.feed.application.filter_service import FilterService
from chatfeed.modules.feed.domain import state as transitions
from chatfeed.modules.feed.domain.entities import FilterPreset
from chatfeed.modules.feed.domain.exceptions import (
    FilterLimitReachedError,
    FilterPresetNotFoundError,
    InvalidFilterNameError,
)
from chatfeed.modules.feed.domain.state import FeedViewState
from chatfeed.modules.feed.domain.timeline import merge_items

pytestmark = pytest.mark.anyio


@pytest.fixture
def service(preset_repository) -> FilterService:
    return FilterService(preset_repository)


@pytest.fixture
def state(make_item) -> FeedViewState:
    items = merge_items(
        [
            make_item("chatX", 1, 1, "x1"),
            make_item("chatY", 2, 2, "y2"),
            make_item("chatX", 3, 3, "x3"),
            make_item("chatZ", 4, 4, "z4"),
        ]
    )
    return transitions.timeline_loaded(FeedViewState(), items)


# ============================================
# 保存
# ============================================


class TestSaveFilter:
    """保存预设测试。"""

    def test_empty_name_rejected(self, service, state):
        """空名称被拒绝，状态不变。"""
        with pytest.raises(InvalidFilterNameError):
            service.save_filter(state, "")
        with pytest.raises(InvalidFilterNameError):
            service.save_filter(state, "   ")

        assert state.saved_filters == ()

    def test_save_and_apply_news(self, service, state):
        """保存 "News"（排除 chatX）后应用，过滤掉所有 chatX 条目。"""
        state = transitions.toggle_source_exclusion(state, "chatX")

        state, preset = service.save_filter(state, "News")
        cleared = service.clear_filter(state)
        applied = service.apply_filter(cleared, preset.id)

        assert preset.name == "News"
        assert preset.excluded_source_ids == ("chatX",)
        assert all(i.source_id != "chatX" for i in applied.filtered_timeline)
        assert [i.timestamp for i in applied.filtered_timeline] == [2, 4]
        assert applied.active_filter_id == preset.id

    def test_name_trimmed_and_truncated(self, service, state):
        _, preset = service.save_filter(state, "  " + "n" * 150 + "  ")

        assert preset.name == "n" * 100

    def test_limit_reached(self, preset_repository, state):
        service = FilterService(preset_repository, max_filters=2)
        state, _ = service.save_filter(state, "one")
        state, _ = service.save_filter(state, "two")

        with pytest.raises(FilterLimitReachedError):
            service.save_filter(state, "three")
        assert len(state.saved_filters) == 2

    def test_excluded_ids_capped(self, preset_repository, state):
        service = FilterService(preset_repository, max_excluded_sources=2)
        state = transitions.set_sources_excluded(state, ["a", "b", "c"], True)

        _, preset = service.save_filter(state, "capped")

        assert preset.excluded_source_ids == ("a", "b")

    def test_overlong_source_ids_skipped(self, service, state):
        state = transitions.set_sources_excluded(state, ["ok", "x" * 120], True)

        _, preset = service.save_filter(state, "ids")

        assert preset.excluded_source_ids == ("ok",)

    def test_source_id_length_boundary(self, service, state):
        """99 个字符的 ID 保留，100 个字符的 ID 丢弃。"""
        state = transitions.set_sources_excluded(state, ["a" * 99, "b" * 100], True)

        _, preset = service.save_filter(state, "boundary")

        assert preset.excluded_source_ids == ("a" * 99,)

    def test_save_does_not_activate(self, service, state):
        state, _ = service.save_filter(state, "News")

        assert state.active_filter_id is None


# ============================================
# 应用 / 清除
# ============================================


class TestApplyFilter:
    """应用预设测试。"""

    def test_unknown_filter_leaves_state_unchanged(self, service, state):
        assert service.apply_filter(state, "missing") is state

    def test_apply_twice_same_result(self, service, state):
        state = transitions.filters_changed(
            state, [FilterPreset(id="p", name="P", excluded_source_ids=("chatY",))]
        )

        once = service.apply_filter(state, "p")
        twice = service.apply_filter(once, "p")

        assert once.filtered_timeline == twice.filtered_timeline

    def test_clear_restores_canonical(self, service, state):
        state = transitions.filters_changed(
            state, [FilterPreset(id="p", name="P", excluded_source_ids=("chatY",))]
        )

        cleared = service.clear_filter(service.apply_filter(state, "p"))

        assert cleared.filtered_timeline == cleared.canonical_timeline
        assert cleared.active_filter_id is None


# ============================================
# 管理
# ============================================


class TestManageFilters:
    """更新/重命名/删除测试。"""

    def test_update_overwrites_exclusions(self, service, state):
        state, preset = service.save_filter(state, "News")
        state = transitions.set_sources_excluded(state, ["chatZ"], True)

        state = service.update_filter(state, preset.id)

        assert transitions.find_filter(state, preset.id).excluded_source_ids == (
            "chatZ",
        )

    def test_rename(self, service, state):
        state, preset = service.save_filter(state, "News")

        state = service.rename_filter(state, preset.id, " Daily ")

        assert transitions.find_filter(state, preset.id).name == "Daily"

    def test_rename_empty_rejected(self, service, state):
        state, preset = service.save_filter(state, "News")

        with pytest.raises(InvalidFilterNameError):
            service.rename_filter(state, preset.id, "")

    def test_delete_active_clears_active(self, service, state):
        state, preset = service.save_filter(state, "News")
        state = service.apply_filter(state, preset.id)

        state = service.delete_filter(state, preset.id)

        assert state.saved_filters == ()
        assert state.active_filter_id is None

    def test_unknown_filter_raises(self, service, state):
        with pytest.raises(FilterPresetNotFoundError):
            service.delete_filter(state, "missing")
        with pytest.raises(FilterPresetNotFoundError):
            service.update_filter(state, "missing")


# ============================================
# 持久化
# ============================================


class TestPersistence:
    """通过会话持久化测试。"""

    async def test_save_persists_presets(self, feed_session, preset_repository):
        preset = await feed_session.save_filter("News")

        assert [p.id for p in preset_repository.presets] == [preset.id]

    async def test_delete_persists(self, feed_session, preset_repository):
        preset = await feed_session.save_filter("News")

        await feed_session.delete_filter(preset.id)

        assert preset_repository.presets == []
        assert preset_repository.save_calls == 2

    async def test_failed_persist_keeps_memory_state(self, feed_session):
        """存储写入失败不回滚内存状态。"""
        feed_session.filters.repository.save_all = AsyncMock(return_value=0)

        preset = await feed_session.save_filter("News")

        assert [p.id for p in feed_session.state.saved_filters] == [preset.id]

    async def test_load_filters(self, feed_session, preset_repository):
        preset_repository.presets = [FilterPreset(id="p", name="Persisted")]

        state = await feed_session.load_filters()

        assert [p.name for p in state.saved_filters] == ["Persisted"]
