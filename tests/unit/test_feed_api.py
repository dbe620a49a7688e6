"""Feed API 测试。

测试覆盖：
- 加载 / 时间线窗口 / 翻页 / 重置
- 源列表与排除
- 预设 CRUD、应用、清除、错误响应
- 滚动提交与导航
"""

import pytest

pytestmark = pytest.mark.anyio

API = "/api/v1/feed"


class TestTimelineApi:
    """时间线接口测试。"""

    async def test_load_and_window(self, async_client):
        response = await async_client.post(f"{API}/load")
        assert response.status_code == 200
        assert response.json()["data"]["total_items"] == 6

        response = await async_client.get(API, params={"container_height": 800})

        body = response.json()["data"]
        assert body["range"]["start_index"] == 0
        assert body["range"]["end_index"] == 6
        assert body["range"]["total_height"] == 6 * 350
        assert [i["key"] for i in body["items"]][:2] == ["A_1", "B_2"]

    async def test_empty_window(self, async_client):
        response = await async_client.get(API)

        body = response.json()["data"]
        assert body["items"] == []
        assert body["range"] == {
            "start_index": 0,
            "end_index": 0,
            "top_offset": 0,
            "total_height": 0,
        }

    async def test_load_older_on_empty_timeline(self, async_client):
        response = await async_client.post(f"{API}/load-older")

        assert response.json()["data"]["total_items"] == 6

    async def test_reset(self, async_client):
        await async_client.post(f"{API}/load")

        response = await async_client.post(f"{API}/reset")

        assert response.json()["data"]["total_items"] == 6
        assert response.json()["data"]["scroll_offset"] == 0


class TestSourcesApi:
    """源选择接口测试。"""

    async def test_list_sources_with_search(self, async_client):
        response = await async_client.get(f"{API}/sources", params={"q": "beta"})

        assert [s["id"] for s in response.json()["data"]] == ["B"]

    async def test_toggle_source(self, async_client):
        await async_client.post(f"{API}/load")

        response = await async_client.post(f"{API}/sources/B/toggle")

        data = response.json()["data"]
        assert data["excluded_source_ids"] == ["B"]
        assert data["visible_items"] == 4

    async def test_bulk_exclusion(self, async_client):
        response = await async_client.put(
            f"{API}/sources/exclusion",
            json={"source_ids": ["A", "C"], "excluded": True},
        )

        assert response.json()["data"]["excluded_source_ids"] == ["A", "C"]


class TestFiltersApi:
    """预设接口测试。"""

    async def test_create_apply_and_delete(self, async_client):
        await async_client.post(f"{API}/load")
        await async_client.post(f"{API}/sources/B/toggle")

        response = await async_client.post(f"{API}/filters", json={"name": "News"})
        assert response.status_code == 201
        preset = response.json()["data"]
        assert preset["excluded_source_ids"] == ["B"]

        await async_client.post(f"{API}/filters/clear")
        response = await async_client.post(f"{API}/filters/{preset['id']}/apply")
        assert response.json()["data"]["visible_items"] == 4
        assert response.json()["data"]["active_filter_id"] == preset["id"]

        response = await async_client.delete(f"{API}/filters/{preset['id']}")
        assert response.status_code == 200
        response = await async_client.get(f"{API}/filters")
        assert response.json()["data"] == []

    async def test_empty_name_rejected(self, async_client):
        response = await async_client.post(f"{API}/filters", json={"name": "  "})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_FILTER_NAME"

    async def test_apply_unknown_filter(self, async_client):
        response = await async_client.post(f"{API}/filters/missing/apply")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    async def test_rename_and_update(self, async_client):
        response = await async_client.post(f"{API}/filters", json={"name": "Old"})
        filter_id = response.json()["data"]["id"]

        response = await async_client.put(
            f"{API}/filters/{filter_id}", json={"name": "New"}
        )
        assert response.json()["data"]["name"] == "New"

        await async_client.post(f"{API}/sources/C/toggle")
        response = await async_client.put(f"{API}/filters/{filter_id}/exclusions")
        assert response.json()["data"]["excluded_source_ids"] == ["C"]

    async def test_detach(self, async_client):
        await async_client.post(f"{API}/sources/A/toggle")
        response = await async_client.post(f"{API}/filters", json={"name": "P"})
        filter_id = response.json()["data"]["id"]
        await async_client.post(f"{API}/filters/{filter_id}/apply")

        response = await async_client.post(f"{API}/filters/detach")

        data = response.json()["data"]
        assert data["active_filter_id"] is None
        assert data["excluded_source_ids"] == ["A"]


class TestScrollApi:
    """滚动与导航接口测试。"""

    async def test_commit_layout(self, async_client):
        await async_client.post(f"{API}/load")

        response = await async_client.post(
            f"{API}/scroll/commit",
            json={"content_height": 2100, "scroll_offset": 0, "container_height": 800},
        )

        data = response.json()["data"]
        assert data["scroll_offset"] == 0
        assert data["show_scroll_button"] is True
        assert data["should_load_older"] is True

    async def test_initial_scroll_and_save(self, async_client):
        await async_client.post(f"{API}/load")

        response = await async_client.post(
            f"{API}/scroll/initial",
            json={"content_height": 2100, "container_height": 800},
        )
        assert response.json()["data"]["scroll_offset"] == 1300

        response = await async_client.put(f"{API}/scroll", json={"scroll_offset": 250})
        assert response.json()["data"]["scroll_offset"] == 250

    async def test_navigate(self, async_client, event_bus):
        from chatfeed.modules.feed.domain.events import (
            FeedItemNavigationRequestedEvent,
        )

        received = []
        event_bus.subscribe_func(FeedItemNavigationRequestedEvent, received.append)

        response = await async_client.post(
            f"{API}/navigate", json={"source_id": "A", "item_id": 3}
        )

        assert response.status_code == 200
        assert received[0].item_id == 3
