"""Feed API routes."""

from fastapi import APIRouter, Depends, Query, status

from chatfeed.core.interfaces.http.response import ApiResponse
from chatfeed.modules.feed.application.dependencies import get_feed_session
from chatfeed.modules.feed.application.session import FeedSession
from chatfeed.modules.feed.domain.exceptions import FilterPresetNotFoundError
from chatfeed.modules.feed.domain.state import find_filter
from chatfeed.modules.feed.interfaces.schemas import (
    CreateFilterRequest,
    FeedItemResponse,
    FeedStateResponse,
    FilterPresetResponse,
    InitialScrollRequest,
    InitialScrollResponse,
    LayoutCommitRequest,
    NavigateRequest,
    RenameFilterRequest,
    SaveScrollRequest,
    ScrollCommitResponse,
    SourceEntryResponse,
    SourceExclusionRequest,
    TimelineWindowResponse,
    VisibleRangeResponse,
)
from chatfeed.modules.sources.application.dependencies import (
    get_source_catalog_service,
)
from chatfeed.modules.sources.application.services import SourceCatalogService

router = APIRouter(prefix="/feed", tags=["feed"])


def _state_response(session: FeedSession) -> ApiResponse[FeedStateResponse]:
    return ApiResponse.success(data=FeedStateResponse.from_state(session.state))


# ============================================
# 时间线
# ============================================


@router.get(
    "",
    response_model=ApiResponse[TimelineWindowResponse],
    summary="获取可见区间",
    description="按保存的滚动位置计算虚拟化窗口，返回区间及区间内的条目",
)
async def get_timeline_window(
    container_height: float | None = Query(None, ge=0, description="视口高度"),
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[TimelineWindowResponse]:
    window, items = session.visible_range(container_height)
    return ApiResponse.success(
        data=TimelineWindowResponse(
            range=VisibleRangeResponse.from_domain(window),
            items=[FeedItemResponse.from_domain(item) for item in items],
            state=FeedStateResponse.from_state(session.state),
        )
    )


@router.get(
    "/state",
    response_model=ApiResponse[FeedStateResponse],
    summary="获取 Feed 状态",
)
async def get_state(
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FeedStateResponse]:
    return _state_response(session)


@router.post(
    "/load",
    response_model=ApiResponse[FeedStateResponse],
    summary="加载最新消息",
    description="并发抓取所有可用源的最新一页，合并到当前时间线",
)
async def load_feed(
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FeedStateResponse]:
    await session.load()
    return _state_response(session)


@router.post(
    "/load-older",
    response_model=ApiResponse[FeedStateResponse],
    summary="加载更早的消息",
    description="以可见的最早条目时间为游标向前翻页；可见时间线为空时等同于初始加载",
)
async def load_older(
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FeedStateResponse]:
    await session.load_older()
    return _state_response(session)


@router.post(
    "/reset",
    response_model=ApiResponse[FeedStateResponse],
    summary="重置时间线",
    description="清空时间线并重新加载",
)
async def reset_feed(
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FeedStateResponse]:
    await session.reset()
    return _state_response(session)


@router.post(
    "/navigate",
    response_model=ApiResponse[None],
    summary="跳转到原始聊天",
)
async def navigate(
    request: NavigateRequest,
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[None]:
    await session.navigate_to(request.source_id, request.item_id)
    return ApiResponse.success(message="Navigation requested")


# ============================================
# 滚动
# ============================================


@router.post(
    "/scroll/commit",
    response_model=ApiResponse[ScrollCommitResponse],
    summary="提交布局测量",
    description="渲染完成后提交测量结果，返回锚定后的滚动位置",
)
async def commit_layout(
    request: LayoutCommitRequest,
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[ScrollCommitResponse]:
    commit = session.commit_layout(
        content_height=request.content_height,
        scroll_offset=request.scroll_offset,
        container_height=request.container_height,
    )
    return ApiResponse.success(
        data=ScrollCommitResponse(
            scroll_offset=commit.scroll_offset,
            show_scroll_button=commit.show_scroll_button,
            should_load_older=commit.should_load_older,
            new_posts=commit.new_posts,
        )
    )


@router.post(
    "/scroll/initial",
    response_model=ApiResponse[InitialScrollResponse],
    summary="初始滚动到底部",
)
async def initial_scroll(
    request: InitialScrollRequest,
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[InitialScrollResponse]:
    offset = session.initial_scroll(request.content_height, request.container_height)
    return ApiResponse.success(data=InitialScrollResponse(scroll_offset=offset))


@router.put(
    "/scroll",
    response_model=ApiResponse[FeedStateResponse],
    summary="保存滚动位置",
)
async def save_scroll(
    request: SaveScrollRequest,
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FeedStateResponse]:
    session.save_scroll(request.scroll_offset)
    return _state_response(session)


# ============================================
# 源选择
# ============================================


@router.get(
    "/sources",
    response_model=ApiResponse[list[SourceEntryResponse]],
    summary="获取源列表",
    description="列出可进入 Feed 的频道和群组，支持按标题搜索",
)
async def list_sources(
    q: str | None = Query(None, max_length=200, description="标题搜索"),
    session: FeedSession = Depends(get_feed_session),
    catalog: SourceCatalogService = Depends(get_source_catalog_service),
) -> ApiResponse[list[SourceEntryResponse]]:
    entries = await catalog.list_entries(session.state.excluded_source_ids, query=q)
    return ApiResponse.success(
        data=[
            SourceEntryResponse(
                id=entry.id,
                title=entry.title,
                kind=entry.kind,
                is_excluded=entry.is_excluded,
            )
            for entry in entries
        ]
    )


@router.post(
    "/sources/{source_id}/toggle",
    response_model=ApiResponse[FeedStateResponse],
    summary="切换源的排除状态",
)
async def toggle_source(
    source_id: str,
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FeedStateResponse]:
    session.toggle_source(source_id)
    return _state_response(session)


@router.put(
    "/sources/exclusion",
    response_model=ApiResponse[FeedStateResponse],
    summary="批量包含/排除源",
)
async def set_sources_excluded(
    request: SourceExclusionRequest,
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FeedStateResponse]:
    session.set_sources_excluded(request.source_ids, request.excluded)
    return _state_response(session)


# ============================================
# 过滤器预设
# ============================================


@router.get(
    "/filters",
    response_model=ApiResponse[list[FilterPresetResponse]],
    summary="获取过滤器预设",
)
async def list_filters(
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[list[FilterPresetResponse]]:
    state = session.state
    return ApiResponse.success(
        data=[
            FilterPresetResponse.from_domain(preset, state.active_filter_id)
            for preset in state.saved_filters
        ]
    )


@router.post(
    "/filters",
    response_model=ApiResponse[FilterPresetResponse],
    status_code=status.HTTP_201_CREATED,
    summary="保存过滤器预设",
    description="以当前排除的源新建预设",
)
async def create_filter(
    request: CreateFilterRequest,
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FilterPresetResponse]:
    preset = await session.save_filter(request.name)
    return ApiResponse.success(
        data=FilterPresetResponse.from_domain(preset, session.state.active_filter_id),
        message="Filter saved successfully",
        code=201,
    )


@router.post(
    "/filters/clear",
    response_model=ApiResponse[FeedStateResponse],
    summary="清除过滤",
)
async def clear_filter(
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FeedStateResponse]:
    session.clear_filter()
    return _state_response(session)


@router.post(
    "/filters/detach",
    response_model=ApiResponse[FeedStateResponse],
    summary="取消激活预设",
    description="保留当前排除的源，仅取消预设的激活状态",
)
async def detach_filter(
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FeedStateResponse]:
    session.detach_filter()
    return _state_response(session)


@router.post(
    "/filters/{filter_id}/apply",
    response_model=ApiResponse[FeedStateResponse],
    summary="应用过滤器预设",
)
async def apply_filter(
    filter_id: str,
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FeedStateResponse]:
    if find_filter(session.state, filter_id) is None:
        raise FilterPresetNotFoundError(filter_id)
    session.apply_filter(filter_id)
    return _state_response(session)


@router.put(
    "/filters/{filter_id}",
    response_model=ApiResponse[FilterPresetResponse],
    summary="重命名过滤器预设",
)
async def rename_filter(
    filter_id: str,
    request: RenameFilterRequest,
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FilterPresetResponse]:
    state = await session.rename_filter(filter_id, request.name)
    preset = find_filter(state, filter_id)
    return ApiResponse.success(
        data=FilterPresetResponse.from_domain(preset, state.active_filter_id)
    )


@router.put(
    "/filters/{filter_id}/exclusions",
    response_model=ApiResponse[FilterPresetResponse],
    summary="用当前选择覆盖预设",
)
async def update_filter(
    filter_id: str,
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[FilterPresetResponse]:
    state = await session.update_filter(filter_id)
    preset = find_filter(state, filter_id)
    return ApiResponse.success(
        data=FilterPresetResponse.from_domain(preset, state.active_filter_id)
    )


@router.delete(
    "/filters/{filter_id}",
    response_model=ApiResponse[None],
    summary="删除过滤器预设",
)
async def delete_filter(
    filter_id: str,
    session: FeedSession = Depends(get_feed_session),
) -> ApiResponse[None]:
    await session.delete_filter(filter_id)
    return ApiResponse.success(message="Filter deleted successfully")
