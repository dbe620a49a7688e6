"""chatfeed - 多源聊天消息聚合 Feed 服务入口。"""

from fastapi import FastAPI
from fastapi.concurrency import asynccontextmanager
from fastapi.routing import APIRoute
from loguru import logger
from starlette.middleware.cors import CORSMiddleware

from chatfeed.core.config import settings
from chatfeed.core.domain.exceptions import DomainException
from chatfeed.core.infrastructure.logging import BusinessEvents, setup_logging
from chatfeed.core.infrastructure.redis import RedisUnavailableError, redis_client
from chatfeed.core.interfaces.http.exceptions import (
    domain_exception_handler,
    global_exception_handler,
)
from chatfeed.core.interfaces.http.routers import api_router
from chatfeed.modules.feed.application import dependencies as feed_app_deps
from chatfeed.modules.feed.infrastructure import dependencies as feed_infra_deps
from chatfeed.modules.sources.application import dependencies as sources_app_deps
from chatfeed.modules.sources.infrastructure import dependencies as sources_infra_deps


def custom_generate_unique_id(route: APIRoute) -> str:
    """Generate unique operation IDs for OpenAPI."""
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    logger.info("Starting chatfeed...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    session = await feed_infra_deps.get_feed_session()

    # 聊天列表和预设加载失败时降级运行
    try:
        count = await session.catalog.refresh()
        logger.info(f"Source catalog loaded: {count} sources")
    except Exception as e:
        logger.warning(f"Failed to load source catalog: {e}")
        BusinessEvents.feature_degraded(feature="source_catalog", reason=str(e))

    # Redis 只存过滤器预设，不可用时以空预设启动
    try:
        async with redis_client.ensure_available(timeout=5.0):
            await session.load_filters()
    except RedisUnavailableError as e:
        logger.warning(f"Skipping filter presets: {e}")
        BusinessEvents.feature_degraded(feature="filter_presets", reason=str(e))

    await session.load()
    session.start_polling()

    yield

    logger.info("Shutting down chatfeed...")
    await feed_infra_deps.close_feed_session()
    await sources_infra_deps.close_source_gateway()
    await redis_client.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="多源聊天消息聚合 Feed：统一时间线、过滤器预设、向前翻页与虚拟化窗口",
    version="0.1.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)

# Dependency overrides (application -> infrastructure)
app.dependency_overrides[sources_app_deps.get_source_repository] = (
    sources_infra_deps.get_source_repository
)
app.dependency_overrides[feed_app_deps.get_feed_session] = (
    feed_infra_deps.get_feed_session
)

# Exception handlers
app.add_exception_handler(DomainException, domain_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# CORS middleware
if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint.

    Redis 只用于保存过滤器预设，不可用时 Feed 仍可降级运行。
    """
    redis_health_result = await redis_client.health_check()
    overall_status = (
        "healthy" if redis_health_result.status.value == "ok" else "degraded"
    )

    return {
        "status": overall_status,
        "environment": settings.ENVIRONMENT,
        "version": "0.1.0",
        "components": {"redis": redis_health_result.to_dict()},
    }


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "message": "Welcome to chatfeed API",
        "docs": f"{settings.API_V1_STR}/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.SERVER_PORT,
        reload=settings.ENVIRONMENT == "local",
    )
