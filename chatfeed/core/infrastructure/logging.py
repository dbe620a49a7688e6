"""Logging configuration with structlog integration.

提供两种日志记录方式：
1. loguru: 用于一般调试日志
2. structlog: 用于关键业务事件的结构化日志
"""

import sys
from typing import Any

import structlog
from loguru import logger

from chatfeed.core.config import settings


def setup_logging() -> None:
    """Configure application logging with structlog and loguru."""
    _configure_structlog()
    _configure_loguru()

    logger.info(f"Logging configured with level: {settings.LOG_LEVEL}")


def _configure_structlog() -> None:
    """配置 structlog 处理器链。"""
    if settings.ENVIRONMENT == "local":
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _get_log_level_number(settings.LOG_LEVEL)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _configure_loguru() -> None:
    """配置 loguru。"""
    logger.remove()

    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    if settings.ENVIRONMENT != "local":
        logger.add(
            "logs/chatfeed_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="30 days",
            level="INFO",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )


def _get_log_level_number(level: str) -> int:
    """将日志级别字符串转换为数字。"""
    levels = {
        "DEBUG": 10,
        "INFO": 20,
        "WARNING": 30,
        "ERROR": 40,
        "CRITICAL": 50,
    }
    return levels.get(level.upper(), 20)


# ============================================================================
# 业务事件日志记录器
# ============================================================================


def get_business_logger() -> structlog.BoundLogger:
    """获取业务事件日志记录器。

    Usage:
        from chatfeed.core.infrastructure.logging import get_business_logger

        log = get_business_logger()
        log.info("feed_polled", items=120)
    """
    return structlog.get_logger("business")


class BusinessEvents:
    """业务事件日志助手类。

    提供统一的业务事件日志记录接口，确保事件格式一致。

    Usage:
        BusinessEvents.feed_loaded(sources_total=12, sources_failed=1, items=340)
    """

    _log = structlog.get_logger("business.events")

    @classmethod
    def feed_loaded(
        cls,
        sources_total: int,
        sources_failed: int,
        items: int,
        duration_ms: int,
        **extra: Any,
    ) -> None:
        """记录 Feed 聚合加载事件。"""
        cls._log.info(
            "feed_loaded",
            event_type="aggregate",
            sources_total=sources_total,
            sources_failed=sources_failed,
            items=items,
            duration_ms=duration_ms,
            **extra,
        )

    @classmethod
    def feed_paginated(
        cls,
        cursor: int,
        new_items: int,
        items: int,
        **extra: Any,
    ) -> None:
        """记录向前翻页事件。"""
        cls._log.info(
            "feed_paginated",
            event_type="paginate",
            cursor=cursor,
            new_items=new_items,
            items=items,
            **extra,
        )

    @classmethod
    def source_fetch_failed(
        cls,
        source_id: str,
        error: str,
        cursor: int | None = None,
        **extra: Any,
    ) -> None:
        """记录源抓取失败事件。"""
        cls._log.warning(
            "source_fetch_failed",
            event_type="fetch_error",
            source_id=source_id,
            error=error,
            cursor=cursor,
            **extra,
        )

    @classmethod
    def filter_applied(
        cls,
        filter_id: str | None,
        excluded_count: int,
        visible_items: int,
        total_items: int,
        **extra: Any,
    ) -> None:
        """记录过滤器应用事件。"""
        cls._log.info(
            "filter_applied",
            event_type="filter",
            filter_id=filter_id,
            excluded_count=excluded_count,
            visible_items=visible_items,
            total_items=total_items,
            **extra,
        )

    @classmethod
    def filter_saved(
        cls,
        filter_id: str,
        name: str,
        excluded_count: int,
        **extra: Any,
    ) -> None:
        """记录过滤器保存事件。"""
        cls._log.info(
            "filter_saved",
            event_type="filter",
            filter_id=filter_id,
            name=name,
            excluded_count=excluded_count,
            **extra,
        )

    @classmethod
    def feature_degraded(
        cls,
        feature: str,
        reason: str,
        **extra: Any,
    ) -> None:
        """记录功能降级事件。"""
        cls._log.warning(
            "feature_degraded",
            event_type="degradation",
            feature=feature,
            reason=reason,
            **extra,
        )
