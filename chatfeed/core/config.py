"""Application configuration."""

from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",")]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "chatfeed"
    SERVER_PORT: int = 8000
    API_V1_STR: str = "/api/v1"
    FRONTEND_HOST: str = "http://localhost:3000"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS] + [
            self.FRONTEND_HOST
        ]

    # Redis（过滤器预设持久化）
    REDIS_URL: str = "redis://localhost:6379/0"

    # Source Fetch Gateway
    FEED_GATEWAY_BASE_URL: str = "http://localhost:8081"
    FEED_GATEWAY_TIMEOUT_SEC: float = 15.0
    FEED_GATEWAY_USER_AGENT: str = "chatfeed/0.1"
    FEED_SELF_SOURCE_ID: str | None = None  # "Saved Messages" 哨兵源

    # Aggregation / Pagination
    FEED_MAX_SOURCES: int = 100
    FEED_ITEMS_PER_SOURCE: int = 50
    FEED_POLL_INTERVAL_SEC: float = 60.0

    # Virtualization
    FEED_ESTIMATED_ITEM_HEIGHT: float = 350.0
    FEED_OVERSCAN: int = 5
    FEED_DEFAULT_CONTAINER_HEIGHT: float = 800.0
    FEED_ANCHOR_NEAR_TOP_PX: float = 100.0
    FEED_SCROLL_BUTTON_THRESHOLD_PX: float = 500.0
    FEED_LOAD_MORE_THRESHOLD_PX: float = 1000.0

    # Filter presets
    FEED_FILTERS_STORAGE_KEY: str = "feed:filters"
    FEED_MAX_FILTERS: int = 50
    FEED_MAX_FILTER_NAME_LENGTH: int = 100
    FEED_MAX_EXCLUDED_SOURCES: int = 500
    FEED_MAX_ID_LENGTH: int = 100

    @computed_field
    @property
    def feed_reduced_filter_count(self) -> int:
        """存储写入失败时降级保留的预设数量。"""
        return self.FEED_MAX_FILTERS // 2


settings = Settings()
