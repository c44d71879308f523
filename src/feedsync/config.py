"""应用配置管理."""

from datetime import datetime
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """配置错误，附带出错的配置键."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key

    def __str__(self) -> str:
        message = super().__str__()
        if self.key:
            return f"{message} (配置项: {self.key})"
        return message


class Settings(BaseSettings):
    """应用配置（环境变量）."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 记录存储配置
    store_backend: Literal["cloudkit", "memory"] = "cloudkit"
    store_url: str = ""
    store_api_token: str = ""

    # 抓取配置
    user_agent: str = "FeedSync/0.1 (feed update bot)"
    robots_user_agent: str = "FeedSync"
    fetch_timeout_seconds: int = 30

    # 更新任务配置
    update_delay: float = 2.0
    update_skip_robots_check: bool = False
    update_max_failures: int | None = None
    update_min_popularity: int | None = None
    update_last_attempted_before: datetime | None = None
    update_limit: int = 100

    # 文章配置
    article_ttl_days: int = 30

    # 应用配置
    database_url: str = "sqlite+aiosqlite:///./feedsync.db"
    scheduler_enabled: bool = True
    sync_interval_minutes: int = 30


@lru_cache
def get_settings() -> Settings:
    """获取应用配置（带缓存）."""
    return Settings()
