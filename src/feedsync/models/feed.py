"""Feed 订阅源模型."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from feedsync.models.records import RecordInfo

FEED_RECORD_TYPE = "Feed"


class Feed(BaseModel):
    """远程存储中的 RSS 订阅源."""

    model_config = ConfigDict(frozen=True)

    record_name: str | None = Field(default=None, description="存储层记录 ID")
    record_change_tag: str | None = Field(default=None, description="并发控制标记")
    feed_url: str = Field(description="Feed URL")
    title: str = Field(default="", description="Feed 标题")
    description: str | None = Field(default=None, description="Feed 描述")
    category: str | None = Field(default=None, description="分类")
    image_url: str | None = Field(default=None, description="图标 URL")
    site_url: str | None = Field(default=None, description="网站 URL")
    language: str | None = Field(default=None, description="语言")
    tags: tuple[str, ...] = Field(default=(), description="标签")

    is_featured: bool = False
    is_verified: bool = False
    is_active: bool = True
    quality_score: int = 50
    subscriber_count: int = 0

    # 条件请求缓存
    etag: str | None = None
    last_modified: str | None = None

    min_update_interval: float | None = Field(
        default=None, description="最小更新间隔（秒）"
    )
    update_frequency: float | None = None
    last_verified: datetime | None = None
    last_attempted: datetime | None = None

    # 抓取统计
    total_attempts: int = 0
    successful_attempts: int = 0
    failure_count: int = Field(default=0, description="连续失败次数")
    last_failure_reason: str | None = None

    def to_fields(self, include_empty: bool = False) -> dict[str, Any]:
        """
        转换为存储层字段字典.

        include_empty 为 True 时，空的可选字段以 None 写出，用于更新时清除旧值。
        """
        fields: dict[str, Any] = {
            "feedURL": self.feed_url,
            "title": self.title,
            "isFeatured": int(self.is_featured),
            "isVerified": int(self.is_verified),
            "isActive": int(self.is_active),
            "qualityScore": self.quality_score,
            "subscriberCount": self.subscriber_count,
            "totalAttempts": self.total_attempts,
            "successfulAttempts": self.successful_attempts,
            "failureCount": self.failure_count,
        }

        optional: dict[str, Any] = {
            "description": self.description,
            "category": self.category,
            "imageURL": self.image_url,
            "siteURL": self.site_url,
            "language": self.language,
            "etag": self.etag,
            "lastModified": self.last_modified,
            "lastFailureReason": self.last_failure_reason,
            "verifiedTimestamp": self.last_verified,
            "attemptedTimestamp": self.last_attempted,
            "updateFrequency": self.update_frequency,
            "minUpdateInterval": self.min_update_interval,
        }
        fields.update(
            {k: v for k, v in optional.items() if include_empty or v is not None}
        )

        if self.tags:
            fields["tags"] = list(self.tags)
        elif include_empty:
            fields["tags"] = None

        return fields

    @classmethod
    def from_record(cls, record: RecordInfo) -> "Feed":
        """从存储层记录构建 Feed."""
        f = record.fields

        def _flag(key: str, default: bool) -> bool:
            value = f.get(key)
            return default if value is None else bool(value)

        return cls(
            record_name=record.record_name,
            record_change_tag=record.record_change_tag,
            feed_url=f.get("feedURL") or "",
            title=f.get("title") or "",
            description=f.get("description"),
            category=f.get("category"),
            image_url=f.get("imageURL"),
            site_url=f.get("siteURL"),
            language=f.get("language"),
            tags=tuple(f.get("tags") or ()),
            is_featured=_flag("isFeatured", False),
            is_verified=_flag("isVerified", False),
            is_active=_flag("isActive", True),
            quality_score=int(f.get("qualityScore", 50)),
            subscriber_count=int(f.get("subscriberCount", 0)),
            etag=f.get("etag"),
            last_modified=f.get("lastModified"),
            min_update_interval=f.get("minUpdateInterval"),
            update_frequency=f.get("updateFrequency"),
            last_verified=f.get("verifiedTimestamp"),
            last_attempted=f.get("attemptedTimestamp"),
            total_attempts=int(f.get("totalAttempts", 0)),
            successful_attempts=int(f.get("successfulAttempts", 0)),
            failure_count=int(f.get("failureCount", 0)),
            last_failure_reason=f.get("lastFailureReason"),
        )
