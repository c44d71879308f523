"""Article 文章模型."""

import hashlib
import json
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from feedsync.models.records import RecordInfo
from feedsync.utils.html_parser import (
    count_words,
    estimate_reading_time,
    extract_first_image,
    html_to_text,
)

ARTICLE_RECORD_TYPE = "Article"
DEFAULT_TTL_DAYS = 30

# 参与内容哈希的字段
HASHED_FIELDS = ("title", "url", "excerpt", "content", "author")


class FeedItem(BaseModel):
    """Feed 中解析出的一个条目."""

    model_config = ConfigDict(frozen=True)

    guid: str
    title: str = ""
    link: str = ""
    description: str | None = None
    content: str | None = None
    author: str | None = None
    pub_date: datetime | None = None
    image_url: str | None = None
    tags: tuple[str, ...] = ()


class Article(BaseModel):
    """远程存储中的文章."""

    model_config = ConfigDict(frozen=True)

    record_name: str | None = Field(default=None, description="存储层记录 ID")
    record_change_tag: str | None = Field(default=None, description="并发控制标记")
    feed_record_name: str = Field(description="所属 Feed 的记录 ID")
    guid: str = Field(description="源站提供的稳定标识")
    title: str = ""
    url: str = ""
    excerpt: str | None = None
    content: str | None = Field(default=None, description="HTML 内容")
    content_text: str | None = Field(default=None, description="纯文本内容")
    author: str | None = None
    image_url: str | None = None
    language: str | None = None
    tags: tuple[str, ...] = ()
    published_date: datetime | None = None
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime | None = None
    word_count: int | None = None
    estimated_reading_time: int | None = Field(
        default=None, description="预估阅读时间（分钟）"
    )

    @property
    def content_hash(self) -> str:
        """语义字段的 SHA-256 摘要，与字段顺序无关."""
        payload = {name: getattr(self, name) for name in HASHED_FIELDS}
        canonical = json.dumps(
            payload, sort_keys=True, ensure_ascii=False, separators=(",", ":")
        )
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    @classmethod
    def from_feed_item(
        cls,
        item: FeedItem,
        feed_record_name: str,
        fetched_at: datetime | None = None,
        ttl_days: int = DEFAULT_TTL_DAYS,
    ) -> "Article":
        """根据 Feed 条目构建新文章（无记录 ID）."""
        fetched_at = fetched_at or datetime.now(UTC)
        html = item.content or item.description or ""
        text = html_to_text(html)

        return cls(
            feed_record_name=feed_record_name,
            guid=item.guid,
            title=item.title,
            url=item.link,
            excerpt=item.description,
            content=item.content,
            content_text=text or None,
            author=item.author,
            image_url=item.image_url or extract_first_image(html),
            tags=item.tags,
            published_date=item.pub_date,
            fetched_at=fetched_at,
            expires_at=fetched_at + timedelta(days=ttl_days),
            word_count=count_words(text) if text else None,
            estimated_reading_time=estimate_reading_time(text) if text else None,
        )

    def to_fields(self, include_empty: bool = False) -> dict[str, Any]:
        """
        转换为存储层字段字典.

        include_empty 为 True 时，空的可选字段以 None 写出，用于更新时清除旧值。
        """
        fields: dict[str, Any] = {
            "feedRecordName": self.feed_record_name,
            "guid": self.guid,
            "title": self.title,
            "url": self.url,
            "fetchedAt": self.fetched_at,
            "expiresAt": self.expires_at
            or self.fetched_at + timedelta(days=DEFAULT_TTL_DAYS),
            "contentHash": self.content_hash,
        }

        optional: dict[str, Any] = {
            "excerpt": self.excerpt,
            "content": self.content,
            "contentText": self.content_text,
            "author": self.author,
            "imageURL": self.image_url,
            "language": self.language,
            "publishedDate": self.published_date,
            "wordCount": self.word_count,
            "estimatedReadingTime": self.estimated_reading_time,
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
    def from_record(cls, record: RecordInfo) -> "Article":
        """从存储层记录构建文章."""
        f = record.fields
        fetched_at = f.get("fetchedAt") or datetime.now(UTC)

        # 由 fetchedAt / expiresAt 反推 TTL 天数
        stored_expiry = f.get("expiresAt")
        if stored_expiry is not None:
            ttl_days = max(1, int((stored_expiry - fetched_at).total_seconds() // 86400))
        else:
            ttl_days = DEFAULT_TTL_DAYS

        return cls(
            record_name=record.record_name,
            record_change_tag=record.record_change_tag,
            feed_record_name=f.get("feedRecordName") or "",
            guid=f.get("guid") or "",
            title=f.get("title") or "",
            url=f.get("url") or "",
            excerpt=f.get("excerpt"),
            content=f.get("content"),
            content_text=f.get("contentText"),
            author=f.get("author"),
            image_url=f.get("imageURL"),
            language=f.get("language"),
            tags=tuple(f.get("tags") or ()),
            published_date=f.get("publishedDate"),
            fetched_at=fetched_at,
            expires_at=fetched_at + timedelta(days=ttl_days),
            word_count=f.get("wordCount"),
            estimated_reading_time=f.get("estimatedReadingTime"),
        )
