"""Feed 元数据构建：根据抓取结果计算下一份 Feed 状态."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict

from feedsync.fetcher.client import Modified, NotModified
from feedsync.models.feed import Feed


class FeedMetadataUpdate(BaseModel):
    """一次抓取后 Feed 的可更新字段."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str | None = None
    etag: str | None = None
    last_modified: str | None = None
    min_update_interval: float | None = None
    total_attempts: int
    successful_attempts: int
    failure_count: int
    last_failure_reason: str | None = None


def build_success_metadata(
    feed: Feed, fetched: Modified, total_attempts: int
) -> FeedMetadataUpdate:
    """内容有更新：标题等取自新内容，成功数 +1，连续失败清零."""
    return FeedMetadataUpdate(
        title=fetched.title,
        description=fetched.description,
        etag=fetched.etag if fetched.etag is not None else feed.etag,
        last_modified=(
            fetched.last_modified
            if fetched.last_modified is not None
            else feed.last_modified
        ),
        min_update_interval=fetched.min_update_interval,
        total_attempts=total_attempts,
        successful_attempts=feed.successful_attempts + 1,
        failure_count=0,
        last_failure_reason=feed.last_failure_reason,
    )


def build_not_modified_metadata(
    feed: Feed, response: NotModified, total_attempts: int
) -> FeedMetadataUpdate:
    """304：保留原有内容字段，仅刷新缓存校验值，计为成功."""
    return FeedMetadataUpdate(
        title=feed.title,
        description=feed.description,
        etag=response.etag if response.etag is not None else feed.etag,
        last_modified=(
            response.last_modified
            if response.last_modified is not None
            else feed.last_modified
        ),
        min_update_interval=feed.min_update_interval,
        total_attempts=total_attempts,
        successful_attempts=feed.successful_attempts + 1,
        failure_count=0,
        last_failure_reason=feed.last_failure_reason,
    )


def build_error_metadata(
    feed: Feed, total_attempts: int, reason: str | None = None
) -> FeedMetadataUpdate:
    """失败：除计数外全部保留，连续失败 +1."""
    return FeedMetadataUpdate(
        title=feed.title,
        description=feed.description,
        etag=feed.etag,
        last_modified=feed.last_modified,
        min_update_interval=feed.min_update_interval,
        total_attempts=total_attempts,
        successful_attempts=feed.successful_attempts,
        failure_count=feed.failure_count + 1,
        last_failure_reason=reason if reason is not None else feed.last_failure_reason,
    )


def apply_metadata(
    feed: Feed, metadata: FeedMetadataUpdate, attempted_at: datetime | None = None
) -> Feed:
    """返回应用了元数据的新 Feed（原对象不变）."""
    return feed.model_copy(
        update={
            **metadata.model_dump(),
            "last_attempted": attempted_at or datetime.now(UTC),
        }
    )
