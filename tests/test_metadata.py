"""测试 Feed 元数据构建."""

from datetime import UTC, datetime

from feedsync.core.metadata import (
    apply_metadata,
    build_error_metadata,
    build_not_modified_metadata,
    build_success_metadata,
)
from feedsync.fetcher.client import Modified, NotModified
from feedsync.models.feed import Feed


def prior_feed(**overrides) -> Feed:
    values = {
        "record_name": "feed-1",
        "feed_url": "https://example.com/feed.xml",
        "title": "A",
        "description": "old description",
        "etag": "old",
        "last_modified": "Mon, 01 Jan 2024 00:00:00 GMT",
        "min_update_interval": 600.0,
        "total_attempts": 10,
        "successful_attempts": 8,
        "failure_count": 2,
        "last_failure_reason": "HTTP 500",
    }
    values.update(overrides)
    return Feed(**values)


class TestSuccessMetadata:
    """测试成功分支."""

    def test_counters(self) -> None:
        """成功数 +1，连续失败清零，总尝试数取调用方的值."""
        metadata = build_success_metadata(
            prior_feed(), Modified(items=[], title="New"), total_attempts=11
        )

        assert metadata.successful_attempts == 9
        assert metadata.failure_count == 0
        assert metadata.total_attempts == 11

    def test_content_from_fetch(self) -> None:
        """标题、描述、更新间隔取自新内容."""
        fetched = Modified(
            items=[], title="New", description="new description", min_update_interval=60
        )
        metadata = build_success_metadata(prior_feed(), fetched, total_attempts=11)

        assert metadata.title == "New"
        assert metadata.description == "new description"
        assert metadata.min_update_interval == 60

    def test_validators_fall_back_to_prior(self) -> None:
        """响应没有校验值时沿用原值."""
        metadata = build_success_metadata(
            prior_feed(), Modified(items=[], title="New", etag="fresh"), total_attempts=11
        )

        assert metadata.etag == "fresh"
        assert metadata.last_modified == "Mon, 01 Jan 2024 00:00:00 GMT"

    def test_keeps_last_failure_reason(self) -> None:
        """成功不清除上次失败原因."""
        metadata = build_success_metadata(
            prior_feed(), Modified(items=[], title="New"), total_attempts=11
        )
        assert metadata.last_failure_reason == "HTTP 500"


class TestNotModifiedMetadata:
    """测试 304 分支."""

    def test_preserves_content_and_refreshes_validators(self) -> None:
        """标题保留、etag 刷新、缺失的 Last-Modified 沿用原值."""
        metadata = build_not_modified_metadata(
            prior_feed(), NotModified(etag="new"), total_attempts=11
        )

        assert metadata.title == "A"
        assert metadata.description == "old description"
        assert metadata.min_update_interval == 600.0
        assert metadata.etag == "new"
        assert metadata.last_modified == "Mon, 01 Jan 2024 00:00:00 GMT"

    def test_counts_as_success(self) -> None:
        """304 计为成功."""
        metadata = build_not_modified_metadata(
            prior_feed(), NotModified(), total_attempts=11
        )

        assert metadata.successful_attempts == 9
        assert metadata.failure_count == 0
        assert metadata.etag == "old"


class TestErrorMetadata:
    """测试失败分支."""

    def test_counters_and_content_unchanged(self) -> None:
        """成功数不变、连续失败 +1，其余字段全部保留."""
        prior = prior_feed()
        metadata = build_error_metadata(prior, total_attempts=11)

        assert metadata.successful_attempts == 8
        assert metadata.failure_count == 3
        assert metadata.total_attempts == 11
        assert metadata.title == prior.title
        assert metadata.description == prior.description
        assert metadata.etag == prior.etag
        assert metadata.last_modified == prior.last_modified
        assert metadata.min_update_interval == prior.min_update_interval

    def test_records_reason(self) -> None:
        """记录本次失败原因."""
        metadata = build_error_metadata(prior_feed(), 11, reason="timeout")
        assert metadata.last_failure_reason == "timeout"


class TestCounterInvariants:
    """测试多次更新后的计数不变量."""

    def test_outcome_sequence(self) -> None:
        """总尝试数逐次 +1，成功后连续失败为 0."""
        feed = prior_feed(total_attempts=0, successful_attempts=0, failure_count=0)
        sequence = ["error", "error", "success", "not_modified", "error", "success"]

        for outcome in sequence:
            total = feed.total_attempts + 1
            if outcome == "success":
                metadata = build_success_metadata(feed, Modified(items=[], title="T"), total)
            elif outcome == "not_modified":
                metadata = build_not_modified_metadata(feed, NotModified(), total)
            else:
                metadata = build_error_metadata(feed, total, "boom")
            feed = apply_metadata(feed, metadata)

            if outcome == "error":
                assert feed.failure_count > 0
            else:
                assert feed.failure_count == 0

        assert feed.total_attempts == len(sequence)
        assert feed.successful_attempts == 3
        assert feed.total_attempts >= feed.successful_attempts + feed.failure_count


class TestApplyMetadata:
    """测试 apply_metadata."""

    def test_returns_new_feed(self) -> None:
        """返回新对象并设置最后尝试时间，原对象不变."""
        prior = prior_feed()
        attempted_at = datetime(2025, 1, 1, tzinfo=UTC)
        metadata = build_error_metadata(prior, 11, "boom")

        updated = apply_metadata(prior, metadata, attempted_at)

        assert updated is not prior
        assert updated.failure_count == 3
        assert updated.last_attempted == attempted_at
        assert updated.record_name == prior.record_name
        assert prior.failure_count == 2
