"""单个 Feed 的更新流程."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from urllib.parse import urlparse

from feedsync.core.articles import ArticleService
from feedsync.core.categorizer import categorize_articles
from feedsync.core.feeds import FeedService
from feedsync.core.metadata import (
    FeedMetadataUpdate,
    apply_metadata,
    build_error_metadata,
    build_not_modified_metadata,
    build_success_metadata,
)
from feedsync.fetcher.client import FeedFetcher, Modified, NotModified
from feedsync.fetcher.rate_limiter import RateLimiter
from feedsync.fetcher.robots import RobotsComplianceGate
from feedsync.models.article import DEFAULT_TTL_DAYS
from feedsync.models.feed import Feed
from feedsync.store.base import RecordStore

logger = logging.getLogger(__name__)


class FeedUpdateStatus(str, Enum):
    """单个 Feed 的处理结果."""

    SUCCESS = "success"
    NOT_MODIFIED = "not_modified"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class FeedUpdateResult:
    """单个 Feed 的处理结果及文章统计."""

    status: FeedUpdateStatus
    feed_url: str
    articles_created: int = 0
    articles_updated: int = 0
    articles_failed: int = 0
    articles_skipped: int = 0
    error: str | None = None


def is_valid_feed_url(url: str) -> bool:
    """只接受带主机名的 http(s) URL."""
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class FeedUpdateProcessor:
    """
    按以下顺序处理一个 Feed:

    robots 检查 → 限速等待 → 条件抓取 → 文章分类与写入 → Feed 元数据写入

    抓取、分类或文章写入中的任何异常都进入失败分支：
    记录错误元数据并尽力写回，结果为 ERROR。
    """

    def __init__(
        self,
        store: RecordStore,
        fetcher: FeedFetcher,
        robots: RobotsComplianceGate,
        rate_limiter: RateLimiter,
        *,
        skip_robots_check: bool = False,
        ttl_days: int = DEFAULT_TTL_DAYS,
    ) -> None:
        self.fetcher = fetcher
        self.robots = robots
        self.rate_limiter = rate_limiter
        self.skip_robots_check = skip_robots_check
        self.ttl_days = ttl_days
        self.articles = ArticleService(store)
        self.feeds = FeedService(store)

    async def process(self, feed: Feed) -> FeedUpdateResult:
        """处理一个 Feed 并返回结果."""
        url = feed.feed_url

        # 结构性错误：不发请求，不改计数
        if not feed.record_name:
            logger.error(f"Feed 缺少记录 ID: {url}")
            return FeedUpdateResult(FeedUpdateStatus.ERROR, url, error="Feed 缺少记录 ID")
        if not is_valid_feed_url(url):
            logger.error(f"无效的 Feed URL: {url!r}")
            return FeedUpdateResult(FeedUpdateStatus.ERROR, url, error="无效的 Feed URL")

        if not self.skip_robots_check:
            verdict = await self.robots.check(url)
            if verdict.error:
                logger.warning(f"robots.txt 获取失败，按允许处理: {url} ({verdict.error})")
            if not verdict.allowed:
                logger.info(f"robots.txt 禁止抓取，跳过: {url}")
                return FeedUpdateResult(FeedUpdateStatus.SKIPPED, url)

        await self.rate_limiter.wait_if_needed(url)

        total_attempts = feed.total_attempts + 1
        attempted_at = datetime.now(UTC)

        try:
            outcome = await self.fetcher.fetch(url, feed.etag, feed.last_modified)

            if isinstance(outcome, NotModified):
                logger.info(f"未修改 (304): {url}")
                metadata = build_not_modified_metadata(feed, outcome, total_attempts)
                result = FeedUpdateResult(FeedUpdateStatus.NOT_MODIFIED, url)
            else:
                result = await self._store_articles(feed, outcome)
                metadata = build_success_metadata(feed, outcome, total_attempts)

        except Exception as e:
            logger.error(f"Feed 更新失败: {url}: {e}")
            metadata = build_error_metadata(feed, total_attempts, str(e))
            await self._save_metadata(feed, metadata, attempted_at)
            return FeedUpdateResult(FeedUpdateStatus.ERROR, url, error=str(e))

        await self._save_metadata(feed, metadata, attempted_at)
        return result

    async def _store_articles(self, feed: Feed, fetched: Modified) -> FeedUpdateResult:
        """比对并写入文章."""
        feed_record_name = feed.record_name or ""
        guids = [item.guid for item in fetched.items]

        existing = await self.articles.query_by_guids(guids, feed_record_name)
        categorized = categorize_articles(
            fetched.items,
            existing,
            feed_record_name,
            ttl_days=self.ttl_days,
        )
        logger.info(
            f"{feed.feed_url}: {len(fetched.items)} 个条目, "
            f"新增 {len(categorized.new)}, 修改 {len(categorized.modified)}"
        )

        created = await self.articles.create_articles(categorized.new)
        updated, skipped = await self.articles.update_articles(categorized.modified)

        return FeedUpdateResult(
            FeedUpdateStatus.SUCCESS,
            feed.feed_url,
            articles_created=created.success_count,
            articles_updated=updated.success_count,
            articles_failed=created.failure_count + updated.failure_count,
            articles_skipped=skipped,
        )

    async def _save_metadata(
        self, feed: Feed, metadata: FeedMetadataUpdate, attempted_at: datetime
    ) -> None:
        """写回 Feed 元数据；失败只记录日志，不影响处理结果."""
        try:
            await self.feeds.update_feed(apply_metadata(feed, metadata, attempted_at))
        except Exception:
            logger.exception(f"Feed 元数据写入失败: {feed.feed_url}")
