"""Feed 更新任务：按条件选出 Feed 并逐个处理."""

import logging
from dataclasses import dataclass
from datetime import datetime

import httpx

from feedsync.config import Settings, get_settings
from feedsync.core.articles import ArticleService
from feedsync.core.feeds import FeedService
from feedsync.core.processor import (
    FeedUpdateProcessor,
    FeedUpdateResult,
    FeedUpdateStatus,
    is_valid_feed_url,
)
from feedsync.fetcher.client import FeedFetcher, NotModified
from feedsync.fetcher.rate_limiter import RateLimiter
from feedsync.fetcher.robots import RobotsComplianceGate
from feedsync.models.feed import Feed
from feedsync.store.base import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class UpdateCriteria:
    """一次更新任务的筛选条件."""

    last_attempted_before: datetime | None = None
    min_popularity: int | None = None
    max_failures: int | None = None
    limit: int = 100
    delay: float | None = None
    skip_robots_check: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "UpdateCriteria":
        return cls(
            last_attempted_before=settings.update_last_attempted_before,
            min_popularity=settings.update_min_popularity,
            max_failures=settings.update_max_failures,
            limit=settings.update_limit,
            delay=settings.update_delay,
            skip_robots_check=settings.update_skip_robots_check,
        )


@dataclass
class UpdateSummary:
    """一次更新任务的汇总."""

    total: int = 0
    success: int = 0
    not_modified: int = 0
    skipped: int = 0
    errors: int = 0
    articles_created: int = 0
    articles_updated: int = 0

    @property
    def failed(self) -> bool:
        """至少一个 Feed 处理失败."""
        return self.errors > 0

    def add(self, result: FeedUpdateResult) -> None:
        self.total += 1
        self.articles_created += result.articles_created
        self.articles_updated += result.articles_updated
        if result.status is FeedUpdateStatus.SUCCESS:
            self.success += 1
        elif result.status is FeedUpdateStatus.NOT_MODIFIED:
            self.not_modified += 1
        elif result.status is FeedUpdateStatus.SKIPPED:
            self.skipped += 1
        else:
            self.errors += 1

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "success": self.success,
            "not_modified": self.not_modified,
            "skipped": self.skipped,
            "errors": self.errors,
            "articles_created": self.articles_created,
            "articles_updated": self.articles_updated,
            "failed": self.failed,
        }


class UpdateService:
    """执行一次完整的 Feed 更新任务."""

    def __init__(
        self,
        store: RecordStore,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.transport = transport
        self.feeds = FeedService(store)

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.fetch_timeout_seconds,
            headers={"User-Agent": self.settings.user_agent},
            transport=self.transport,
        )

    async def select_feeds(self, criteria: UpdateCriteria) -> list[Feed]:
        """查询符合条件的 Feed，再按连续失败次数过滤."""
        feeds = await self.feeds.query_feeds(
            last_attempted_before=criteria.last_attempted_before,
            min_popularity=criteria.min_popularity,
            limit=criteria.limit,
        )
        if criteria.max_failures is not None:
            feeds = [f for f in feeds if f.failure_count <= criteria.max_failures]
        return feeds

    async def run(self, criteria: UpdateCriteria | None = None) -> UpdateSummary:
        """
        按顺序处理所有符合条件的 Feed.

        单个 Feed 失败不会中断任务；所有请求共用一个 HTTP 客户端，任务结束时关闭。
        """
        criteria = criteria or UpdateCriteria.from_settings(self.settings)
        delay = criteria.delay if criteria.delay is not None else self.settings.update_delay

        feeds = await self.select_feeds(criteria)
        summary = UpdateSummary()
        logger.info(f"开始更新任务，共 {len(feeds)} 个 Feed（间隔 {delay}s）")

        async with self._http_client() as client:
            processor = FeedUpdateProcessor(
                self.store,
                FeedFetcher(client, self.settings.user_agent),
                RobotsComplianceGate(client, self.settings.robots_user_agent),
                RateLimiter(min_delay=delay),
                skip_robots_check=criteria.skip_robots_check,
                ttl_days=self.settings.article_ttl_days,
            )

            for index, feed in enumerate(feeds, 1):
                logger.info(f"[{index}/{len(feeds)}] {feed.title or feed.feed_url}")
                result = await processor.process(feed)
                summary.add(result)

        logger.info(
            f"更新任务完成: 成功={summary.success}, 未修改={summary.not_modified}, "
            f"跳过={summary.skipped}, 失败={summary.errors}, "
            f"新文章={summary.articles_created}, 更新文章={summary.articles_updated}"
        )
        return summary

    async def add_feed(self, url: str) -> Feed:
        """
        抓取一次以验证 Feed，然后创建 Feed 记录.

        Raises:
            ValueError: URL 无效或首次抓取返回 304
            FeedFetchError: 抓取失败
        """
        if not is_valid_feed_url(url):
            msg = f"无效的 Feed URL: {url!r}"
            raise ValueError(msg)

        async with self._http_client() as client:
            outcome = await FeedFetcher(client, self.settings.user_agent).fetch(url)

        if isinstance(outcome, NotModified):
            msg = f"首次抓取返回 304，无法获取 Feed 信息: {url}"
            raise ValueError(msg)

        feed = await self.feeds.create_feed(
            Feed(
                feed_url=url,
                title=outcome.title,
                description=outcome.description,
                etag=outcome.etag,
                last_modified=outcome.last_modified,
                min_update_interval=outcome.min_update_interval,
            )
        )
        logger.info(f"已添加 Feed: {feed.title or url} ({feed.record_name})")
        return feed

    async def clear_all(self) -> tuple[int, int]:
        """删除全部文章，再删除全部 Feed；返回 (文章数, Feed 数)."""
        articles = await ArticleService(self.store).delete_all()
        feeds = await self.feeds.delete_all()
        logger.info(f"已清空: 文章 {articles} 篇, Feed {feeds} 个")
        return articles, feeds
