"""Feed 存储服务."""

import logging
import uuid
from datetime import datetime

from feedsync.core.articles import delete_all_records
from feedsync.models.feed import FEED_RECORD_TYPE, Feed
from feedsync.models.records import QueryFilter, QuerySort
from feedsync.store.base import MAX_QUERY_LIMIT, RecordStore, RecordStoreError

logger = logging.getLogger(__name__)


class FeedService:
    """Feed 记录的查询与写入."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def query_feeds(
        self,
        last_attempted_before: datetime | None = None,
        min_popularity: int | None = None,
        limit: int = 100,
    ) -> list[Feed]:
        """
        查询待更新的 Feed，按 feedURL 升序.

        Args:
            last_attempted_before: 只返回在此时间之前尝试过的 Feed
            min_popularity: 最小订阅数
            limit: 最大返回数量
        """
        filters: list[QueryFilter] = []
        if last_attempted_before is not None:
            filters.append(
                QueryFilter.less_than("attemptedTimestamp", last_attempted_before)
            )
        if min_popularity is not None:
            filters.append(
                QueryFilter.greater_than_or_equals("subscriberCount", min_popularity)
            )

        records = await self.store.query(
            FEED_RECORD_TYPE,
            filters=filters or None,
            sort_by=[QuerySort.asc("feedURL")],
            limit=min(limit, MAX_QUERY_LIMIT),
        )

        feeds: list[Feed] = []
        for record in records:
            try:
                feeds.append(Feed.from_record(record))
            except (ValueError, TypeError) as e:
                logger.warning(f"跳过无法解析的 Feed 记录 {record.record_name}: {e}")
        return feeds

    async def create_feed(self, feed: Feed) -> Feed:
        """创建 Feed 记录，返回带记录 ID 的 Feed."""
        record = await self.store.create(
            FEED_RECORD_TYPE, feed.record_name or str(uuid.uuid4()), feed.to_fields()
        )
        return Feed.from_record(record)

    async def update_feed(self, feed: Feed) -> Feed:
        """更新 Feed 记录，携带并发控制标记."""
        if not feed.record_name:
            msg = f"Feed 缺少记录 ID，无法更新: {feed.feed_url}"
            raise RecordStoreError(msg)

        record = await self.store.update(
            FEED_RECORD_TYPE,
            feed.record_name,
            feed.to_fields(include_empty=True),
            feed.record_change_tag,
        )
        return Feed.from_record(record)

    async def delete_all(self) -> int:
        """删除全部 Feed."""
        return await delete_all_records(self.store, FEED_RECORD_TYPE)
