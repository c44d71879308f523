"""文章存储服务."""

import logging
import uuid
from collections.abc import Sequence

from feedsync.core.batch import (
    ARTICLE_BATCH_SIZE,
    DELETE_PAGE_SIZE,
    GUID_QUERY_BATCH_SIZE,
    BatchOperationResult,
    BatchWriter,
    chunked,
)
from feedsync.models.article import ARTICLE_RECORD_TYPE, Article
from feedsync.models.records import QueryFilter, RecordInfo, RecordOperation
from feedsync.store.base import MAX_QUERY_LIMIT, RecordStore

logger = logging.getLogger(__name__)


async def delete_all_records(store: RecordStore, record_type: str) -> int:
    """分页删除某类型的全部记录，返回删除数量."""
    deleted = 0
    while True:
        page = await store.query(
            record_type, limit=DELETE_PAGE_SIZE, desired_keys=["___recordID"]
        )
        if not page:
            break

        operations = [
            RecordOperation.delete(record_type, r.record_name, r.record_change_tag)
            for r in page
        ]
        await store.modify(operations)
        deleted += len(page)
        logger.info(f"已删除 {deleted} 条 {record_type} 记录")

        if len(page) < DELETE_PAGE_SIZE:
            break

    return deleted


class ArticleService:
    """Article 记录的查询与批量写入."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def query_by_guids(
        self, guids: Sequence[str], feed_record_name: str | None = None
    ) -> list[Article]:
        """
        按 GUID 查询已存储文章.

        GUID 按 150 个一组分批查询；提供 feed_record_name 时只查该 Feed 的文章。
        无法解析的记录会被跳过。
        """
        if not guids:
            return []

        articles: list[Article] = []
        for batch in chunked(list(guids), GUID_QUERY_BATCH_SIZE):
            filters = [QueryFilter.in_("guid", batch)]
            if feed_record_name:
                filters.insert(0, QueryFilter.equals("feedRecordName", feed_record_name))

            records = await self.store.query(
                ARTICLE_RECORD_TYPE, filters=filters, limit=MAX_QUERY_LIMIT
            )
            for record in records:
                try:
                    articles.append(Article.from_record(record))
                except (ValueError, TypeError) as e:
                    logger.warning(f"跳过无法解析的文章记录 {record.record_name}: {e}")

        return articles

    async def create_articles(
        self, articles: Sequence[Article]
    ) -> BatchOperationResult[Article]:
        """分批创建文章，记录 ID 由 UUID 生成."""
        if not articles:
            return BatchOperationResult()

        logger.info(f"创建 {len(articles)} 篇文章")

        async def _create(batch: list[Article]) -> list[RecordInfo]:
            operations = [
                RecordOperation.create(
                    ARTICLE_RECORD_TYPE, str(uuid.uuid4()), article.to_fields()
                )
                for article in batch
            ]
            return await self.store.modify(operations)

        return await BatchWriter.execute(
            articles, ARTICLE_BATCH_SIZE, _create, label="文章"
        )

    async def update_articles(
        self, articles: Sequence[Article]
    ) -> tuple[BatchOperationResult[Article], int]:
        """
        分批更新文章.

        没有记录 ID 的文章无法更新，直接跳过。

        Returns:
            (批量结果, 跳过数量)
        """
        updatable = [a for a in articles if a.record_name]
        skipped = len(articles) - len(updatable)
        if skipped:
            logger.warning(f"跳过 {skipped} 篇没有记录 ID 的文章")

        if not updatable:
            return BatchOperationResult(), skipped

        logger.info(f"更新 {len(updatable)} 篇文章")

        async def _update(batch: list[Article]) -> list[RecordInfo]:
            operations = [
                RecordOperation.update(
                    ARTICLE_RECORD_TYPE,
                    article.record_name or "",
                    article.to_fields(include_empty=True),
                    article.record_change_tag,
                )
                for article in batch
            ]
            return await self.store.modify(operations)

        result = await BatchWriter.execute(
            updatable, ARTICLE_BATCH_SIZE, _update, label="文章"
        )
        return result, skipped

    async def delete_all(self) -> int:
        """删除全部文章."""
        return await delete_all_records(self.store, ARTICLE_RECORD_TYPE)
