"""文章分类：新增 / 修改 / 未变化."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from feedsync.models.article import DEFAULT_TTL_DAYS, Article, FeedItem


@dataclass(frozen=True)
class CategorizationResult:
    """分类结果；未变化的文章不出现在任何列表中."""

    new: list[Article] = field(default_factory=list)
    modified: list[Article] = field(default_factory=list)


def categorize_articles(
    items: Iterable[FeedItem],
    existing_articles: Iterable[Article],
    feed_record_name: str,
    *,
    fetched_at: datetime | None = None,
    ttl_days: int = DEFAULT_TTL_DAYS,
) -> CategorizationResult:
    """
    将抓取到的条目与已存储文章比对.

    - GUID 不存在：新增
    - GUID 存在且内容哈希相同：丢弃
    - GUID 存在但内容哈希不同：修改，沿用已存储文章的记录 ID 和并发控制标记

    同一批内重复的 GUID 各自独立判断，不做去重。

    Args:
        items: 本次抓取的条目
        existing_articles: 该 Feed 已存储的文章
        feed_record_name: Feed 的记录 ID
        fetched_at: 抓取时间
        ttl_days: 文章保留天数

    Returns:
        CategorizationResult，顺序与输入一致
    """
    existing_by_guid = {article.guid: article for article in existing_articles}

    new: list[Article] = []
    modified: list[Article] = []

    for item in items:
        candidate = Article.from_feed_item(
            item, feed_record_name, fetched_at=fetched_at, ttl_days=ttl_days
        )
        existing = existing_by_guid.get(candidate.guid)

        if existing is None:
            new.append(candidate)
        elif existing.content_hash != candidate.content_hash:
            modified.append(
                candidate.model_copy(
                    update={
                        "record_name": existing.record_name,
                        "record_change_tag": existing.record_change_tag,
                    }
                )
            )

    return CategorizationResult(new=new, modified=modified)
