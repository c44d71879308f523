"""数据模型."""

from feedsync.models.article import Article, FeedItem
from feedsync.models.database import get_session, init_db
from feedsync.models.feed import Feed
from feedsync.models.records import QueryFilter, QuerySort, RecordInfo, RecordOperation
from feedsync.models.run import UpdateRun

__all__ = [
    "Article",
    "Feed",
    "FeedItem",
    "QueryFilter",
    "QuerySort",
    "RecordInfo",
    "RecordOperation",
    "UpdateRun",
    "get_session",
    "init_db",
]
