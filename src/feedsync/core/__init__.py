"""核心业务逻辑模块."""

from feedsync.core.articles import ArticleService
from feedsync.core.batch import BatchOperationResult, BatchWriter
from feedsync.core.categorizer import CategorizationResult, categorize_articles
from feedsync.core.feeds import FeedService
from feedsync.core.metadata import (
    FeedMetadataUpdate,
    apply_metadata,
    build_error_metadata,
    build_not_modified_metadata,
    build_success_metadata,
)
from feedsync.core.processor import (
    FeedUpdateProcessor,
    FeedUpdateResult,
    FeedUpdateStatus,
)
from feedsync.core.update import UpdateCriteria, UpdateService, UpdateSummary

__all__ = [
    "ArticleService",
    "BatchOperationResult",
    "BatchWriter",
    "CategorizationResult",
    "FeedMetadataUpdate",
    "FeedService",
    "FeedUpdateProcessor",
    "FeedUpdateResult",
    "FeedUpdateStatus",
    "UpdateCriteria",
    "UpdateService",
    "UpdateSummary",
    "apply_metadata",
    "build_error_metadata",
    "build_not_modified_metadata",
    "build_success_metadata",
    "categorize_articles",
]
