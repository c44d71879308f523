"""Feed 抓取模块."""

from feedsync.fetcher.client import (
    FeedFetcher,
    FeedFetchError,
    FetchOutcome,
    Modified,
    NotModified,
)
from feedsync.fetcher.rate_limiter import RateLimiter, origin_of
from feedsync.fetcher.robots import RobotsComplianceGate, RobotsVerdict

__all__ = [
    "FeedFetchError",
    "FeedFetcher",
    "FetchOutcome",
    "Modified",
    "NotModified",
    "RateLimiter",
    "RobotsComplianceGate",
    "RobotsVerdict",
    "origin_of",
]
