"""带条件请求的 Feed 抓取客户端."""

import calendar
import logging
from datetime import UTC, datetime
from typing import Any

import feedparser
import httpx
from pydantic import BaseModel

from feedsync.models.article import FeedItem

logger = logging.getLogger(__name__)

# sy:updatePeriod 对应的秒数
_UPDATE_PERIOD_SECONDS = {
    "hourly": 3600,
    "daily": 86400,
    "weekly": 604800,
    "monthly": 2592000,
    "yearly": 31536000,
}


class FeedFetchError(Exception):
    """Feed 抓取或解析失败."""


class Modified(BaseModel):
    """内容有更新."""

    items: list[FeedItem]
    title: str
    description: str | None = None
    min_update_interval: float | None = None
    etag: str | None = None
    last_modified: str | None = None


class NotModified(BaseModel):
    """内容未变化（HTTP 304）."""

    etag: str | None = None
    last_modified: str | None = None


FetchOutcome = Modified | NotModified


def _to_datetime(parsed: Any) -> datetime | None:
    if not parsed:
        return None
    return datetime.fromtimestamp(calendar.timegm(parsed), tz=UTC)


def _min_update_interval(feed: Any) -> float | None:
    """从 <ttl>（分钟）或 sy:updatePeriod / sy:updateFrequency 推算最小更新间隔（秒）."""
    ttl = feed.get("ttl")
    if ttl:
        try:
            return float(ttl) * 60
        except ValueError:
            logger.debug(f"无法解析 ttl: {ttl}")

    period = (feed.get("sy_updateperiod") or "").strip().lower()
    if period in _UPDATE_PERIOD_SECONDS:
        try:
            frequency = max(1, int(feed.get("sy_updatefrequency") or 1))
        except ValueError:
            frequency = 1
        return _UPDATE_PERIOD_SECONDS[period] / frequency

    return None


def _entry_image(entry: Any) -> str | None:
    for key in ("media_thumbnail", "media_content"):
        media = entry.get(key) or []
        if media and media[0].get("url"):
            return media[0]["url"]
    for enclosure in entry.get("enclosures", []):
        if str(enclosure.get("type", "")).startswith("image/") and enclosure.get("href"):
            return enclosure["href"]
    return None


def parse_entry(entry: Any) -> FeedItem | None:
    """将 feedparser 条目转换为 FeedItem；没有任何可用标识时返回 None."""
    link = entry.get("link") or ""
    title = entry.get("title") or ""
    guid = entry.get("id") or link or title
    if not guid:
        return None

    content = None
    if entry.get("content"):
        content = entry["content"][0].get("value")

    tags = tuple(t["term"] for t in entry.get("tags", []) if t.get("term"))

    return FeedItem(
        guid=guid,
        title=title,
        link=link,
        description=entry.get("summary"),
        content=content,
        author=entry.get("author"),
        pub_date=_to_datetime(entry.get("published_parsed") or entry.get("updated_parsed")),
        image_url=_entry_image(entry),
        tags=tags,
    )


def parse_feed(body: bytes, etag: str | None, last_modified: str | None) -> Modified:
    """解析 Feed 内容."""
    parsed = feedparser.parse(body)
    if parsed.bozo and not parsed.entries and not parsed.feed.get("title"):
        msg = f"无法解析 Feed: {parsed.get('bozo_exception')}"
        raise FeedFetchError(msg)

    items: list[FeedItem] = []
    for entry in parsed.entries:
        item = parse_entry(entry)
        if item is None:
            logger.debug("跳过没有标识的条目")
            continue
        items.append(item)

    return Modified(
        items=items,
        title=parsed.feed.get("title") or "",
        description=parsed.feed.get("subtitle") or parsed.feed.get("description"),
        min_update_interval=_min_update_interval(parsed.feed),
        etag=etag,
        last_modified=last_modified,
    )


class FeedFetcher:
    """发送条件 GET 请求并解析 Feed."""

    def __init__(self, client: httpx.AsyncClient, user_agent: str) -> None:
        self.client = client
        self.user_agent = user_agent

    async def fetch(
        self,
        url: str,
        etag: str | None = None,
        last_modified: str | None = None,
    ) -> FetchOutcome:
        """
        抓取 Feed.

        Args:
            url: Feed 地址
            etag: 上次响应的 ETag
            last_modified: 上次响应的 Last-Modified

        Returns:
            Modified 或 NotModified

        Raises:
            FeedFetchError: 网络错误、非 2xx/304 状态或内容无法解析
        """
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8",
        }
        if etag:
            headers["If-None-Match"] = etag
        if last_modified:
            headers["If-Modified-Since"] = last_modified

        try:
            response = await self.client.get(url, headers=headers, follow_redirects=True)
        except httpx.HTTPError as e:
            msg = f"请求失败: {e}"
            raise FeedFetchError(msg) from e

        new_etag = response.headers.get("ETag")
        new_last_modified = response.headers.get("Last-Modified")

        if response.status_code == 304:
            return NotModified(etag=new_etag, last_modified=new_last_modified)

        if not response.is_success:
            msg = f"HTTP {response.status_code}: {response.reason_phrase}"
            raise FeedFetchError(msg)

        return parse_feed(response.content, new_etag, new_last_modified)
