"""Feed 订阅源 API."""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from feedsync.api.deps import get_update_service
from feedsync.core.update import UpdateService
from feedsync.fetcher.client import FeedFetchError
from feedsync.models.feed import Feed
from feedsync.store.base import RecordStoreError

router = APIRouter(prefix="/api/feeds", tags=["feeds"])


class AddFeedRequest(BaseModel):
    """添加 Feed 请求."""

    url: str


def _feed_to_dict(feed: Feed) -> dict:
    return {
        "record_name": feed.record_name,
        "feed_url": feed.feed_url,
        "title": feed.title,
        "description": feed.description,
        "subscriber_count": feed.subscriber_count,
        "total_attempts": feed.total_attempts,
        "successful_attempts": feed.successful_attempts,
        "failure_count": feed.failure_count,
        "last_failure_reason": feed.last_failure_reason,
        "last_attempted": feed.last_attempted.isoformat() if feed.last_attempted else None,
    }


@router.get("")
async def list_feeds(
    limit: int = Query(100, ge=1, le=200),
    service: UpdateService = Depends(get_update_service),
) -> dict:
    """获取订阅列表."""
    feeds = await service.feeds.query_feeds(limit=limit)
    return {
        "total": len(feeds),
        "items": [_feed_to_dict(f) for f in feeds],
    }


@router.post("", status_code=201)
async def add_feed(
    request: AddFeedRequest,
    service: UpdateService = Depends(get_update_service),
) -> dict:
    """添加 Feed：先抓取一次验证，再创建记录."""
    try:
        feed = await service.add_feed(request.url)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FeedFetchError as e:
        raise HTTPException(status_code=502, detail=f"Feed 抓取失败: {e}") from e
    except RecordStoreError as e:
        raise HTTPException(status_code=502, detail=f"记录存储错误: {e}") from e

    return _feed_to_dict(feed)


@router.delete("")
async def clear_feeds(
    confirm: bool = Query(False, description="必须为 true 才会执行"),
    service: UpdateService = Depends(get_update_service),
) -> dict:
    """删除全部文章和 Feed."""
    if not confirm:
        raise HTTPException(status_code=400, detail="需要 confirm=true 才能清空")

    articles, feeds = await service.clear_all()
    return {"articles_deleted": articles, "feeds_deleted": feeds}
