"""Feed 更新任务 API."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from feedsync.api.deps import get_update_service
from feedsync.core.history import (
    UpdateAlreadyRunningError,
    list_runs,
    run_with_history,
)
from feedsync.core.update import UpdateCriteria, UpdateService
from feedsync.models.database import get_session

router = APIRouter(prefix="/api/update", tags=["update"])


@router.post("")
async def trigger_update(
    last_attempted_before: datetime | None = Query(None, description="只更新在此时间前尝试过的 Feed"),
    min_popularity: int | None = Query(None, ge=0, description="最小订阅数"),
    max_failures: int | None = Query(None, ge=0, description="最大连续失败次数"),
    limit: int = Query(100, ge=1, le=200, description="最多处理的 Feed 数"),
    delay: float | None = Query(None, ge=0, description="同一源站请求间隔（秒）"),
    skip_robots_check: bool = Query(False, description="跳过 robots.txt 检查"),
    service: UpdateService = Depends(get_update_service),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """执行一次更新任务."""
    criteria = UpdateCriteria(
        last_attempted_before=last_attempted_before,
        min_popularity=min_popularity,
        max_failures=max_failures,
        limit=limit,
        delay=delay,
        skip_robots_check=skip_robots_check,
    )
    try:
        run, summary = await run_with_history(
            session, service, criteria, trigger="manual"
        )
    except UpdateAlreadyRunningError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    return {"run_id": run.id, **summary.to_dict()}


@router.get("/runs")
async def get_update_runs(
    limit: int = Query(20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """获取最近的更新任务记录."""
    runs = await list_runs(session, limit)

    return {
        "items": [
            {
                "id": r.id,
                "trigger": r.trigger,
                "status": r.status,
                "total_feeds": r.total_feeds,
                "success": r.success_count,
                "not_modified": r.not_modified_count,
                "skipped": r.skipped_count,
                "errors": r.error_count,
                "articles_created": r.articles_created,
                "articles_updated": r.articles_updated,
                "error_message": r.error_message,
                "started_at": r.started_at.isoformat(),
                "completed_at": r.completed_at.isoformat() if r.completed_at else None,
            }
            for r in runs
        ]
    }
