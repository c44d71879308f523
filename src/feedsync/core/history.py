"""更新任务执行记录."""

import asyncio
import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from feedsync.core.update import UpdateCriteria, UpdateService, UpdateSummary
from feedsync.models.run import UpdateRun

logger = logging.getLogger(__name__)

# 同一进程内同时只允许一个更新任务
_update_lock = asyncio.Lock()


class UpdateAlreadyRunningError(RuntimeError):
    """已有更新任务在运行."""


def is_update_running() -> bool:
    """是否有更新任务正在执行."""
    return _update_lock.locked()


async def run_with_history(
    session: AsyncSession,
    service: UpdateService,
    criteria: UpdateCriteria | None = None,
    trigger: str = "manual",
) -> tuple[UpdateRun, UpdateSummary]:
    """
    执行更新任务并写入 UpdateRun；任务本身抛出的异常会记录后继续抛出.

    Raises:
        UpdateAlreadyRunningError: 已有任务在运行
    """
    # 未加锁时 acquire 不会让出控制权，检查与加锁之间不会插入其他任务
    if _update_lock.locked():
        msg = "已有更新任务在运行"
        raise UpdateAlreadyRunningError(msg)

    async with _update_lock:
        return await _run(session, service, criteria, trigger)


async def _run(
    session: AsyncSession,
    service: UpdateService,
    criteria: UpdateCriteria | None,
    trigger: str,
) -> tuple[UpdateRun, UpdateSummary]:
    run = UpdateRun(trigger=trigger, status="running")
    session.add(run)
    await session.commit()

    try:
        summary = await service.run(criteria)
    except Exception as e:
        run.status = "failed"
        run.error_message = str(e)
        run.completed_at = datetime.now(UTC)
        await session.commit()
        raise

    run.status = "failed" if summary.failed else "success"
    run.total_feeds = summary.total
    run.success_count = summary.success
    run.not_modified_count = summary.not_modified
    run.skipped_count = summary.skipped
    run.error_count = summary.errors
    run.articles_created = summary.articles_created
    run.articles_updated = summary.articles_updated
    run.completed_at = datetime.now(UTC)
    await session.commit()

    logger.info(f"更新任务记录 #{run.id}: {run.status}")
    return run, summary


async def list_runs(session: AsyncSession, limit: int = 20) -> list[UpdateRun]:
    """最近的更新任务记录，按开始时间倒序."""
    stmt = select(UpdateRun).order_by(UpdateRun.started_at.desc()).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())
