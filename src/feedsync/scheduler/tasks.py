"""定时任务定义."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from feedsync.config import ConfigurationError, Settings

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


async def update_task(settings: Settings) -> None:
    """更新任务：按配置的条件处理 Feed."""
    from feedsync.core.history import (
        UpdateAlreadyRunningError,
        is_update_running,
        run_with_history,
    )
    from feedsync.core.update import UpdateCriteria, UpdateService
    from feedsync.models.database import get_session
    from feedsync.store.factory import get_service_record_store

    if is_update_running():
        logger.info("已有更新任务在运行，跳过本次调度")
        return

    try:
        store = get_service_record_store(settings)
    except ConfigurationError as e:
        logger.warning(f"记录存储未配置，跳过更新: {e}")
        return

    logger.info("开始定时更新任务...")

    try:
        async for session in get_session():
            service = UpdateService(store, settings)
            _, summary = await run_with_history(
                session,
                service,
                UpdateCriteria.from_settings(settings),
                trigger="scheduled",
            )
            logger.info(
                f"定时更新完成: 共 {summary.total} 个 Feed, 失败 {summary.errors} 个"
            )
            break  # 只需要一个会话

    except UpdateAlreadyRunningError:
        logger.info("已有更新任务在运行，跳过本次调度")
    except Exception as e:
        logger.exception(f"定时更新任务失败: {e}")
    finally:
        await store.close()


def create_scheduler(settings: Settings) -> AsyncIOScheduler:
    """创建并启动定时任务调度器."""
    global _scheduler

    _scheduler = AsyncIOScheduler()

    _scheduler.add_job(
        update_task,
        "interval",
        minutes=settings.sync_interval_minutes,
        args=[settings],
        id="update_task",
        name="Feed 更新",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    # 启动时立即执行一次
    _scheduler.add_job(
        update_task,
        "date",
        args=[settings],
        id="update_task_initial",
        name="初始 Feed 更新",
    )

    _scheduler.start()
    logger.info(
        f"定时任务调度器已启动，更新间隔: {settings.sync_interval_minutes} 分钟"
    )

    return _scheduler


async def shutdown_scheduler() -> None:
    """关闭定时任务调度器."""
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        logger.info("定时任务调度器已关闭")
        _scheduler = None
