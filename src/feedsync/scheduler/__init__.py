"""定时任务模块."""

from feedsync.scheduler.tasks import create_scheduler, shutdown_scheduler, update_task

__all__ = ["create_scheduler", "shutdown_scheduler", "update_task"]
