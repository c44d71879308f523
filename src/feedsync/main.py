"""FeedSync 主应用入口."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from feedsync import __version__
from feedsync.api import feeds, update
from feedsync.config import get_settings
from feedsync.models.database import close_db, init_db
from feedsync.scheduler import create_scheduler, shutdown_scheduler

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """应用生命周期管理."""
    settings = get_settings()

    logger.info("正在初始化数据库...")
    await init_db(settings.database_url)

    if settings.scheduler_enabled:
        logger.info("正在启动定时任务...")
        create_scheduler(settings)

    logger.info("FeedSync 启动完成！")
    yield

    logger.info("正在关闭...")
    await shutdown_scheduler()
    await close_db()
    logger.info("FeedSync 已关闭")


app = FastAPI(
    title="FeedSync",
    description="RSS/Atom 订阅源同步服务",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(feeds.router)
app.include_router(update.router)


@app.get("/")
async def root() -> dict:
    """根路径."""
    return {
        "name": "FeedSync",
        "version": __version__,
        "description": "RSS/Atom 订阅源同步服务",
    }


@app.get("/health")
async def health() -> dict:
    """健康检查."""
    return {"status": "ok"}
