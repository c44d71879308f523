"""API 依赖."""

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException

from feedsync.config import ConfigurationError, get_settings
from feedsync.core.update import UpdateService
from feedsync.store.base import RecordStore
from feedsync.store.factory import get_service_record_store


async def get_record_store() -> AsyncGenerator[RecordStore, None]:
    """获取记录存储（用于依赖注入）."""
    try:
        store = get_service_record_store(get_settings())
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        yield store
    finally:
        await store.close()


async def get_update_service(
    store: RecordStore = Depends(get_record_store),
) -> UpdateService:
    """获取更新服务（用于依赖注入）."""
    return UpdateService(store, get_settings())
