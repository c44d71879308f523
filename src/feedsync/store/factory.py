"""记录存储工厂."""

from feedsync.config import ConfigurationError, Settings
from feedsync.store.base import RecordStore
from feedsync.store.cloudkit import CloudKitConfig, CloudKitRecordStore
from feedsync.store.memory import InMemoryRecordStore


def create_record_store(settings: Settings) -> RecordStore:
    """根据配置创建记录存储."""
    if settings.store_backend == "memory":
        return InMemoryRecordStore()

    if not settings.store_url:
        msg = "记录存储地址未配置"
        raise ConfigurationError(msg, key="STORE_URL")
    if not settings.store_api_token:
        msg = "记录存储 API Token 未配置"
        raise ConfigurationError(msg, key="STORE_API_TOKEN")

    config = CloudKitConfig(
        base_url=settings.store_url,
        api_token=settings.store_api_token,
        timeout=float(settings.fetch_timeout_seconds),
    )
    return CloudKitRecordStore(config)


_shared_memory_store: InMemoryRecordStore | None = None


def get_service_record_store(settings: Settings) -> RecordStore:
    """
    获取服务进程使用的记录存储.

    内存存储在进程内共享一个实例，使 API 请求和定时任务看到同一份数据；
    远程存储每次新建客户端。
    """
    global _shared_memory_store

    if settings.store_backend != "memory":
        return create_record_store(settings)

    if _shared_memory_store is None:
        _shared_memory_store = InMemoryRecordStore()
    return _shared_memory_store
