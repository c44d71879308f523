"""远程记录存储."""

from feedsync.store.base import (
    MAX_QUERY_LIMIT,
    RecordConflictError,
    RecordNotFoundError,
    RecordStore,
    RecordStoreError,
)
from feedsync.store.cloudkit import CloudKitConfig, CloudKitRecordStore
from feedsync.store.factory import create_record_store, get_service_record_store
from feedsync.store.memory import InMemoryRecordStore

__all__ = [
    "MAX_QUERY_LIMIT",
    "CloudKitConfig",
    "CloudKitRecordStore",
    "InMemoryRecordStore",
    "RecordConflictError",
    "RecordNotFoundError",
    "RecordStore",
    "RecordStoreError",
    "create_record_store",
    "get_service_record_store",
]
