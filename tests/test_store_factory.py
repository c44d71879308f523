"""测试记录存储工厂."""

import pytest

from feedsync.config import ConfigurationError, Settings
from feedsync.store.cloudkit import CloudKitRecordStore
from feedsync.store.factory import create_record_store, get_service_record_store
from feedsync.store.memory import InMemoryRecordStore


@pytest.fixture(autouse=True)
def reset_shared_store(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("feedsync.store.factory._shared_memory_store", None)


class TestCreateRecordStore:
    """测试 create_record_store."""

    def test_memory_backend_is_fresh(self, settings: Settings) -> None:
        """每次调用都得到新的内存存储."""
        assert create_record_store(settings) is not create_record_store(settings)

    def test_missing_token(self) -> None:
        """缺少 API Token 时报告对应的配置项."""
        settings = Settings(
            _env_file=None, store_backend="cloudkit", store_url="https://store.example"
        )

        with pytest.raises(ConfigurationError) as exc_info:
            create_record_store(settings)

        assert exc_info.value.key == "STORE_API_TOKEN"


class TestServiceRecordStore:
    """测试服务进程使用的记录存储."""

    async def test_memory_store_is_shared(self, settings: Settings) -> None:
        """内存存储在多次请求之间共享数据."""
        first = get_service_record_store(settings)
        await first.create("Feed", "f1", {"feedURL": "https://a.example"})
        await first.close()

        second = get_service_record_store(settings)

        assert second is first
        assert isinstance(second, InMemoryRecordStore)
        assert [r.record_name for r in await second.query("Feed")] == ["f1"]

    async def test_remote_store_created_per_call(self) -> None:
        """远程存储每次新建客户端."""
        settings = Settings(
            _env_file=None,
            store_backend="cloudkit",
            store_url="https://store.example",
            store_api_token="secret",
        )

        first = get_service_record_store(settings)
        second = get_service_record_store(settings)
        try:
            assert isinstance(first, CloudKitRecordStore)
            assert first is not second
        finally:
            await first.close()
            await second.close()
