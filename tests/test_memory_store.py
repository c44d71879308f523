"""测试内存记录存储."""

import pytest

from feedsync.models.records import QueryFilter, QuerySort, RecordOperation
from feedsync.store.base import RecordConflictError, RecordNotFoundError, RecordStoreError
from feedsync.store.memory import InMemoryRecordStore


@pytest.fixture
async def store() -> InMemoryRecordStore:
    store = InMemoryRecordStore()
    await store.modify(
        [
            RecordOperation.create("Feed", "f1", {"feedURL": "https://c.example", "subscriberCount": 5}),
            RecordOperation.create("Feed", "f2", {"feedURL": "https://a.example", "subscriberCount": 1}),
            RecordOperation.create("Feed", "f3", {"feedURL": "https://b.example", "subscriberCount": 9}),
        ]
    )
    return store


class TestQuery:
    """测试查询."""

    async def test_filter_and_sort(self, store: InMemoryRecordStore) -> None:
        """过滤后按字段升序排列."""
        records = await store.query(
            "Feed",
            filters=[QueryFilter.greater_than_or_equals("subscriberCount", 5)],
            sort_by=[QuerySort.asc("feedURL")],
        )
        assert [r.record_name for r in records] == ["f3", "f1"]

    async def test_limit(self, store: InMemoryRecordStore) -> None:
        """limit 限制结果数量."""
        records = await store.query("Feed", sort_by=[QuerySort.desc("subscriberCount")], limit=1)
        assert [r.record_name for r in records] == ["f3"]

    async def test_in_filter_limit(self, store: InMemoryRecordStore) -> None:
        """IN 过滤值超过 200 个时报错."""
        with pytest.raises(RecordStoreError):
            await store.query("Feed", filters=[QueryFilter.in_("feedURL", [str(i) for i in range(201)])])

    async def test_desired_keys(self, store: InMemoryRecordStore) -> None:
        """desired_keys 只返回指定字段."""
        records = await store.query("Feed", desired_keys=["feedURL"])
        assert all(set(r.fields) == {"feedURL"} for r in records)

    async def test_begins_with(self, store: InMemoryRecordStore) -> None:
        """BEGINS_WITH 前缀匹配."""
        records = await store.query("Feed", filters=[QueryFilter.begins_with("feedURL", "https://a")])
        assert [r.record_name for r in records] == ["f2"]


class TestModify:
    """测试写入."""

    async def test_update_merges_fields_and_changes_tag(self, store: InMemoryRecordStore) -> None:
        """更新合并字段并生成新的标记."""
        before = (await store.query("Feed", filters=[QueryFilter.equals("feedURL", "https://a.example")]))[0]

        after = await store.update("Feed", "f2", {"title": "A"}, before.record_change_tag)

        assert after.fields["title"] == "A"
        assert after.fields["feedURL"] == "https://a.example"
        assert after.record_change_tag != before.record_change_tag

    async def test_update_with_none_clears_field(self, store: InMemoryRecordStore) -> None:
        """值为 None 的字段在更新时被移除."""
        await store.update("Feed", "f2", {"title": "A"})

        after = await store.update("Feed", "f2", {"title": None})

        assert "title" not in after.fields
        assert after.fields["feedURL"] == "https://a.example"

    async def test_stale_tag_conflicts(self, store: InMemoryRecordStore) -> None:
        """过期的标记导致冲突."""
        with pytest.raises(RecordConflictError):
            await store.update("Feed", "f1", {"title": "x"}, "stale")

    async def test_missing_record(self, store: InMemoryRecordStore) -> None:
        """更新不存在的记录报错."""
        with pytest.raises(RecordNotFoundError):
            await store.delete("Feed", "nope")

    async def test_batch_is_all_or_nothing(self, store: InMemoryRecordStore) -> None:
        """一批中有一条失败，整批都不生效."""
        with pytest.raises(RecordConflictError):
            await store.modify(
                [
                    RecordOperation.create("Feed", "f4", {"feedURL": "https://d.example"}),
                    RecordOperation.create("Feed", "f1", {"feedURL": "dup"}),
                ]
            )

        assert len(store.records("Feed")) == 3

    async def test_delete(self, store: InMemoryRecordStore) -> None:
        """删除记录."""
        await store.delete("Feed", "f1")
        assert {r.record_name for r in store.records("Feed")} == {"f2", "f3"}
