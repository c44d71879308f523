"""记录存储抽象基类."""

from abc import ABC, abstractmethod
from typing import Any

from feedsync.models.records import QueryFilter, QuerySort, RecordInfo, RecordOperation

# 单次查询的结果数 / 过滤值数上限
MAX_QUERY_LIMIT = 200


class RecordStoreError(Exception):
    """记录存储错误."""


class RecordNotFoundError(RecordStoreError):
    """记录不存在."""


class RecordConflictError(RecordStoreError):
    """并发控制标记不匹配（记录已被其他写入修改）."""


class RecordStore(ABC):
    """记录存储服务抽象基类.

    `modify` 是唯一的批量写入口，一次调用整体成功或整体失败；
    单条 `create` / `update` / `delete` 都基于它实现。
    更新只改动传入的字段，值为 None 的字段会被清除。
    """

    @abstractmethod
    async def query(
        self,
        record_type: str,
        filters: list[QueryFilter] | None = None,
        sort_by: list[QuerySort] | None = None,
        limit: int = MAX_QUERY_LIMIT,
        desired_keys: list[str] | None = None,
    ) -> list[RecordInfo]:
        """按条件查询记录."""
        ...

    @abstractmethod
    async def modify(self, operations: list[RecordOperation]) -> list[RecordInfo]:
        """执行一批写操作，按输入顺序返回结果记录."""
        ...

    async def close(self) -> None:
        """释放底层资源."""

    async def create(
        self, record_type: str, record_name: str, fields: dict[str, Any]
    ) -> RecordInfo:
        """创建单条记录."""
        operation = RecordOperation.create(record_type, record_name, fields)
        return self._single(await self.modify([operation]))

    async def update(
        self,
        record_type: str,
        record_name: str,
        fields: dict[str, Any],
        record_change_tag: str | None = None,
    ) -> RecordInfo:
        """更新单条记录."""
        operation = RecordOperation.update(
            record_type, record_name, fields, record_change_tag
        )
        return self._single(await self.modify([operation]))

    async def delete(
        self,
        record_type: str,
        record_name: str,
        record_change_tag: str | None = None,
    ) -> RecordInfo:
        """删除单条记录."""
        operation = RecordOperation.delete(record_type, record_name, record_change_tag)
        return self._single(await self.modify([operation]))

    @staticmethod
    def _single(records: list[RecordInfo]) -> RecordInfo:
        if not records:
            msg = "存储层未返回任何记录"
            raise RecordStoreError(msg)
        return records[0]
