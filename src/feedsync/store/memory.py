"""内存记录存储，用于测试和试运行."""

import logging
from collections.abc import Callable
from typing import Any

from feedsync.models.records import QueryFilter, QuerySort, RecordInfo, RecordOperation
from feedsync.store.base import (
    MAX_QUERY_LIMIT,
    RecordConflictError,
    RecordNotFoundError,
    RecordStore,
    RecordStoreError,
)

logger = logging.getLogger(__name__)


def _matches(fields: dict[str, Any], condition: QueryFilter) -> bool:
    """判断记录字段是否满足单个过滤条件."""
    value = fields.get(condition.field_name)
    target = condition.value

    if condition.comparator == "EQUALS":
        return value == target
    if condition.comparator == "NOT_EQUALS":
        return value != target
    if condition.comparator == "IN":
        return value in target
    if value is None:
        return False
    if condition.comparator == "BEGINS_WITH":
        return isinstance(value, str) and value.startswith(target)

    compare: dict[str, Callable[[Any, Any], bool]] = {
        "LESS_THAN": lambda a, b: a < b,
        "LESS_THAN_OR_EQUALS": lambda a, b: a <= b,
        "GREATER_THAN": lambda a, b: a > b,
        "GREATER_THAN_OR_EQUALS": lambda a, b: a >= b,
    }
    return compare[condition.comparator](value, target)


class InMemoryRecordStore(RecordStore):
    """进程内记录存储.

    与远程存储保持相同的约束：查询上限、IN 过滤值数量上限、
    并发控制标记校验，以及单次 `modify` 的整体成功/失败语义。
    """

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], RecordInfo] = {}
        self._tag_counter = 0
        self.query_calls: list[tuple[str, list[QueryFilter]]] = []
        self.modify_calls: list[list[RecordOperation]] = []

    def _next_tag(self) -> str:
        self._tag_counter += 1
        return f"tag-{self._tag_counter}"

    def records(self, record_type: str) -> list[RecordInfo]:
        """返回指定类型的全部记录（按插入顺序）."""
        return [r for (t, _), r in self._records.items() if t == record_type]

    async def query(
        self,
        record_type: str,
        filters: list[QueryFilter] | None = None,
        sort_by: list[QuerySort] | None = None,
        limit: int = MAX_QUERY_LIMIT,
        desired_keys: list[str] | None = None,
    ) -> list[RecordInfo]:
        filters = filters or []
        self.query_calls.append((record_type, filters))

        for condition in filters:
            if condition.comparator == "IN" and len(condition.value) > MAX_QUERY_LIMIT:
                msg = f"IN 过滤值数量超过上限 {MAX_QUERY_LIMIT}"
                raise RecordStoreError(msg)

        results = [
            r
            for r in self.records(record_type)
            if all(_matches(r.fields, c) for c in filters)
        ]

        # 多字段排序：从最低优先级开始稳定排序
        for sort in reversed(sort_by or []):
            results.sort(
                key=lambda r, name=sort.field_name: (
                    r.fields.get(name) is None,
                    r.fields.get(name),
                ),
                reverse=not sort.ascending,
            )

        results = results[: min(limit, MAX_QUERY_LIMIT)]

        if desired_keys is not None:
            results = [
                RecordInfo(
                    record_name=r.record_name,
                    record_type=r.record_type,
                    record_change_tag=r.record_change_tag,
                    fields={k: v for k, v in r.fields.items() if k in desired_keys},
                )
                for r in results
            ]
        return results

    async def modify(self, operations: list[RecordOperation]) -> list[RecordInfo]:
        self.modify_calls.append(list(operations))

        # 先整体校验，任何一条不合法则整批失败
        for op in operations:
            key = (op.record_type, op.record_name)
            existing = self._records.get(key)
            if op.operation_type == "create":
                if existing is not None:
                    msg = f"记录已存在: {op.record_type}/{op.record_name}"
                    raise RecordConflictError(msg)
                continue
            if existing is None:
                msg = f"记录不存在: {op.record_type}/{op.record_name}"
                raise RecordNotFoundError(msg)
            if (
                op.record_change_tag is not None
                and op.record_change_tag != existing.record_change_tag
            ):
                msg = f"记录已被修改: {op.record_type}/{op.record_name}"
                raise RecordConflictError(msg)

        results: list[RecordInfo] = []
        for op in operations:
            key = (op.record_type, op.record_name)
            if op.operation_type == "delete":
                removed = self._records.pop(key)
                results.append(
                    RecordInfo(op.record_name, op.record_type, removed.record_change_tag)
                )
                continue

            fields = dict(op.fields)
            if op.operation_type == "update":
                fields = {**self._records[key].fields, **fields}
            # None 表示清除该字段
            fields = {k: v for k, v in fields.items() if v is not None}

            record = RecordInfo(
                record_name=op.record_name,
                record_type=op.record_type,
                record_change_tag=self._next_tag(),
                fields=fields,
            )
            self._records[key] = record
            results.append(record)

        logger.debug(f"内存存储写入 {len(operations)} 条操作")
        return results
