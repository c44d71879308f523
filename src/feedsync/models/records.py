"""记录存储的通用数据结构."""

from dataclasses import dataclass, field
from typing import Any, Literal

Comparator = Literal[
    "EQUALS",
    "NOT_EQUALS",
    "LESS_THAN",
    "LESS_THAN_OR_EQUALS",
    "GREATER_THAN",
    "GREATER_THAN_OR_EQUALS",
    "BEGINS_WITH",
    "IN",
]

OperationType = Literal["create", "update", "delete"]


@dataclass(frozen=True)
class RecordInfo:
    """存储层返回的一条记录."""

    record_name: str
    record_type: str
    record_change_tag: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueryFilter:
    """查询过滤条件."""

    field_name: str
    comparator: Comparator
    value: Any

    @classmethod
    def equals(cls, field_name: str, value: Any) -> "QueryFilter":
        return cls(field_name, "EQUALS", value)

    @classmethod
    def not_equals(cls, field_name: str, value: Any) -> "QueryFilter":
        return cls(field_name, "NOT_EQUALS", value)

    @classmethod
    def less_than(cls, field_name: str, value: Any) -> "QueryFilter":
        return cls(field_name, "LESS_THAN", value)

    @classmethod
    def less_than_or_equals(cls, field_name: str, value: Any) -> "QueryFilter":
        return cls(field_name, "LESS_THAN_OR_EQUALS", value)

    @classmethod
    def greater_than(cls, field_name: str, value: Any) -> "QueryFilter":
        return cls(field_name, "GREATER_THAN", value)

    @classmethod
    def greater_than_or_equals(cls, field_name: str, value: Any) -> "QueryFilter":
        return cls(field_name, "GREATER_THAN_OR_EQUALS", value)

    @classmethod
    def begins_with(cls, field_name: str, prefix: str) -> "QueryFilter":
        return cls(field_name, "BEGINS_WITH", prefix)

    @classmethod
    def in_(cls, field_name: str, values: list[Any]) -> "QueryFilter":
        return cls(field_name, "IN", list(values))


@dataclass(frozen=True)
class QuerySort:
    """查询排序."""

    field_name: str
    ascending: bool = True

    @classmethod
    def asc(cls, field_name: str) -> "QuerySort":
        return cls(field_name, True)

    @classmethod
    def desc(cls, field_name: str) -> "QuerySort":
        return cls(field_name, False)


@dataclass(frozen=True)
class RecordOperation:
    """一次写操作（创建 / 更新 / 删除）."""

    operation_type: OperationType
    record_type: str
    record_name: str
    fields: dict[str, Any] = field(default_factory=dict)
    record_change_tag: str | None = None

    @classmethod
    def create(
        cls, record_type: str, record_name: str, fields: dict[str, Any]
    ) -> "RecordOperation":
        return cls("create", record_type, record_name, fields)

    @classmethod
    def update(
        cls,
        record_type: str,
        record_name: str,
        fields: dict[str, Any],
        record_change_tag: str | None = None,
    ) -> "RecordOperation":
        return cls("update", record_type, record_name, fields, record_change_tag)

    @classmethod
    def delete(
        cls,
        record_type: str,
        record_name: str,
        record_change_tag: str | None = None,
    ) -> "RecordOperation":
        return cls("delete", record_type, record_name, {}, record_change_tag)
