"""CloudKit Web Services 风格的远程记录存储客户端."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx

from feedsync.models.records import QueryFilter, QuerySort, RecordInfo, RecordOperation
from feedsync.store.base import (
    MAX_QUERY_LIMIT,
    RecordConflictError,
    RecordNotFoundError,
    RecordStore,
    RecordStoreError,
)

logger = logging.getLogger(__name__)

# 服务端错误码到异常类型的映射
_SERVER_ERRORS: dict[str, type[RecordStoreError]] = {
    "CONFLICT": RecordConflictError,
    "NOT_FOUND": RecordNotFoundError,
    "UNKNOWN_ITEM": RecordNotFoundError,
}


@dataclass
class CloudKitConfig:
    """远程存储连接配置."""

    base_url: str
    api_token: str
    timeout: float = 30.0


def encode_value(value: Any) -> dict[str, Any]:
    """将 Python 值编码为带类型的字段值."""
    if value is None:
        # 空值会清除服务端的字段
        return {"value": None}
    if isinstance(value, bool):
        return {"value": int(value), "type": "INT64"}
    if isinstance(value, int):
        return {"value": value, "type": "INT64"}
    if isinstance(value, float):
        return {"value": value, "type": "DOUBLE"}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return {"value": int(value.timestamp() * 1000), "type": "TIMESTAMP"}
    if isinstance(value, list | tuple):
        return {"value": [str(v) for v in value], "type": "STRING_LIST"}
    return {"value": str(value), "type": "STRING"}


def decode_value(field_value: dict[str, Any]) -> Any:
    """将带类型的字段值解码为 Python 值."""
    value = field_value.get("value")
    if field_value.get("type") == "TIMESTAMP" and value is not None:
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    if field_value.get("type") == "STRING_LIST":
        return list(value or [])
    return value


def _encode_filter(condition: QueryFilter) -> dict[str, Any]:
    if condition.comparator == "IN":
        # IN 的过滤值以列表形式传递
        field_value = {"value": [encode_value(v)["value"] for v in condition.value]}
    else:
        field_value = encode_value(condition.value)
    return {
        "fieldName": condition.field_name,
        "comparator": condition.comparator,
        "fieldValue": field_value,
    }


def _decode_record(data: dict[str, Any]) -> RecordInfo:
    return RecordInfo(
        record_name=data["recordName"],
        record_type=data.get("recordType", ""),
        record_change_tag=data.get("recordChangeTag"),
        fields={k: decode_value(v) for k, v in (data.get("fields") or {}).items()},
    )


class CloudKitRecordStore(RecordStore):
    """基于 httpx 的远程记录存储客户端."""

    def __init__(
        self,
        config: CloudKitConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            timeout=config.timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """关闭客户端."""
        await self._client.aclose()

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(
                path,
                json=payload,
                params={"ckAPIToken": self.config.api_token},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            msg = f"存储请求失败: HTTP {e.response.status_code} {e.response.text[:200]}"
            raise RecordStoreError(msg) from e
        except httpx.HTTPError as e:
            msg = f"存储请求失败: {e}"
            raise RecordStoreError(msg) from e
        return response.json()

    async def query(
        self,
        record_type: str,
        filters: list[QueryFilter] | None = None,
        sort_by: list[QuerySort] | None = None,
        limit: int = MAX_QUERY_LIMIT,
        desired_keys: list[str] | None = None,
    ) -> list[RecordInfo]:
        query: dict[str, Any] = {"recordType": record_type}
        if filters:
            query["filterBy"] = [_encode_filter(f) for f in filters]
        if sort_by:
            query["sortBy"] = [
                {"fieldName": s.field_name, "ascending": s.ascending} for s in sort_by
            ]

        payload: dict[str, Any] = {
            "query": query,
            "resultsLimit": min(limit, MAX_QUERY_LIMIT),
        }
        if desired_keys is not None:
            payload["desiredKeys"] = desired_keys

        data = await self._post("/records/query", payload)

        records: list[RecordInfo] = []
        for item in data.get("records", []):
            if "serverErrorCode" in item:
                logger.warning(
                    f"跳过无效记录 {item.get('recordName')}: {item['serverErrorCode']}"
                )
                continue
            records.append(_decode_record(item))
        return records

    async def modify(self, operations: list[RecordOperation]) -> list[RecordInfo]:
        if not operations:
            return []

        payload = {
            "operations": [self._encode_operation(op) for op in operations],
        }
        data = await self._post("/records/modify", payload)
        items = data.get("records", [])

        # 任一记录失败即视为整批失败
        for item in items:
            code = item.get("serverErrorCode")
            if code:
                error_cls = _SERVER_ERRORS.get(code, RecordStoreError)
                reason = item.get("reason", "")
                msg = f"{item.get('recordName')}: {code} {reason}".strip()
                raise error_cls(msg)

        if len(items) != len(operations):
            msg = f"存储层返回 {len(items)} 条记录，期望 {len(operations)} 条"
            raise RecordStoreError(msg)

        return [_decode_record(item) for item in items]

    @staticmethod
    def _encode_operation(op: RecordOperation) -> dict[str, Any]:
        record: dict[str, Any] = {
            "recordType": op.record_type,
            "recordName": op.record_name,
        }
        if op.operation_type != "delete":
            record["fields"] = {k: encode_value(v) for k, v in op.fields.items()}
        if op.record_change_tag is not None:
            record["recordChangeTag"] = op.record_change_tag

        operation_type = op.operation_type
        if op.operation_type == "delete" and op.record_change_tag is None:
            operation_type = "forceDelete"
        return {"operationType": operation_type, "record": record}
