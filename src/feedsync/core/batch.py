"""分批写入."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from feedsync.models.records import RecordInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 文章内容较大，单批条数要小
ARTICLE_BATCH_SIZE = 10
# 低于存储层 200 的过滤值上限，留出余量
GUID_QUERY_BATCH_SIZE = 150
# 分页删除的页大小
DELETE_PAGE_SIZE = 200


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """按顺序切分为不超过 size 的连续分块."""
    if size < 1:
        msg = f"分块大小必须为正数: {size}"
        raise ValueError(msg)
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


@dataclass
class BatchOperationResult(Generic[T]):
    """一次批量写入的汇总结果."""

    successes: list[RecordInfo] = field(default_factory=list)
    failures: list[tuple[T, Exception]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def total_processed(self) -> int:
        return self.success_count + self.failure_count

    @property
    def success_rate(self) -> float:
        """成功率（百分比）."""
        if self.total_processed == 0:
            return 0.0
        return self.success_count / self.total_processed * 100

    def append_successes(self, records: list[RecordInfo]) -> None:
        self.successes.extend(records)

    def append_failure(self, item: T, error: Exception) -> None:
        self.failures.append((item, error))


class BatchWriter:
    """将写操作切分为有限大小的批次，逐批执行并汇总结果.

    每批是一个整体：成功则整批计为成功，失败则整批记录同一个错误，
    然后继续处理下一批。错误不会抛出到调用方。
    """

    @staticmethod
    async def execute(
        items: Sequence[T],
        chunk_size: int,
        operation: Callable[[list[T]], Awaitable[list[RecordInfo]]],
        label: str = "记录",
    ) -> BatchOperationResult[T]:
        result: BatchOperationResult[T] = BatchOperationResult()
        if not items:
            return result

        batches = chunked(items, chunk_size)
        for index, batch in enumerate(batches, 1):
            logger.info(f"   Batch {index}/{len(batches)}: {len(batch)} 条{label}")
            try:
                records = await operation(batch)
            except Exception as e:
                logger.error(f"   Batch {index} 失败: {e}")
                for item in batch:
                    result.append_failure(item, e)
                continue

            result.append_successes(records)
            logger.info(f"   Batch {index} 完成: {len(records)} 条")

        logger.info(
            f"批量写入完成: {result.success_count}/{result.total_processed} "
            f"({result.success_rate:.1f}%)"
        )
        return result
