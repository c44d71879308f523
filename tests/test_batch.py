"""测试分批写入."""

from unittest.mock import AsyncMock

import pytest

from feedsync.core.batch import BatchWriter, chunked
from feedsync.models.records import RecordInfo


def records_for(batch: list[int]) -> list[RecordInfo]:
    return [RecordInfo(f"rec-{i}", "Article") for i in batch]


class TestChunked:
    """测试 chunked."""

    def test_splits_in_order(self) -> None:
        """按顺序切分，最后一块可以不足."""
        assert chunked([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_rejects_non_positive_size(self) -> None:
        """分块大小必须为正数."""
        with pytest.raises(ValueError):
            chunked([1], 0)


class TestBatchWriter:
    """测试 BatchWriter.execute."""

    async def test_empty_input_makes_no_calls(self) -> None:
        """空输入不调用写操作."""
        operation = AsyncMock()

        result = await BatchWriter.execute([], 10, operation)

        operation.assert_not_called()
        assert result.total_processed == 0
        assert result.success_rate == 0.0

    async def test_exact_chunk_is_one_call(self) -> None:
        """恰好 chunk_size 条只调用一次."""
        operation = AsyncMock(side_effect=records_for)

        result = await BatchWriter.execute(list(range(10)), 10, operation)

        assert operation.await_count == 1
        assert result.success_count == 10

    async def test_one_over_chunk_is_two_calls(self) -> None:
        """chunk_size + 1 条调用两次，第二次只有 1 条."""
        operation = AsyncMock(side_effect=records_for)

        await BatchWriter.execute(list(range(11)), 10, operation)

        assert operation.await_count == 2
        assert len(operation.await_args_list[1].args[0]) == 1

    async def test_failed_chunk_is_isolated(self) -> None:
        """第 2 批失败：该批全部记为失败，第 1、3 批正常."""
        error = RuntimeError("conflict")

        async def operation(batch: list[int]) -> list[RecordInfo]:
            if batch[0] == 10:
                raise error
            return records_for(batch)

        items = list(range(25))
        result = await BatchWriter.execute(items, 10, operation)

        assert result.success_count == 15
        assert result.failure_count == 10
        assert result.total_processed == len(items)
        assert [item for item, _ in result.failures] == list(range(10, 20))
        assert all(e is error for _, e in result.failures)
        assert result.success_rate == pytest.approx(60.0)

    async def test_successes_in_input_order(self) -> None:
        """成功记录按输入顺序汇总."""
        operation = AsyncMock(side_effect=records_for)

        result = await BatchWriter.execute([1, 2, 3], 2, operation)

        assert [r.record_name for r in result.successes] == ["rec-1", "rec-2", "rec-3"]
