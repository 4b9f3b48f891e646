"""
Tests for month batching.
"""

import pytest

from timeline_summary.pipeline.batcher import BatchAccumulator


async def _stream(records):
    for record in records:
        yield record


async def _collect(accumulator, records):
    return [batch async for batch in accumulator.batches(_stream(records))]


class TestBatchAccumulator:
    """Test the month state machine."""

    @pytest.mark.asyncio
    async def test_one_batch_per_month(self, make_record):
        records = [
            make_record('2024-01-03', id='a'),
            make_record('2024-01-20', id='b'),
            make_record('2024-02-11', id='c'),
            make_record('2024-03-01', id='d'),
            make_record('2024-03-30', id='e'),
            make_record('2024-03-31', id='f'),
        ]

        batches = await _collect(BatchAccumulator(), records)

        assert [b.label for b in batches] == ['January 2024', 'February 2024', 'March 2024']
        assert [len(b) for b in batches] == [2, 1, 3]
        assert [r.id for b in batches for r in b.records] == ['a', 'b', 'c', 'd', 'e', 'f']

    @pytest.mark.asyncio
    async def test_year_boundary(self, make_record):
        records = [make_record('2023-12-31'), make_record('2024-01-01')]

        batches = await _collect(BatchAccumulator(), records)

        assert [b.period for b in batches] == [(2023, 11), (2024, 0)]

    @pytest.mark.asyncio
    async def test_large_month_split_into_sub_batches(self, make_record):
        records = [make_record('2024-01-15', id=str(i)) for i in range(5)]

        batches = await _collect(BatchAccumulator(sub_batch_size=2), records)

        assert [len(b) for b in batches] == [2, 2, 1]
        assert [b.part for b in batches] == [1, 2, 3]
        assert {b.label for b in batches} == {'January 2024'}

    @pytest.mark.asyncio
    async def test_exact_multiple_has_no_empty_tail(self, make_record):
        records = [make_record('2024-01-15') for _ in range(4)]

        batches = await _collect(BatchAccumulator(sub_batch_size=2), records)

        assert [len(b) for b in batches] == [2, 2]

    @pytest.mark.asyncio
    async def test_part_numbering_restarts_per_month(self, make_record):
        records = [make_record('2024-01-15') for _ in range(3)] + [make_record('2024-02-15')]

        batches = await _collect(BatchAccumulator(sub_batch_size=2), records)

        assert [(b.month_name, b.part) for b in batches] == [('January', 1), ('January', 2), ('February', 1)]

    @pytest.mark.asyncio
    async def test_invalid_dates_dropped(self, make_record):
        records = [
            make_record('2024-01-15', id='ok1'),
            make_record('not-a-date', id='bad1'),
            make_record(None, id='bad2'),
            make_record('2024-01-16', id='ok2'),
        ]
        accumulator = BatchAccumulator()

        batches = await _collect(accumulator, records)

        assert len(batches) == 1
        assert [r.id for r in batches[0].records] == ['ok1', 'ok2']
        assert accumulator.records_seen == 4
        assert accumulator.records_dropped == 2

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        accumulator = BatchAccumulator()

        assert await _collect(accumulator, []) == []
        assert accumulator.batches_emitted == 0

    @pytest.mark.asyncio
    async def test_out_of_order_record_starts_new_batch(self, make_record):
        records = [make_record('2024-02-01'), make_record('2024-01-31')]

        batches = await _collect(BatchAccumulator(), records)

        assert [b.month_name for b in batches] == ['February', 'January']

    def test_add_reports_completed_batches(self, make_record):
        accumulator = BatchAccumulator(sub_batch_size=10)

        assert accumulator.add(make_record('2024-01-01')) == []
        assert accumulator.current_period == (2024, 0)
        completed = accumulator.add(make_record('2024-02-01'))

        assert [b.month_name for b in completed] == ['January']
        assert accumulator.flush().month_name == 'February'
        assert accumulator.flush() is None

    def test_flush_before_any_record(self, make_record):
        accumulator = BatchAccumulator(sub_batch_size=1)

        assert accumulator.flush() is None
        assert accumulator.add(make_record(None)) == []
        assert accumulator.flush() is None

        completed = accumulator.add(make_record('2024-03-09'))

        assert [(b.year, b.month_index, b.part) for b in completed] == [(2024, 2, 1)]

    def test_sub_batch_size_must_be_positive(self):
        with pytest.raises(ValueError):
            BatchAccumulator(sub_batch_size=0)
