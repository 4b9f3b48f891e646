"""
Month batch accumulation.

Turns an ascending-date record stream into MonthBatch objects:
- a batch is emitted when the (year, month) of the next record differs
- a month larger than ``sub_batch_size`` is emitted in sub-batches that
  keep the month's label
- records without a usable date are dropped with a warning

The consumer processes each batch before pulling the next record, so
at most one open batch is held in memory.
"""

from typing import AsyncIterable, AsyncIterator

from ..logging import get_logger
from ..models.activity import ActivityRecord, MonthBatch

logger = get_logger(__name__)


class BatchAccumulator:
    """
    State machine keyed on the current (year, month) period.

    Usage:
        accumulator = BatchAccumulator(sub_batch_size=500)
        async for batch in accumulator.batches(source.stream(query)):
            await process(batch)
    """

    def __init__(self, sub_batch_size: int = 500):
        if sub_batch_size < 1:
            raise ValueError('sub_batch_size must be at least 1')
        self.sub_batch_size = sub_batch_size
        self._period: tuple[int, int] | None = None
        self._open: list[ActivityRecord] = []
        self._part = 1

        # Statistics
        self.records_seen = 0
        self.records_dropped = 0
        self.batches_emitted = 0

    @property
    def current_period(self) -> tuple[int, int] | None:
        """(year, month_index) of the open batch."""
        return self._period

    def add(self, record: ActivityRecord) -> list[MonthBatch]:
        """
        Add one record; return the batches it completes (zero, one or two).
        """
        self.records_seen += 1

        if record.activity_date is None:
            self.records_dropped += 1
            logger.warning(
                'activity_skipped_invalid_date',
                activity_id=record.id,
                activity_date=record.raw_activity_date,
            )
            return []

        completed: list[MonthBatch] = []
        period = (record.activity_date.year, record.activity_date.month - 1)

        if period != self._period:
            if self._period is not None and period < self._period:
                logger.warning(
                    'activity_out_of_order',
                    activity_id=record.id,
                    activity_date=record.activity_date.isoformat(),
                    current_period=self._period,
                )
            if self._open and self._period is not None:
                completed.append(self._emit(self._period))
            self._period = period
            self._part = 1

        self._open.append(record)

        if len(self._open) >= self.sub_batch_size:
            completed.append(self._emit(period))
            self._part += 1

        return completed

    def flush(self) -> MonthBatch | None:
        """Emit whatever is still open at stream end."""
        if not self._open or self._period is None:
            return None
        return self._emit(self._period)

    async def batches(self, records: AsyncIterable[ActivityRecord]) -> AsyncIterator[MonthBatch]:
        """Drive the state machine over a record stream, yielding each completed batch."""
        async for record in records:
            for batch in self.add(record):
                yield batch

        last = self.flush()
        if last is not None:
            yield last

        logger.info(
            'batching_complete',
            records_seen=self.records_seen,
            records_dropped=self.records_dropped,
            batches_emitted=self.batches_emitted,
        )

    def _emit(self, period: tuple[int, int]) -> MonthBatch:
        year, month_index = period
        batch = MonthBatch(
            year=year,
            month_index=month_index,
            records=self._open,
            part=self._part,
        )
        self._open = []
        self.batches_emitted += 1
        return batch
