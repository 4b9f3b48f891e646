"""
Main pipeline orchestrator for activity timeline summaries.

Provides end-to-end processing for one request:
1. Fetch activity records (lazily, ascending by ActivityDate)
2. Batch them by month and, per batch, summarize + persist a monthly record
3. Aggregate monthly results per quarter, summarize + persist quarterly records
4. POST exactly one terminal status callback

Failures are isolated per month and per quarter; a fetch failure is
fatal to the run. Whatever happens, the callback is sent once.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from ..clients.openai_client import OpenAIClient
from ..clients.salesforce_client import SalesforceClient
from ..config import PipelineConfig
from ..errors import (
    MalformedOutputError,
    SummaryValidationError,
    TimelineSummaryError,
)
from ..logging import PipelineTimer, get_logger, logging_context
from ..models.activity import MonthBatch
from ..models.request import SummaryRequest
from ..models.summary import (
    MonthlySummaryResult,
    QuarterAggregationInput,
    merge_monthly_results,
)
from ..models.timeline import PeriodSummary, ProcessResult, SummaryCategory
from ..prompts.summary_prompts import (
    MONTHLY_ASSISTANT_INSTRUCTIONS,
    QUARTERLY_ASSISTANT_INSTRUCTIONS,
    build_monthly_prompt,
    monthly_assistant_name,
    quarterly_assistant_name,
)
from .batcher import BatchAccumulator
from .notifier import Notifier
from .persister import PersistOutcome, ResultPersister
from .quarters import QuarterAggregator, quarterly_period_summary, render_quarterly_prompt
from .record_source import RecordSource
from .summarizer import AssistantSpec, FunctionCallResult, Summarizer

logger = get_logger(__name__)

SUCCESS_MESSAGE = 'Summary Processed Successfully'


class PipelineStage(str, Enum):
    """Run stages, in the only order they may occur."""

    FETCHING = 'fetching'
    MONTH_PROCESSING = 'month_processing'
    QUARTER_PROCESSING = 'quarter_processing'
    NOTIFYING = 'notifying'
    DONE = 'done'


_STAGE_ORDER = list(PipelineStage)


@dataclass
class PipelineRunState:
    """
    Mutable state of one run, owned by the orchestrator.

    ``existing_records`` starts as the caller's lookup and gains the ids
    of records created during the run, so later writes to the same
    period become updates.
    """

    existing_records: dict[str, str] = field(default_factory=dict)
    status: ProcessResult = ProcessResult.SUCCESS
    stage: PipelineStage = PipelineStage.FETCHING
    failures: list[str] = field(default_factory=list)
    quarters: QuarterAggregator = field(default_factory=QuarterAggregator)

    # Cumulative result for the month currently being processed
    open_month: tuple[int, int] | None = None
    month_result: MonthlySummaryResult | None = None
    month_record_count: int = 0

    # Statistics
    months_succeeded: int = 0
    months_failed: int = 0
    quarters_succeeded: int = 0
    quarters_failed: int = 0
    records_dropped: int = 0

    def advance(self, stage: PipelineStage) -> None:
        """Move forward to ``stage``; never moves backward."""
        if _STAGE_ORDER.index(stage) > _STAGE_ORDER.index(self.stage):
            logger.debug('pipeline_stage', stage=stage.value, previous=self.stage.value)
            self.stage = stage

    def fail(self, message: str) -> None:
        self.status = ProcessResult.FAILED
        self.failures.append(message)

    def partial(self, message: str) -> None:
        if self.status is not ProcessResult.FAILED:
            self.status = ProcessResult.PARTIAL_SUCCESS
        self.failures.append(message)

    def remember(self, outcome: PersistOutcome) -> None:
        self.existing_records.update(outcome.created)

    def accumulate_month(
        self,
        batch: MonthBatch,
        result: MonthlySummaryResult,
    ) -> tuple[MonthlySummaryResult, int]:
        """
        Fold a sub-batch result into its month's cumulative result.

        Returns the cumulative result and record count to persist.
        """
        if self.open_month == batch.period and self.month_result is not None:
            self.month_result = merge_monthly_results(self.month_result, result)
            self.month_record_count += len(batch)
        else:
            self.open_month = batch.period
            self.month_result = result
            self.month_record_count = len(batch)
        return self.month_result, self.month_record_count

    def final_message(self, max_chars: int) -> str:
        if self.status is ProcessResult.SUCCESS:
            return SUCCESS_MESSAGE
        message = f"Processing finished with issues: {'; '.join(self.failures)}"
        if len(message) > max_chars:
            message = message[: max_chars - 3] + '...'
        return message


@dataclass
class PipelineResult:
    """Result of processing one summary request."""

    account_id: str
    request_id: str
    status: ProcessResult
    message: str

    months_succeeded: int = 0
    months_failed: int = 0
    quarters_succeeded: int = 0
    quarters_failed: int = 0
    records_dropped: int = 0
    notified: bool = False

    # Timing
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    processing_time_ms: int | None = None
    stage_timings: dict[str, float] = field(default_factory=dict)

    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is ProcessResult.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'account_id': self.account_id,
            'request_id': self.request_id,
            'status': self.status.value,
            'message': self.message,
            'months_succeeded': self.months_succeeded,
            'months_failed': self.months_failed,
            'quarters_succeeded': self.quarters_succeeded,
            'quarters_failed': self.quarters_failed,
            'records_dropped': self.records_dropped,
            'notified': self.notified,
            'processing_time_ms': self.processing_time_ms,
            'stage_timings': self.stage_timings,
            'errors': self.errors,
        }


def monthly_period_summary(
    batch: MonthBatch,
    result: MonthlySummaryResult,
    record_count: int,
) -> PeriodSummary:
    """Persistable record for a month's (cumulative) result."""
    return PeriodSummary(
        year=batch.year,
        period_label=batch.month_name,
        category=SummaryCategory.MONTHLY,
        summary_json=json.dumps(result.to_payload()),
        summary_html=result.summary,
        start_date=batch.start_date,
        record_count=record_count,
    )


def parse_monthly_result(call: FunctionCallResult) -> MonthlySummaryResult:
    """
    Validate the monthly function arguments.

    Raises:
        MalformedOutputError: if required fields are missing or mistyped
    """
    try:
        result = MonthlySummaryResult.model_validate(call.arguments)
    except PydanticValidationError as e:
        raise MalformedOutputError(
            f'Monthly summary output failed validation ({e.error_count()} errors)',
            context={'raw_excerpt': call.raw_arguments[:500]},
        ) from e
    if result.missing_categories:
        logger.warning('monthly_categories_missing', missing=result.missing_categories)
    return result


class SummaryPipeline:
    """
    End-to-end pipeline for one account's activity timeline.

    Orchestrates:
    - RecordSource: lazy, ordered activity records
    - BatchAccumulator: month batches and sub-batches
    - Summarizer: one isolated assistant round-trip per batch or quarter
    - QuarterAggregator: monthly results grouped per quarter
    - ResultPersister: create-or-update of summary records
    - Notifier: one terminal callback

    Usage:
        pipeline = SummaryPipeline(openai_client, salesforce_client, notifier, config)
        result = await pipeline.run(request, access_token)
    """

    def __init__(
        self,
        openai_client: OpenAIClient,
        salesforce_client: SalesforceClient,
        notifier: Notifier,
        config: PipelineConfig | None = None,
    ):
        """
        Initialize the pipeline with required clients.

        Args:
            openai_client: OpenAI client shared across requests
            salesforce_client: Salesforce client bound to this request's token
            notifier: Callback sender
            config: Thresholds and limits (defaults from the environment)
        """
        self.config = config or PipelineConfig.from_config()
        self.notifier = notifier

        self.source = RecordSource(salesforce_client, self.config)
        self.summarizer = Summarizer(openai_client, self.config)
        self.persister = ResultPersister(salesforce_client, self.config)

    async def run(
        self,
        request: SummaryRequest,
        access_token: str,
        request_id: str | None = None,
    ) -> PipelineResult:
        """
        Process a request to completion and send its callback.

        Never raises for processing failures: they are folded into the
        reported status and message.
        """
        started_at = datetime.now()
        timer = PipelineTimer()
        request_id = request_id or uuid4().hex
        state = PipelineRunState(existing_records=dict(request.existing_records))

        with logging_context(
            request_id=request_id,
            account_id=request.account_id,
            user_id=request.user_id,
        ):
            logger.info('pipeline_started', existing_records=len(state.existing_records))

            try:
                await self._process(request, state, timer)
            except Exception as e:
                logger.error(
                    'pipeline_failed',
                    stage=state.stage.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                state.fail(f'Critical processing error: {e}')

            state.advance(PipelineStage.NOTIFYING)
            message = state.final_message(self.config.max_callback_message_chars)
            with timer.stage('notify'):
                notified = await self.notifier.notify(
                    parent_id=request.account_id,
                    callback_url=request.callback_url,
                    auth_token=access_token,
                    status=state.status,
                    message=message,
                    user_id=request.user_id,
                )
            state.advance(PipelineStage.DONE)

            result = PipelineResult(
                account_id=request.account_id,
                request_id=request_id,
                status=state.status,
                message=message,
                months_succeeded=state.months_succeeded,
                months_failed=state.months_failed,
                quarters_succeeded=state.quarters_succeeded,
                quarters_failed=state.quarters_failed,
                records_dropped=state.records_dropped,
                notified=notified,
                started_at=started_at,
                completed_at=datetime.now(),
                processing_time_ms=int(timer.total_ms),
                stage_timings=timer.stages.copy(),
                errors=list(state.failures),
            )
            logger.info(
                'pipeline_complete',
                status=state.status.value,
                months_succeeded=state.months_succeeded,
                months_failed=state.months_failed,
                quarters_succeeded=state.quarters_succeeded,
                quarters_failed=state.quarters_failed,
                **timer.summary(),
            )
            return result

    async def _process(
        self,
        request: SummaryRequest,
        state: PipelineRunState,
        timer: PipelineTimer,
    ) -> None:
        accumulator = BatchAccumulator(self.config.sub_batch_size)
        records = self.source.stream(request.query)

        async for batch in accumulator.batches(records):
            state.advance(PipelineStage.MONTH_PROCESSING)
            with timer.stage('month_processing'):
                await self._process_month(batch, request, state)

        state.records_dropped = accumulator.records_dropped
        state.advance(PipelineStage.QUARTER_PROCESSING)
        logger.info('quarters_pending', count=len(state.quarters))

        for aggregation in state.quarters.drain():
            with timer.stage('quarter_processing'):
                await self._process_quarter(aggregation, request, state)

    async def _process_month(
        self,
        batch: MonthBatch,
        request: SummaryRequest,
        state: PipelineRunState,
    ) -> None:
        """Summarize and persist one month batch; failures stay local to it."""
        log = logger.bind(
            month=batch.month_name,
            year=batch.year,
            part=batch.part,
            record_count=len(batch),
        )
        log.info('month_started')

        try:
            call = await self.summarizer.summarize(
                batch.records,
                build_monthly_prompt(request.monthly_prompt, batch.month_name, batch.year),
                request.monthly_schema,
                AssistantSpec(
                    name=monthly_assistant_name(request.account_id, batch.year, batch.month_name),
                    instructions=MONTHLY_ASSISTANT_INSTRUCTIONS,
                ),
            )
            result = parse_monthly_result(call)

            cumulative, record_count = state.accumulate_month(batch, result)
            outcome = await self.persister.persist(
                [monthly_period_summary(batch, cumulative, record_count)],
                request.account_id,
                SummaryCategory.MONTHLY,
                state.existing_records,
            )
            state.remember(outcome)
            if not outcome.all_succeeded:
                state.fail(f'Failed saving {batch.label}: {_item_errors(outcome)}')

            state.quarters.add(batch.year, batch.month_index, result)
            state.months_succeeded += 1
            log.info('month_complete', delivery=call.delivery)

        except TimelineSummaryError as e:
            log.error('month_failed', error=str(e), error_type=type(e).__name__)
            state.fail(f'Failed processing {batch.label}: {e.message}')
            state.months_failed += 1
        except Exception as e:
            log.error('month_failed_unexpected', error=str(e), error_type=type(e).__name__)
            state.fail(f'Failed processing {batch.label}: {e}')
            state.months_failed += 1

    async def _process_quarter(
        self,
        aggregation: QuarterAggregationInput,
        request: SummaryRequest,
        state: PipelineRunState,
    ) -> None:
        """Aggregate, summarize and persist one quarter; failures stay local to it."""
        log = logger.bind(
            quarter=aggregation.quarter,
            year=aggregation.year,
            monthly_results=len(aggregation.monthly_results),
        )
        log.info('quarter_started')

        try:
            call = await self.summarizer.summarize(
                None,
                render_quarterly_prompt(request.quarterly_prompt, aggregation),
                request.quarterly_schema,
                AssistantSpec(
                    name=quarterly_assistant_name(
                        request.account_id, aggregation.year, aggregation.quarter
                    ),
                    instructions=QUARTERLY_ASSISTANT_INSTRUCTIONS,
                ),
            )
            summary = quarterly_period_summary(call.arguments, aggregation)

            outcome = await self.persister.persist(
                [summary],
                request.account_id,
                SummaryCategory.QUARTERLY,
                state.existing_records,
            )
            state.remember(outcome)
            if not outcome.all_succeeded:
                state.fail(f'Failed saving {aggregation.key}: {_item_errors(outcome)}')

            state.quarters_succeeded += 1
            log.info('quarter_complete')

        except SummaryValidationError as e:
            log.warning('quarter_output_invalid', error=str(e))
            state.partial(f'Failed to transform/validate AI output for {aggregation.key}: {e.message}')
            state.quarters_failed += 1
        except TimelineSummaryError as e:
            log.error('quarter_failed', error=str(e), error_type=type(e).__name__)
            state.fail(f'Failed processing {aggregation.key}: {e.message}')
            state.quarters_failed += 1
        except Exception as e:
            log.error('quarter_failed_unexpected', error=str(e), error_type=type(e).__name__)
            state.fail(f'Failed processing {aggregation.key}: {e}')
            state.quarters_failed += 1


def _item_errors(outcome: PersistOutcome) -> str:
    return '; '.join(str(r.error.message) for r in outcome.results.failed if r.error)
