"""
Quarterly aggregation of monthly summary results.
"""

import json
from datetime import date
from typing import Any, Iterator

from pydantic import ValidationError as PydanticValidationError

from ..errors import SummaryValidationError
from ..logging import get_logger
from ..models.activity import parse_activity_date
from ..models.summary import (
    MonthlySummaryResult,
    QuarterAggregationInput,
    QuarterlySummaryResult,
)
from ..models.timeline import PeriodSummary, SummaryCategory
from ..prompts.summary_prompts import build_quarterly_prompt

logger = get_logger(__name__)

QUARTERS = ('Q1', 'Q2', 'Q3', 'Q4')


def quarter_for_month(month_index: int) -> str:
    """0-2 -> Q1, 3-5 -> Q2, 6-8 -> Q3, 9-11 -> Q4."""
    if not 0 <= month_index <= 11:
        raise ValueError(f'month_index out of range: {month_index}')
    return QUARTERS[month_index // 3]


def quarter_start_date(year: int, quarter: str) -> date:
    return date(year, QUARTERS.index(quarter) * 3 + 1, 1)


def render_quarterly_prompt(template: str, aggregation: QuarterAggregationInput) -> str:
    """Quarterly prompt with the quarter's monthly results embedded as JSON."""
    return build_quarterly_prompt(
        template,
        quarter=aggregation.quarter,
        year=aggregation.year,
        monthly_json=aggregation.to_json(),
    )


class QuarterAggregator:
    """
    Collects monthly results per (year, quarter) in completion order.

    Usage:
        aggregator.add(2024, 0, january_result)
        for aggregation in aggregator.drain():
            ...
    """

    def __init__(self):
        self._quarters: dict[tuple[int, str], QuarterAggregationInput] = {}

    def add(self, year: int, month_index: int, result: MonthlySummaryResult) -> QuarterAggregationInput:
        """Append a monthly result to its quarter."""
        quarter = quarter_for_month(month_index)
        key = (year, quarter)
        aggregation = self._quarters.get(key)
        if aggregation is None:
            aggregation = QuarterAggregationInput(year=year, quarter=quarter)
            self._quarters[key] = aggregation
        aggregation.monthly_results.append(result)
        return aggregation

    def __len__(self) -> int:
        return len(self._quarters)

    def drain(self) -> Iterator[QuarterAggregationInput]:
        """
        Yield each quarter with at least one result, first-seen order, emptying the map.
        """
        while self._quarters:
            key = next(iter(self._quarters))
            aggregation = self._quarters.pop(key)
            if not aggregation.monthly_results:
                logger.warning('quarter_skipped_no_results', quarter=aggregation.key)
                continue
            yield aggregation


def quarterly_period_summary(
    arguments: dict[str, Any],
    aggregation: QuarterAggregationInput,
) -> PeriodSummary:
    """
    Locate this quarter in the model's output and map it to a record.

    The full output is stored verbatim as the record's JSON; the
    quarter's own narrative becomes its HTML.

    Raises:
        SummaryValidationError: if the output lacks a usable entry for the quarter
    """
    try:
        parsed = QuarterlySummaryResult.model_validate(arguments)
    except PydanticValidationError as e:
        raise SummaryValidationError(
            f'Quarterly output failed validation ({e.error_count()} errors)',
            context={'quarter': aggregation.key},
        ) from e

    entry = parsed.find_quarter(aggregation.year, aggregation.quarter)
    if entry is None:
        raise SummaryValidationError(
            f'Quarterly output has no entry for {aggregation.label}',
            context={'quarter': aggregation.key},
        )
    if not entry.summary.strip():
        raise SummaryValidationError(
            f'Quarterly summary for {aggregation.label} is empty',
            context={'quarter': aggregation.key},
        )

    start_date = parse_activity_date(entry.startdate)
    if start_date is None:
        logger.warning(
            'quarter_startdate_invalid',
            quarter=aggregation.key,
            startdate=entry.startdate,
        )
        start_date = quarter_start_date(aggregation.year, aggregation.quarter)

    return PeriodSummary(
        year=aggregation.year,
        period_label=aggregation.quarter,
        category=SummaryCategory.QUARTERLY,
        summary_json=json.dumps(arguments),
        summary_html=entry.summary,
        start_date=start_date,
        record_count=entry.activity_count,
    )
