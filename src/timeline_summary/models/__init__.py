"""
Data models for the timeline summary pipeline.
"""

from .activity import MONTH_NAMES, ActivityRecord, MonthBatch, parse_activity_date
from .summary import (
    SUMMARY_CATEGORIES,
    MonthlySummaryResult,
    QuarterlySummaryResult,
    QuarterAggregationInput,
    QuarterSummary,
    merge_monthly_results,
)
from .timeline import PeriodSummary, ProcessResult, SummaryCategory

__all__ = [
    'MONTH_NAMES',
    'ActivityRecord',
    'MonthBatch',
    'parse_activity_date',
    'SUMMARY_CATEGORIES',
    'MonthlySummaryResult',
    'QuarterlySummaryResult',
    'QuarterAggregationInput',
    'QuarterSummary',
    'merge_monthly_results',
    'PeriodSummary',
    'ProcessResult',
    'SummaryCategory',
]
