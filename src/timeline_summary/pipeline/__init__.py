"""
Pipeline components for fetching, batching, summarizing, aggregating, persisting and notifying.
"""

from .batcher import BatchAccumulator
from .notifier import Notifier
from .persister import PersistOutcome, ResultPersister
from .pipeline import (
    PipelineResult,
    PipelineRunState,
    PipelineStage,
    SummaryPipeline,
)
from .quarters import (
    QuarterAggregator,
    quarter_for_month,
    quarter_start_date,
    quarterly_period_summary,
)
from .record_source import RecordSource
from .summarizer import (
    AssistantSpec,
    AttachmentDelivery,
    FunctionCallResult,
    InlineDelivery,
    Summarizer,
    select_delivery,
)

__all__ = [
    # Main Pipeline
    'SummaryPipeline',
    'PipelineResult',
    'PipelineRunState',
    'PipelineStage',
    # Fetching and batching
    'RecordSource',
    'BatchAccumulator',
    # Summarization
    'Summarizer',
    'AssistantSpec',
    'FunctionCallResult',
    'InlineDelivery',
    'AttachmentDelivery',
    'select_delivery',
    # Quarters
    'QuarterAggregator',
    'quarter_for_month',
    'quarter_start_date',
    'quarterly_period_summary',
    # Persistence and notification
    'ResultPersister',
    'PersistOutcome',
    'Notifier',
]
