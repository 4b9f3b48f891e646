"""
Activity Timeline Summary Pipeline

Turns an account's date-ordered activity history into monthly and
quarterly AI-written summaries stored back in Salesforce, then reports
the outcome to a caller-supplied callback.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .pipeline import (
    SummaryPipeline,
    PipelineResult,
    PipelineStage,
    BatchAccumulator,
    Summarizer,
    ResultPersister,
    Notifier,
)
from .clients import OpenAIClient, SalesforceClient
from .config import PipelineConfig
from .models.request import SummaryRequest
from .models.timeline import ProcessResult, SummaryCategory
from .logging import (
    configure_logging,
    get_logger,
    logging_context,
    PipelineTimer,
)
from .errors import (
    TimelineSummaryError,
    ValidationError,
    TransportError,
    SalesforceError,
    OpenAIError,
    AIInteractionError,
    AIContractViolation,
    AIRunFailedError,
    SummaryValidationError,
    PersistenceError,
    PartialSuccessResult,
)

__all__ = [
    # Version
    '__version__',
    # Main Pipeline
    'SummaryPipeline',
    'PipelineResult',
    'PipelineStage',
    'PipelineConfig',
    # Components
    'BatchAccumulator',
    'Summarizer',
    'ResultPersister',
    'Notifier',
    # Clients
    'OpenAIClient',
    'SalesforceClient',
    # Models
    'SummaryRequest',
    'ProcessResult',
    'SummaryCategory',
    # Logging
    'configure_logging',
    'get_logger',
    'logging_context',
    'PipelineTimer',
    # Errors
    'TimelineSummaryError',
    'ValidationError',
    'TransportError',
    'SalesforceError',
    'OpenAIError',
    'AIInteractionError',
    'AIContractViolation',
    'AIRunFailedError',
    'SummaryValidationError',
    'PersistenceError',
    'PartialSuccessResult',
]
