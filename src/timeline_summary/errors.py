"""
Custom exceptions and error handling for the timeline summary pipeline.

Provides:
- Typed exception hierarchy for different failure modes
- Error context preservation for debugging
- Partial success handling for bulk save operations
"""

from dataclasses import dataclass, field
from typing import Any


class TimelineSummaryError(Exception):
    """Base exception for all timeline summary errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


# =============================================================================
# Request Errors
# =============================================================================


class ValidationError(TimelineSummaryError):
    """Malformed request or query, rejected before processing starts."""

    pass


# =============================================================================
# Transport Errors
# =============================================================================


class TransportError(TimelineSummaryError):
    """Base class for network/API failures talking to an external service."""

    pass


class SalesforceError(TransportError):
    """Error from Salesforce REST API calls."""

    pass


# =============================================================================
# AI Interaction Errors
# =============================================================================


class AIInteractionError(TimelineSummaryError):
    """An AI round-trip could not produce a structured result."""

    pass


class AIContractViolation(AIInteractionError):
    """The model did not honour the forced function-call contract."""

    pass


class WrongFunctionError(AIContractViolation):
    """The model invoked a function other than the required one."""

    pass


class MalformedOutputError(AIContractViolation):
    """The function-call arguments could not be parsed or validated."""

    pass


class NoFunctionCallError(AIContractViolation):
    """The run ended without invoking the required function."""

    pass


class AIRunFailedError(AIInteractionError):
    """The run ended failed, cancelled, expired, incomplete or timed out."""

    pass


class OpenAIError(TransportError, AIInteractionError):
    """Error from OpenAI API calls made during an AI round-trip."""

    pass


class AttachmentError(AIInteractionError):
    """The activity document could not be written to a local temp file."""

    pass


class SummaryValidationError(TimelineSummaryError):
    """AI output was obtained but does not have the structure needed to persist it."""

    pass


# =============================================================================
# Persistence / Notification Errors
# =============================================================================


class PersistenceError(TimelineSummaryError):
    """Bulk save failed at the transport level."""

    pass


class NotificationError(TimelineSummaryError):
    """Callback delivery failed. Always logged and swallowed."""

    pass


# =============================================================================
# Partial Success Handling
# =============================================================================


@dataclass
class ItemResult:
    """Result for a single record in a bulk operation."""

    item_id: str | None
    success: bool
    error: TimelineSummaryError | None = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class PartialSuccessResult:
    """
    Result of a bulk operation that may partially succeed.

    Allows processing to continue even when some records fail,
    while preserving error context for debugging.
    """

    succeeded: list[ItemResult] = field(default_factory=list)
    failed: list[ItemResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total_count(self) -> int:
        return self.success_count + self.failure_count

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    def add_success(
        self,
        item_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Record a successful item."""
        self.succeeded.append(
            ItemResult(item_id=item_id, success=True, data=data or {})
        )

    def add_failure(
        self,
        error: TimelineSummaryError,
        item_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Record a failed item."""
        self.failed.append(
            ItemResult(item_id=item_id, success=False, error=error, data=data or {})
        )


# =============================================================================
# Error Handling Utilities
# =============================================================================


def wrap_openai_error(exc: Exception, context: dict[str, Any] | None = None) -> OpenAIError:
    """
    Wrap an OpenAI SDK exception in our typed error hierarchy.

    Args:
        exc: The original exception
        context: Additional context for debugging

    Returns:
        OpenAIError carrying the original error in its context
    """
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    return OpenAIError(
        f"OpenAI API error: {exc}",
        context=ctx,
    )


def wrap_salesforce_error(exc: Exception, context: dict[str, Any] | None = None) -> SalesforceError:
    """
    Wrap an httpx exception raised while talking to Salesforce.

    Salesforce error bodies are lists of ``{"errorCode", "message"}``;
    when the response carries one, its first entry is surfaced.
    """
    ctx = context or {}
    ctx['original_error'] = str(exc)
    ctx['error_type'] = type(exc).__name__

    response = getattr(exc, 'response', None)
    if response is not None:
        ctx['status_code'] = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, list) and body and isinstance(body[0], dict):
            ctx['error_code'] = body[0].get('errorCode')
            return SalesforceError(
                f"Salesforce API error: {body[0].get('message', exc)}",
                context=ctx,
            )

    return SalesforceError(
        f"Salesforce API error: {exc}",
        context=ctx,
    )
