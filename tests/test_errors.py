"""
Tests for the errors module.
"""

import httpx
import pytest

from timeline_summary.errors import (
    TimelineSummaryError,
    ValidationError,
    TransportError,
    SalesforceError,
    OpenAIError,
    AIInteractionError,
    AIContractViolation,
    WrongFunctionError,
    MalformedOutputError,
    NoFunctionCallError,
    AIRunFailedError,
    AttachmentError,
    SummaryValidationError,
    PersistenceError,
    PartialSuccessResult,
    wrap_openai_error,
    wrap_salesforce_error,
)


def _status_error(status_code: int, body) -> httpx.HTTPStatusError:
    request = httpx.Request('GET', 'https://example.my.salesforce.com/services/data/v59.0/query')
    response = httpx.Response(status_code, json=body, request=request)
    return httpx.HTTPStatusError('error', request=request, response=response)


class TestErrorHierarchy:
    """Test error class hierarchy."""

    def test_base_error_with_context(self):
        """Test that base error captures context."""
        error = TimelineSummaryError(
            "Something went wrong",
            context={"month": "January", "count": 42},
        )

        assert error.message == "Something went wrong"
        assert error.context == {"month": "January", "count": 42}
        assert "month" in str(error)

    def test_base_error_without_context(self):
        error = TimelineSummaryError("Simple error")

        assert error.context == {}
        assert str(error) == "Simple error"

    def test_transport_errors(self):
        assert isinstance(SalesforceError("x"), TransportError)
        assert isinstance(OpenAIError("x"), TransportError)

    def test_summarize_failures_are_ai_interaction_errors(self):
        """Every failure of an AI round-trip is an AIInteractionError."""
        for error in (OpenAIError("x"), AttachmentError("x"), AIRunFailedError("x")):
            assert isinstance(error, AIInteractionError)
        assert not isinstance(SalesforceError("x"), AIInteractionError)

    def test_ai_contract_violations(self):
        """Contract violations and failed runs are both AI interaction errors."""
        for error in (WrongFunctionError("x"), MalformedOutputError("x"), NoFunctionCallError("x")):
            assert isinstance(error, AIContractViolation)
            assert isinstance(error, AIInteractionError)
        assert isinstance(AIRunFailedError("x"), AIInteractionError)
        assert not isinstance(AIRunFailedError("x"), AIContractViolation)

    def test_outcome_errors_share_base(self):
        for error in (ValidationError("x"), SummaryValidationError("x"), PersistenceError("x")):
            assert isinstance(error, TimelineSummaryError)


class TestErrorWrapping:
    """Test error wrapping utilities."""

    def test_wrap_openai_generic(self):
        wrapped = wrap_openai_error(Exception("Unknown API error"), context={"assistant": "a"})

        assert type(wrapped) is OpenAIError
        assert wrapped.context["assistant"] == "a"
        assert wrapped.context["error_type"] == "Exception"

    def test_wrap_salesforce_error_body(self):
        """The first Salesforce error entry is surfaced with its code."""
        exc = _status_error(400, [{"errorCode": "MALFORMED_QUERY", "message": "unexpected token"}])
        wrapped = wrap_salesforce_error(exc)

        assert isinstance(wrapped, SalesforceError)
        assert "unexpected token" in wrapped.message
        assert wrapped.context["error_code"] == "MALFORMED_QUERY"
        assert wrapped.context["status_code"] == 400

    def test_wrap_salesforce_error_without_body(self):
        exc = httpx.ConnectError("connection refused")
        wrapped = wrap_salesforce_error(exc, context={"method": "GET"})

        assert "connection refused" in wrapped.message
        assert wrapped.context["method"] == "GET"
        assert "status_code" not in wrapped.context


class TestPartialSuccessResult:
    """Test partial success handling."""

    def test_empty_result(self):
        result = PartialSuccessResult()

        assert result.total_count == 0
        assert result.all_succeeded is True

    def test_mixed_outcome(self):
        result = PartialSuccessResult()
        result.add_success(item_id="Jan 2024")
        result.add_failure(PersistenceError("Failed"), item_id="Feb 2024")

        assert result.success_count == 1
        assert result.failure_count == 1
        assert result.all_succeeded is False
        assert result.failed[0].item_id == "Feb 2024"

