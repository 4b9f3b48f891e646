"""
Tests for the logging module.
"""

from timeline_summary.logging import (
    PipelineTimer,
    add_context_info,
    get_account_id,
    get_request_id,
    get_user_id,
    logging_context,
)


class TestLoggingContext:
    """Test logging context management."""

    def test_logging_context_sets_values(self):
        with logging_context(
            request_id="req_123",
            account_id="001xx000003DGb0",
            user_id="005xx000001Sv6X",
        ):
            assert get_request_id() == "req_123"
            assert get_account_id() == "001xx000003DGb0"
            assert get_user_id() == "005xx000001Sv6X"

    def test_logging_context_restores_values(self):
        with logging_context(request_id="outer"):
            with logging_context(request_id="inner"):
                assert get_request_id() == "inner"
            assert get_request_id() == "outer"

        assert get_request_id() is None

    def test_logging_context_partial_values(self):
        with logging_context(account_id="acct_only"):
            assert get_account_id() == "acct_only"
            assert get_request_id() is None
            assert get_user_id() is None

    def test_processor_injects_context(self):
        with logging_context(request_id="req_1", account_id="acct_1"):
            event = add_context_info(None, "info", {"event": "month_started"})

        assert event["request_id"] == "req_1"
        assert event["account_id"] == "acct_1"
        assert "user_id" not in event


class TestPipelineTimer:
    """Test pipeline timing functionality."""

    def test_timer_records_stages(self):
        timer = PipelineTimer()

        with timer.stage("month_processing"):
            pass

        assert timer.stages["month_processing"] >= 0

    def test_repeated_stages_accumulate(self):
        """One entry per stage name, summed across months."""
        timer = PipelineTimer()
        timer.record("month_processing", 10.0)

        with timer.stage("month_processing"):
            pass

        assert timer.stages["month_processing"] >= 10.0
        assert list(timer.stages) == ["month_processing"]

    def test_timer_summary(self):
        timer = PipelineTimer()
        timer.record("notify", 12.5)

        summary = timer.summary()

        assert summary["total_ms"] >= 0
        assert summary["stages"]["notify"] == 12.5
