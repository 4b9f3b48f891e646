"""
Tests for the activity record source.
"""

from unittest.mock import MagicMock

import pytest

from timeline_summary.errors import SalesforceError, ValidationError
from timeline_summary.pipeline.record_source import RecordSource

QUERY = 'SELECT Id, ActivityDate, Subject, Description FROM Task ORDER BY ActivityDate ASC'


def _salesforce(pages, fail_after: int | None = None):
    async def query_pages(soql):
        for index, page in enumerate(pages):
            if fail_after is not None and index == fail_after:
                raise SalesforceError('Salesforce API error: connection reset')
            yield page

    salesforce = MagicMock()
    salesforce.query_pages = MagicMock(side_effect=query_pages)
    return salesforce


class TestRecordSource:
    @pytest.mark.asyncio
    async def test_streams_all_pages_in_order(self, pipeline_config):
        pages = [
            [{'Id': '1', 'ActivityDate': '2024-01-02', 'Subject': 'Intro'}],
            [{'Id': '2', 'ActivityDate': '2024-01-05'}, {'Id': '3', 'ActivityDate': '2024-02-01'}],
        ]
        source = RecordSource(_salesforce(pages), pipeline_config)

        records = [r async for r in source.stream(QUERY)]

        assert [r.id for r in records] == ['1', '2', '3']
        assert records[0].subject == 'Intro'
        assert records[1].subject is None

    @pytest.mark.asyncio
    async def test_rejects_unordered_query_before_fetching(self, pipeline_config):
        salesforce = _salesforce([])
        source = RecordSource(salesforce, pipeline_config)

        with pytest.raises(ValidationError):
            async for _ in source.stream('SELECT Id FROM Task'):
                pass

        salesforce.query_pages.assert_not_called()

    @pytest.mark.asyncio
    async def test_mid_stream_failure_propagates(self, pipeline_config):
        pages = [[{'Id': '1', 'ActivityDate': '2024-01-02'}], [{'Id': '2', 'ActivityDate': '2024-01-03'}]]
        source = RecordSource(_salesforce(pages, fail_after=1), pipeline_config)
        received = []

        with pytest.raises(SalesforceError):
            async for record in source.stream(QUERY):
                received.append(record.id)

        assert received == ['1']
