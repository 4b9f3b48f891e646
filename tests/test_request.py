"""
Tests for request validation and the SOQL ordering check.
"""

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from timeline_summary.errors import ValidationError
from timeline_summary.models.request import SummaryRequest
from timeline_summary.prompts.schemas import (
    MONTHLY_FUNCTION_NAME,
    QUARTERLY_FUNCTION_NAME,
    default_monthly_schema,
)
from timeline_summary.soql import ensure_ascending_order, first_sort_key

QUERY = "SELECT Id, ActivityDate, Subject, Description FROM Task WHERE WhatId = '001xx' ORDER BY ActivityDate ASC"


def _payload(**overrides):
    payload = {
        'accountId': '001xx000003DGb0',
        'callbackUrl': 'https://example.my.salesforce.com/services/apexrest/summary/callback',
        'userPrompt': 'Summarize activities for {{YearMonth}}.',
        'userPromptQtr': 'Summarize {{Quarter}} {{Year}}.',
        'queryText': QUERY,
        'loggedinUserId': '005xx000001Sv6X',
    }
    payload.update(overrides)
    return payload


class TestSortKey:
    """Test ORDER BY parsing."""

    @pytest.mark.parametrize(
        'query, expected',
        [
            (QUERY, ('ActivityDate', 'ASC')),
            ('SELECT Id FROM Task ORDER BY ActivityDate', ('ActivityDate', 'ASC')),
            ('SELECT Id FROM Task ORDER BY ActivityDate DESC, Id', ('ActivityDate', 'DESC')),
            ('SELECT Id FROM Task order by Task.ActivityDate asc LIMIT 100', ('Task.ActivityDate', 'ASC')),
            ('SELECT Id FROM Task ORDER BY ActivityDate ASC NULLS LAST', ('ActivityDate', 'ASC')),
            ('SELECT Id FROM Task', None),
        ],
    )
    def test_first_sort_key(self, query, expected):
        assert first_sort_key(query) == expected

    def test_ascending_accepted(self):
        ensure_ascending_order(QUERY)
        ensure_ascending_order('SELECT Id FROM Task ORDER BY Task.ActivityDate')

    @pytest.mark.parametrize(
        'query',
        [
            'SELECT Id FROM Task',
            'SELECT Id FROM Task ORDER BY ActivityDate DESC',
            'SELECT Id FROM Task ORDER BY CreatedDate ASC, ActivityDate ASC',
        ],
    )
    def test_rejected(self, query):
        with pytest.raises(ValidationError):
            ensure_ascending_order(query)


class TestSummaryRequest:
    """Test inbound payload validation."""

    def test_minimal_payload_uses_default_schemas(self):
        request = SummaryRequest.model_validate(_payload())

        assert request.account_id == '001xx000003DGb0'
        assert request.existing_records == {}
        assert request.monthly_schema['name'] == MONTHLY_FUNCTION_NAME
        assert request.quarterly_schema['name'] == QUARTERLY_FUNCTION_NAME

    def test_json_string_fields_are_parsed(self):
        """The Apex caller serializes summaryMap and schemas as strings."""
        schema = default_monthly_schema()
        schema['description'] = 'custom'
        request = SummaryRequest.model_validate(
            _payload(
                summaryMap=json.dumps({'Jan 2024': 'a0X1', 'Q1 2024': 'a0X2'}),
                monthJSON=json.dumps(schema),
                qtrJSON='',
            )
        )

        assert request.existing_records == {'Jan 2024': 'a0X1', 'Q1 2024': 'a0X2'}
        assert request.monthly_schema['description'] == 'custom'
        assert request.quarterly_schema['name'] == QUARTERLY_FUNCTION_NAME

    def test_summary_map_drops_empty_ids(self):
        request = SummaryRequest.model_validate(_payload(summaryMap={'Jan 2024': '', 'Feb 2024': 'a0X3'}))

        assert request.existing_records == {'Feb 2024': 'a0X3'}

    @pytest.mark.parametrize('missing', ['accountId', 'callbackUrl', 'userPrompt', 'userPromptQtr', 'queryText', 'loggedinUserId'])
    def test_required_fields(self, missing):
        payload = _payload()
        del payload[missing]

        with pytest.raises(PydanticValidationError):
            SummaryRequest.model_validate(payload)

    def test_unsorted_query_rejected(self):
        with pytest.raises(PydanticValidationError, match='ActivityDate'):
            SummaryRequest.model_validate(_payload(queryText='SELECT Id FROM Task ORDER BY ActivityDate DESC'))

    def test_schema_with_wrong_name_rejected(self):
        with pytest.raises(PydanticValidationError, match='monthJSON'):
            SummaryRequest.model_validate(_payload(monthJSON={'name': 'something_else', 'parameters': {}}))

    def test_invalid_json_rejected(self):
        with pytest.raises(PydanticValidationError, match='summaryMap'):
            SummaryRequest.model_validate(_payload(summaryMap='{not json'))
