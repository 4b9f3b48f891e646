"""
Inbound summary request, as posted to ``/generatesummary``.

Field names follow the Salesforce caller's payload. ``summaryMap``,
``monthJSON`` and ``qtrJSON`` may arrive either as JSON strings (the
Apex caller serializes them) or as objects.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import ValidationError
from ..prompts.schemas import (
    MONTHLY_FUNCTION_NAME,
    QUARTERLY_FUNCTION_NAME,
    default_monthly_schema,
    default_quarterly_schema,
)
from ..soql import ensure_ascending_order


def _load_json(value: Any, field_name: str) -> Any:
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            return json.loads(value)
        except ValueError as e:
            raise ValueError(f'{field_name} is not valid JSON: {e}') from e
    return value


class SummaryRequest(BaseModel):
    """Validated request to generate monthly and quarterly summaries for one account."""

    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(..., alias='accountId', min_length=1)
    callback_url: str = Field(..., alias='callbackUrl', min_length=1)
    monthly_prompt: str = Field(..., alias='userPrompt', min_length=1)
    quarterly_prompt: str = Field(..., alias='userPromptQtr', min_length=1)
    query: str = Field(..., alias='queryText', min_length=1)
    user_id: str = Field(..., alias='loggedinUserId', min_length=1)
    existing_records: dict[str, str] = Field(default_factory=dict, alias='summaryMap')
    monthly_schema: dict[str, Any] = Field(
        default_factory=default_monthly_schema, alias='monthJSON'
    )
    quarterly_schema: dict[str, Any] = Field(
        default_factory=default_quarterly_schema, alias='qtrJSON'
    )

    @field_validator('query')
    @classmethod
    def _query_sorted_ascending(cls, value: str) -> str:
        try:
            ensure_ascending_order(value)
        except ValidationError as e:
            raise ValueError(e.message) from e
        return value

    @field_validator('existing_records', mode='before')
    @classmethod
    def _parse_summary_map(cls, value: Any) -> Any:
        value = _load_json(value, 'summaryMap')
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError('summaryMap must be a JSON object of label to record id')
        return {str(k): str(v) for k, v in value.items() if v}

    @field_validator('monthly_schema', mode='before')
    @classmethod
    def _parse_monthly_schema(cls, value: Any) -> Any:
        value = _load_json(value, 'monthJSON')
        if value is None:
            return default_monthly_schema()
        return _check_schema_name(value, MONTHLY_FUNCTION_NAME, 'monthJSON')

    @field_validator('quarterly_schema', mode='before')
    @classmethod
    def _parse_quarterly_schema(cls, value: Any) -> Any:
        value = _load_json(value, 'qtrJSON')
        if value is None:
            return default_quarterly_schema()
        return _check_schema_name(value, QUARTERLY_FUNCTION_NAME, 'qtrJSON')


def _check_schema_name(value: Any, expected: str, field_name: str) -> dict[str, Any]:
    if not isinstance(value, dict) or value.get('name') != expected:
        raise ValueError(
            f'Provided {field_name} schema is invalid or missing the name {expected!r}'
        )
    return value
