"""
Assistant instructions and prompt builders for the summarization calls.

The caller supplies the user prompt templates; this module fills their
placeholders and appends the data each call needs.
"""

import json
from typing import Any

# =============================================================================
# Assistant Instructions
# =============================================================================

MONTHLY_ASSISTANT_INSTRUCTIONS = (
    'You are an AI assistant specialized in analyzing raw Salesforce activity data '
    'for a single month and generating structured JSON summaries using the provided '
    "function 'generate_monthly_activity_summary'. Apply sub-theme segmentation within "
    'the activityMapping as described in the function schema. Focus on extracting key '
    'themes, tone, and recommended actions.'
)

QUARTERLY_ASSISTANT_INSTRUCTIONS = (
    'You are an AI assistant specialized in aggregating pre-summarized monthly '
    'Salesforce activity data (provided as JSON in the prompt) into a structured '
    'quarterly JSON summary for a specific quarter using the provided function '
    "'generate_quarterly_activity_summary'. Consolidate insights and activity lists "
    'accurately based on the input monthly summaries.'
)

# =============================================================================
# Templates
# =============================================================================

INLINE_DATA_TEMPLATE = '{prompt}\n\nHere is the activity data to process:\n```json\n{data}\n```'

ATTACHMENT_INSTRUCTION = '\n\nPlease analyze the activity data provided in the attached file.'

QUARTERLY_DATA_TEMPLATE = (
    '{prompt}\n\nAggregate the following monthly summary data provided below for '
    '{quarter_key}:\n```json\n{data}\n```'
)

ACTIVITY_SEPARATOR = '\n\n---\n\n'


def monthly_assistant_name(account_id: str, year: int, month_name: str) -> str:
    return f'Monthly Summarizer {account_id} {year}-{month_name}'


def quarterly_assistant_name(account_id: str, year: int, quarter: str) -> str:
    return f'Quarterly Summarizer {account_id} {year}-{quarter}'


def build_monthly_prompt(template: str, month_name: str, year: int) -> str:
    """Fill ``{{YearMonth}}`` with e.g. ``January 2024``."""
    return template.replace('{{YearMonth}}', f'{month_name} {year}')


def build_inline_prompt(prompt: str, records: list[dict[str, Any]]) -> str:
    """Embed the serialized records directly in the prompt."""
    data = json.dumps(records, ensure_ascii=False, separators=(',', ':'))
    return INLINE_DATA_TEMPLATE.format(prompt=prompt, data=data)


def build_quarterly_prompt(
    template: str,
    quarter: str,
    year: int,
    monthly_json: str,
) -> str:
    """Fill ``{{Quarter}}``/``{{Year}}`` and append the monthly results."""
    prompt = template.replace('{{Quarter}}', quarter).replace('{{Year}}', str(year))
    return QUARTERLY_DATA_TEMPLATE.format(
        prompt=prompt,
        quarter_key=f'{year}-{quarter}',
        data=monthly_json,
    )
