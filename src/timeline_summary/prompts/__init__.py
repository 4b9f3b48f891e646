"""
Function schemas and prompts for the timeline summary pipeline.
"""

from .schemas import (
    MONTHLY_FUNCTION_NAME,
    QUARTERLY_FUNCTION_NAME,
    MONTHLY_SUMMARY_SCHEMA,
    QUARTERLY_SUMMARY_SCHEMA,
    default_monthly_schema,
    default_quarterly_schema,
)
from .summary_prompts import (
    MONTHLY_ASSISTANT_INSTRUCTIONS,
    QUARTERLY_ASSISTANT_INSTRUCTIONS,
    ATTACHMENT_INSTRUCTION,
    build_monthly_prompt,
    build_inline_prompt,
    build_quarterly_prompt,
    monthly_assistant_name,
    quarterly_assistant_name,
)

__all__ = [
    # Schemas
    'MONTHLY_FUNCTION_NAME',
    'QUARTERLY_FUNCTION_NAME',
    'MONTHLY_SUMMARY_SCHEMA',
    'QUARTERLY_SUMMARY_SCHEMA',
    'default_monthly_schema',
    'default_quarterly_schema',
    # Prompts
    'MONTHLY_ASSISTANT_INSTRUCTIONS',
    'QUARTERLY_ASSISTANT_INSTRUCTIONS',
    'ATTACHMENT_INSTRUCTION',
    'build_monthly_prompt',
    'build_inline_prompt',
    'build_quarterly_prompt',
    'monthly_assistant_name',
    'quarterly_assistant_name',
]
