"""
Function schemas the assistants are forced to call.

These are the default output contracts; a request may override either
one, provided the override keeps the same function name.
"""

import copy
from typing import Any

from ..models.summary import KEY_THEMES, RECOMMENDED_ACTIONS, TONE_AND_PURPOSE

MONTHLY_FUNCTION_NAME = 'generate_monthly_activity_summary'
QUARTERLY_FUNCTION_NAME = 'generate_quarterly_activity_summary'


def _monthly_activity_list(description: str) -> dict[str, Any]:
    return {
        'type': 'array',
        'description': description,
        'items': {
            'type': 'object',
            'properties': {
                'Id': {
                    'type': 'string',
                    'description': 'Salesforce Id of the specific activity',
                },
                'LinkText': {
                    'type': 'string',
                    'description': "'MMM DD YYYY: Short Description (max 50 chars)' - Generate from ActivityDate, Subject, Description.",
                },
                'ActivityDate': {
                    'type': 'string',
                    'description': "Activity Date in 'YYYY-MM-DD' format. Must belong to the summarized month/year.",
                },
            },
            'required': ['Id', 'LinkText', 'ActivityDate'],
            'additionalProperties': False,
        },
    }


def _monthly_category(description: str, item_description: str, summary: str, activities: str) -> dict[str, Any]:
    return {
        'type': 'array',
        'description': description,
        'items': {
            'type': 'object',
            'description': item_description,
            'properties': {
                'Summary': {'type': 'string', 'description': summary},
                'ActivityList': _monthly_activity_list(activities),
            },
            'required': ['Summary', 'ActivityList'],
            'additionalProperties': False,
        },
    }


MONTHLY_SUMMARY_SCHEMA: dict[str, Any] = {
    'name': MONTHLY_FUNCTION_NAME,
    'description': (
        'Generates a structured monthly sales activity summary with insights and '
        'categorization based on provided activity data. Apply sub-theme '
        'segmentation within activityMapping.'
    ),
    'parameters': {
        'type': 'object',
        'properties': {
            'summary': {
                'type': 'string',
                'description': (
                    "HTML summary for the month. MUST have one H1 header 'Sales Activity "
                    "Summary for {Month} {Year}' (no bold) followed by a UL list of key insights."
                ),
            },
            'activityMapping': {
                'type': 'object',
                'description': (
                    'Activities categorized under predefined themes. Each category key holds '
                    'an array where each element represents a distinct sub-theme identified '
                    'within that category.'
                ),
                'properties': {
                    KEY_THEMES: _monthly_category(
                        "An array where each element represents a distinct sub-theme identified in customer interactions (e.g., 'Pricing', 'Support'). Generate multiple elements if multiple distinct themes are found.",
                        "Represents a single, specific sub-theme identified within 'Key Themes'. Contains a focused summary and ONLY the activities related to this sub-theme.",
                        "A concise summary describing this specific sub-theme ONLY (e.g., 'Discussions focused on contract renewal terms').",
                        'A list containing ONLY the activities specifically relevant to this sub-theme.',
                    ),
                    TONE_AND_PURPOSE: _monthly_category(
                        "An array where each element represents a distinct tone or strategic intent identified (e.g., 'Information Gathering', 'Negotiation'). Generate multiple elements if distinct patterns are found.",
                        'Represents a single, specific tone/purpose pattern. Contains a focused summary and ONLY the activities exhibiting this pattern.',
                        'A concise summary describing this specific tone/purpose ONLY.',
                        'A list containing ONLY the activities specifically exhibiting this tone/purpose.',
                    ),
                    RECOMMENDED_ACTIONS: _monthly_category(
                        "An array where each element represents a distinct type of recommended action or next step identified (e.g., 'Schedule Follow-up Demo', 'Send Proposal'). Generate multiple elements if distinct recommendations are found.",
                        'Represents a single, specific recommended action type. Contains a focused summary and ONLY the activities leading to this recommendation.',
                        'A concise summary describing this specific recommendation type ONLY.',
                        'A list containing ONLY the activities specifically related to this recommendation.',
                    ),
                },
                'required': [KEY_THEMES, TONE_AND_PURPOSE, RECOMMENDED_ACTIONS],
            },
            'activityCount': {
                'type': 'integer',
                'description': 'Total number of activities processed for the month (matching the input count).',
            },
        },
        'required': ['summary', 'activityMapping', 'activityCount'],
    },
}


QUARTERLY_SUMMARY_SCHEMA: dict[str, Any] = {
    'name': QUARTERLY_FUNCTION_NAME,
    'description': (
        'Aggregates provided monthly summaries (as JSON) into a structured quarterly '
        'report for a specific quarter, grouped by year.'
    ),
    'parameters': {
        'type': 'object',
        'properties': {
            'yearlySummary': {
                'type': 'array',
                'description': 'Quarterly summary data, grouped by year. Should typically contain only one year based on input.',
                'items': {
                    'type': 'object',
                    'properties': {
                        'year': {
                            'type': 'integer',
                            'description': 'The calendar year of the quarter being summarized.',
                        },
                        'quarters': {
                            'type': 'array',
                            'description': 'List containing the summary for the single quarter being processed.',
                            'items': {
                                'type': 'object',
                                'properties': {
                                    'quarter': {
                                        'type': 'string',
                                        'description': 'Quarter identifier (e.g., Q1, Q2, Q3, Q4) corresponding to the input monthly data.',
                                    },
                                    'summary': {
                                        'type': 'string',
                                        'description': "HTML summary for the quarter. MUST have one H1 header 'Sales Activity Summary for {Quarter} {Year}' (no bold) followed by a UL list of key aggregated insights.",
                                    },
                                    'activityMapping': {
                                        'type': 'array',
                                        'description': 'Aggregated activities categorized under predefined themes for the entire quarter.',
                                        'items': {
                                            'type': 'object',
                                            'description': 'Represents one main category for the quarter, containing an aggregated summary and a consolidated list of all relevant activities.',
                                            'properties': {
                                                'category': {
                                                    'type': 'string',
                                                    'description': f"Category name (Must be one of '{KEY_THEMES}', '{TONE_AND_PURPOSE}', '{RECOMMENDED_ACTIONS}').",
                                                },
                                                'summary': {
                                                    'type': 'string',
                                                    'description': 'Aggregated summary synthesizing findings for this category across the entire quarter, highlighting key quarterly sub-themes identified.',
                                                },
                                                'activityList': {
                                                    'type': 'array',
                                                    'description': 'Consolidated list of ALL activities for this category from the input monthly summaries for this quarter.',
                                                    'items': {
                                                        'type': 'object',
                                                        'properties': {
                                                            'id': {'type': 'string', 'description': 'Salesforce Activity ID (copied from monthly input).'},
                                                            'linkText': {'type': 'string', 'description': "'MMM DD YYYY: Short Description' (copied from monthly input)."},
                                                            'ActivityDate': {'type': 'string', 'description': "Activity Date in 'YYYY-MM-DD' format (copied from monthly input)."},
                                                        },
                                                        'required': ['id', 'linkText', 'ActivityDate'],
                                                        'additionalProperties': False,
                                                    },
                                                },
                                            },
                                            'required': ['category', 'summary', 'activityList'],
                                            'additionalProperties': False,
                                        },
                                    },
                                    'activityCount': {
                                        'type': 'integer',
                                        'description': 'Total number of unique activities aggregated for the quarter from monthly inputs.',
                                    },
                                    'startdate': {
                                        'type': 'string',
                                        'description': 'Start date of the quarter being summarized (YYYY-MM-DD).',
                                    },
                                },
                                'required': ['quarter', 'summary', 'activityMapping', 'activityCount', 'startdate'],
                            },
                        },
                    },
                    'required': ['year', 'quarters'],
                },
            },
        },
        'required': ['yearlySummary'],
    },
}


def default_monthly_schema() -> dict[str, Any]:
    """A fresh copy of the monthly function schema."""
    return copy.deepcopy(MONTHLY_SUMMARY_SCHEMA)


def default_quarterly_schema() -> dict[str, Any]:
    """A fresh copy of the quarterly function schema."""
    return copy.deepcopy(QUARTERLY_SUMMARY_SCHEMA)
