"""
Pytest configuration and shared fixtures.

Key fixtures:
- pipeline_config: PipelineConfig writing temp files under tmp_path
- make_record: factory for ActivityRecord
- monthly_output / quarterly_output: valid function-call arguments
- make_run: factory for Assistants API run objects

No test talks to OpenAI or Salesforce; clients are AsyncMocks or
httpx clients over a MockTransport.
"""

import json
import sys
from datetime import date
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

# Load environment variables
from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

from timeline_summary.config import PipelineConfig
from timeline_summary.models.activity import ActivityRecord


@pytest.fixture
def pipeline_config(tmp_path) -> PipelineConfig:
    """Default thresholds with temp files isolated per test."""
    return PipelineConfig(temp_dir=tmp_path / 'attachments', run_timeout_seconds=5.0)


@pytest.fixture
def make_record():
    """Factory: make_record('2024-01-15', id='00T1') -> ActivityRecord."""

    def _make(activity_date: str | None, id: str = '00T000000000001', subject: str = 'Call', description: str = 'Discussed renewal'):
        return ActivityRecord.from_salesforce(
            {
                'Id': id,
                'ActivityDate': activity_date,
                'Subject': subject,
                'Description': description,
            }
        )

    return _make


def _monthly_output(month: str = 'January', count: int = 1, activity_id: str = '00T000000000001') -> dict[str, Any]:
    link = {'Id': activity_id, 'LinkText': f'{month[:3]} 15 2024: Renewal call', 'ActivityDate': '2024-01-15'}
    return {
        'summary': f'<h1>{month} overview</h1><ul><li>Renewal discussed</li></ul>',
        'activityMapping': {
            'Key Themes of Customer Interaction': [
                {'Summary': 'Renewal timeline', 'ActivityList': [link]},
            ],
            'Tone and Purpose of Interaction': [
                {'Summary': 'Collaborative', 'ActivityList': [link]},
            ],
            'Recommended Action and Next Steps': [
                {'Summary': 'Send proposal', 'ActivityList': [link]},
            ],
        },
        'activityCount': count,
    }


def _quarterly_output(year: int = 2024, quarter: str = 'Q1', count: int = 3) -> dict[str, Any]:
    start_month = {'Q1': 1, 'Q2': 4, 'Q3': 7, 'Q4': 10}[quarter]
    return {
        'yearlySummary': [
            {
                'year': year,
                'quarters': [
                    {
                        'quarter': quarter,
                        'summary': f'<h1>{quarter} {year}</h1><ul><li>Steady engagement</li></ul>',
                        'activityMapping': [
                            {
                                'category': 'Key Themes of Customer Interaction',
                                'summary': 'Renewal',
                                'activityList': [
                                    {
                                        'id': '00T000000000001',
                                        'linkText': 'Jan 15 2024: Renewal call',
                                        'ActivityDate': '2024-01-15',
                                    }
                                ],
                            }
                        ],
                        'activityCount': count,
                        'startdate': date(year, start_month, 1).isoformat(),
                    }
                ],
            }
        ]
    }


@pytest.fixture
def monthly_output():
    """Factory for valid monthly function arguments."""
    return _monthly_output


@pytest.fixture
def quarterly_output():
    """Factory for valid quarterly function arguments."""
    return _quarterly_output


@pytest.fixture
def make_run():
    """
    Factory for run objects as returned by create_and_poll.

    make_run(name, arguments) -> requires_action run with one tool call
    make_run(status='failed', error=('server_error', 'boom'))
    """

    def _make(
        function_name: str | None = None,
        arguments: dict[str, Any] | str | None = None,
        status: str = 'requires_action',
        error: tuple[str, str] | None = None,
        tool_calls: list[Any] | None = None,
    ):
        if tool_calls is None and function_name is not None:
            raw = arguments if isinstance(arguments, str) else json.dumps(arguments or {})
            tool_calls = [
                SimpleNamespace(
                    id='call_1',
                    function=SimpleNamespace(name=function_name, arguments=raw),
                )
            ]
        required_action = None
        if status == 'requires_action':
            required_action = SimpleNamespace(
                submit_tool_outputs=SimpleNamespace(tool_calls=tool_calls or [])
            )
        last_error = SimpleNamespace(code=error[0], message=error[1]) if error else None
        return SimpleNamespace(
            id='run_1',
            status=status,
            required_action=required_action,
            last_error=last_error,
            incomplete_details=None,
        )

    return _make
