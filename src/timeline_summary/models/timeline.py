"""
Persisted summary records and run outcome enums.

A PeriodSummary is one period's result ready to be written to the
``Timeline_Summary__c`` object; records are keyed by
(parent account, year, category, period label).
"""

import json
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SummaryCategory(str, Enum):
    """Value of ``Summary_Category__c``."""

    MONTHLY = 'Monthly'
    QUARTERLY = 'Quarterly'


class ProcessResult(str, Enum):
    """Overall outcome reported in the callback."""

    SUCCESS = 'Success'
    PARTIAL_SUCCESS = 'PartialSuccess'
    FAILED = 'Failed'


class PeriodSummary(BaseModel):
    """
    One period's summary, mapped onto the Salesforce record schema.

    ``period_label`` is the full month name (``January``) for monthly
    records and the quarter (``Q1``) for quarterly ones.
    """

    year: int
    period_label: str
    category: SummaryCategory
    summary_json: str | None = Field(default=None, description='Full AI output as JSON')
    summary_html: str | None = Field(default=None, description='Narrative HTML')
    start_date: date | None = None
    record_count: int | None = None

    @property
    def lookup_key(self) -> str:
        """Existing-record lookup key: ``Jan 2024`` or ``Q1 2024``."""
        if self.category is SummaryCategory.QUARTERLY:
            return f'{self.period_label} {self.year}'
        return f'{self.period_label[:3]} {self.year}'

    def narrative_html(self) -> str:
        """
        The narrative, falling back to the known JSON paths when absent.

        Monthly output keeps it at ``summary``; quarterly output at
        ``yearlySummary[0].quarters[0].summary``.
        """
        if self.summary_html:
            return self.summary_html
        if not self.summary_json:
            return ''
        try:
            parsed = json.loads(self.summary_json)
        except ValueError:
            return ''
        if not isinstance(parsed, dict):
            return ''

        html = parsed.get('summary')
        if isinstance(html, str) and html:
            return html
        if self.category is SummaryCategory.QUARTERLY:
            try:
                html = parsed['yearlySummary'][0]['quarters'][0]['summary']
            except (KeyError, IndexError, TypeError):
                return ''
            if isinstance(html, str):
                return html
        return ''

    def to_salesforce_fields(self, parent_id: str, max_chars: int) -> dict[str, Any]:
        """Field map for ``Timeline_Summary__c``; long text is capped at ``max_chars``."""
        quarterly = self.category is SummaryCategory.QUARTERLY
        html = self.narrative_html()
        return {
            'Parent_Id__c': parent_id,
            'Account__c': parent_id,
            'Month__c': None if quarterly else self.period_label,
            'FY_Quarter__c': self.period_label if quarterly else None,
            'Year__c': str(self.year),
            'Summary_Category__c': self.category.value,
            'Summary__c': self.summary_json[:max_chars] if self.summary_json else None,
            'Summary_Details__c': html[:max_chars] if html else None,
            'Month_Date__c': self.start_date.isoformat() if self.start_date else None,
            'Number_of_Records__c': self.record_count,
        }
