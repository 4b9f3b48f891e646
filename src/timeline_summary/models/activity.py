"""
Activity models for the timeline summary pipeline.

- ActivityRecord: one Salesforce Task/Event, trimmed to what the AI needs
- MonthBatch: a contiguous group of records for one (year, month)

Records are transient: each one lives only until the batch that holds
it has been summarized and persisted.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

MONTH_NAMES = (
    'January',
    'February',
    'March',
    'April',
    'May',
    'June',
    'July',
    'August',
    'September',
    'October',
    'November',
    'December',
)


def parse_activity_date(value: Any) -> date | None:
    """
    Parse a Salesforce ActivityDate (``YYYY-MM-DD``) or datetime string.

    Returns None for missing or unparseable values.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
    except ValueError:
        return None


def _truncate(value: str | None, limit: int) -> str | None:
    if not value:
        return None
    return value if len(value) <= limit else value[:limit]


class ActivityRecord(BaseModel):
    """
    A single CRM interaction log entry.

    ``activity_date`` is None when the source value is missing or could
    not be parsed; ``raw_activity_date`` keeps the original for logging.
    """

    id: str = Field(..., description='Salesforce record Id')
    activity_date: date | None = Field(default=None, description='Calendar date of the activity')
    raw_activity_date: str | None = Field(default=None, description='ActivityDate as received')
    subject: str | None = Field(default=None, description='Subject line, truncated')
    description: str | None = Field(default=None, description='Description body, truncated')

    @classmethod
    def from_salesforce(
        cls,
        record: dict[str, Any],
        max_subject_chars: int = 250,
        max_description_chars: int = 1000,
    ) -> 'ActivityRecord':
        """Build from a raw SOQL result row, keeping only essential fields."""
        raw_date = record.get('ActivityDate')
        return cls(
            id=record.get('Id') or 'Unknown',
            activity_date=parse_activity_date(raw_date),
            raw_activity_date=str(raw_date) if raw_date is not None else None,
            subject=_truncate(record.get('Subject'), max_subject_chars),
            description=_truncate(record.get('Description'), max_description_chars),
        )

    def to_prompt_dict(self) -> dict[str, Any]:
        """Fields as the monthly function schema refers to them."""
        return {
            'Id': self.id,
            'ActivityDate': self.activity_date.isoformat() if self.activity_date else None,
            'Subject': self.subject,
            'Description': self.description,
        }


@dataclass
class MonthBatch:
    """
    Records for one (year, month), in ascending date order.

    A month larger than the sub-batch size is split into several
    batches sharing the same label; ``part`` numbers them from 1.
    """

    year: int
    month_index: int
    records: list[ActivityRecord] = field(default_factory=list)
    part: int = 1

    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month_index]

    @property
    def label(self) -> str:
        """Display label, e.g. ``January 2024``."""
        return f'{self.month_name} {self.year}'

    @property
    def start_date(self) -> date:
        return date(self.year, self.month_index + 1, 1)

    @property
    def period(self) -> tuple[int, int]:
        return (self.year, self.month_index)

    def __len__(self) -> int:
        return len(self.records)
