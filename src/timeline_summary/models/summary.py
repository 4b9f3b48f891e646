"""
Structured AI outputs for the monthly and quarterly summarization calls.

The monthly and quarterly models mirror the function schemas in
``prompts.schemas``. Unknown keys are preserved (``extra='allow'``) so a
result re-serializes to the same JSON the model produced, which is what
gets persisted and what the quarterly call aggregates.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

KEY_THEMES = 'Key Themes of Customer Interaction'
TONE_AND_PURPOSE = 'Tone and Purpose of Interaction'
RECOMMENDED_ACTIONS = 'Recommended Action and Next Steps'

SUMMARY_CATEGORIES = (KEY_THEMES, TONE_AND_PURPOSE, RECOMMENDED_ACTIONS)

_LIST_BLOCK = re.compile(r'<ul[^>]*>(.*?)</ul>', re.IGNORECASE | re.DOTALL)


# =============================================================================
# Monthly
# =============================================================================


class ActivityLink(BaseModel):
    """Reference to one activity inside a monthly sub-theme."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    id: str = Field(..., alias='Id')
    link_text: str = Field(..., alias='LinkText')
    activity_date: str = Field(..., alias='ActivityDate')


class SubTheme(BaseModel):
    """One sub-theme within a category, with only its activities."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    summary: str = Field(..., alias='Summary')
    activity_list: list[ActivityLink] = Field(default_factory=list, alias='ActivityList')


class MonthlySummaryResult(BaseModel):
    """Arguments of ``generate_monthly_activity_summary``."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    summary: str = Field(..., description='HTML: one H1 heading followed by a UL list')
    activity_mapping: dict[str, list[SubTheme]] = Field(..., alias='activityMapping')
    activity_count: int = Field(..., alias='activityCount')

    @property
    def missing_categories(self) -> list[str]:
        return [c for c in SUMMARY_CATEGORIES if c not in self.activity_mapping]

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict using the schema's key names."""
        return self.model_dump(mode='json', by_alias=True)


def merge_narratives(first: str, second: str) -> str:
    """
    Combine two narrative HTML fragments under the first one's heading.

    The bullet items of ``second`` are appended to the last list of
    ``first``. Without a list on both sides the fragments are concatenated.
    """
    if not first:
        return second
    if not second:
        return first

    first_lists = list(_LIST_BLOCK.finditer(first))
    second_items = ''.join(m.group(1) for m in _LIST_BLOCK.finditer(second))
    if not first_lists or not second_items:
        return f'{first}\n{second}'

    insert_at = first_lists[-1].end(1)
    return first[:insert_at] + second_items + first[insert_at:]


def merge_monthly_results(
    base: MonthlySummaryResult,
    addition: MonthlySummaryResult,
) -> MonthlySummaryResult:
    """
    Merge the outputs of two sub-batches of the same month.

    Category lists are concatenated, counts summed and narrative bullets
    combined under the first heading.
    """
    mapping: dict[str, list[SubTheme]] = {
        category: list(themes) for category, themes in base.activity_mapping.items()
    }
    for category, themes in addition.activity_mapping.items():
        mapping.setdefault(category, []).extend(themes)

    return base.model_copy(
        update={
            'summary': merge_narratives(base.summary, addition.summary),
            'activity_mapping': mapping,
            'activity_count': base.activity_count + addition.activity_count,
        }
    )


# =============================================================================
# Quarterly
# =============================================================================


class QuarterActivityLink(BaseModel):
    """Reference to one activity in a quarterly category."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    id: str
    link_text: str = Field(..., alias='linkText')
    activity_date: str = Field(..., alias='ActivityDate')


class QuarterCategory(BaseModel):
    """Aggregated summary and consolidated activities for one category."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    category: str
    summary: str
    activity_list: list[QuarterActivityLink] = Field(default_factory=list, alias='activityList')


class QuarterSummary(BaseModel):
    """Summary for a single quarter."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    quarter: str
    summary: str
    activity_mapping: list[QuarterCategory] = Field(default_factory=list, alias='activityMapping')
    activity_count: int = Field(..., alias='activityCount')
    startdate: str


class YearSummary(BaseModel):
    """Quarters grouped under their calendar year."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    year: int
    quarters: list[QuarterSummary] = Field(default_factory=list)


class QuarterlySummaryResult(BaseModel):
    """Arguments of ``generate_quarterly_activity_summary``."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    yearly_summary: list[YearSummary] = Field(..., alias='yearlySummary')

    def find_quarter(self, year: int, quarter: str) -> QuarterSummary | None:
        """Return the entry for (year, quarter), if the model produced one."""
        for year_summary in self.yearly_summary:
            if year_summary.year != year:
                continue
            for quarter_summary in year_summary.quarters:
                if quarter_summary.quarter.strip().upper() == quarter:
                    return quarter_summary
        return None


@dataclass
class QuarterAggregationInput:
    """Monthly results belonging to one quarter, in the order they completed."""

    year: int
    quarter: str
    monthly_results: list[MonthlySummaryResult] = field(default_factory=list)

    @property
    def key(self) -> str:
        """Quarter key, e.g. ``2024-Q1``."""
        return f'{self.year}-{self.quarter}'

    @property
    def label(self) -> str:
        """Display label, e.g. ``Q1 2024``."""
        return f'{self.quarter} {self.year}'

    def to_json(self) -> str:
        return json.dumps([r.to_payload() for r in self.monthly_results], indent=2)
