"""Static source for testing and demos."""

from typing import Optional

from fitscore.models import DocumentRecord, SourceRecord, TabularRecord
from .base import HistoricalSource

SAMPLE_HEADERS = [
    "Customer Name",
    "Industry",
    "Total Users",
    "Office Users",
    "Field Users",
    "Services",
    "Integrations",
    "Fit Score",
    "Health",
    "ARR",
    "Days to Onboard",
]

SAMPLE_DOCUMENT = """Customer Fit Analysis

Customer Name: Summit Plumbing Co
Industry: Plumbing
Total Users: 80
Back Office Users: 15
Field Users: 65
Fit Score: 82
Services:
- Residential plumbing
- Drain cleaning
- Water heater installation
Integrations: QuickBooks, Google Calendar
"""


class StaticSource(HistoricalSource):
    """Source that returns predefined records."""

    name = "static"

    def __init__(self, records: Optional[list[SourceRecord]] = None, name: Optional[str] = None):
        if name:
            self.name = name
        self._records = records if records is not None else self._default_records()

    async def fetch(self) -> list[SourceRecord]:
        return list(self._records)

    def _default_records(self) -> list[SourceRecord]:
        """A handful of field service customers."""
        rows = [
            ["Arctic Air HVAC", "HVAC", 120, 20, 100, "HVAC repair, Installation", "QuickBooks", 85, "Excellent", "$48,000", 45],
            ["BrightSpark Electric", "Electrical", 60, 15, 45, "Electrical repair", "Xero, Google Calendar", 78, "Good", "$22,000", 75],
            ["GreenLeaf Landscaping", "Landscaping", 200, 40, 160, "Lawn care; Irrigation", "", 70, "Good", "$36,000", 90],
            ["CloudDesk", "Software / SaaS", 300, 290, 10, "Software development", "Jira, Slack, GitHub, Salesforce", 20, "Poor", "$15,000", 120],
        ]
        records: list[SourceRecord] = [
            TabularRecord(source=self.name, headers=SAMPLE_HEADERS, row=row) for row in rows
        ]
        records.append(DocumentRecord(source=self.name, name="Summit Plumbing analysis", content=SAMPLE_DOCUMENT))
        return records
