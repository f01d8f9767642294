"""Tests for historical record normalization and corpus aggregation."""

import asyncio

from fitscore.cache import TTLCache
from fitscore.connectors import (
    CsvFormSource,
    CsvSheetSource,
    DocumentDirectorySource,
    HistoricalSource,
    StaticSource,
)
from fitscore.historical import (
    HistoricalAggregator,
    extract_labeled_list,
    match_header,
    normalize_document,
    normalize_form,
    normalize_tabular,
    TABULAR_RULES,
)
from fitscore.models import DocumentRecord, FormRecord, HistoricalCustomerRecord, TabularRecord

SHEET_HEADERS = ["Customer Name", "Industry", "Total Users", "Office Staff", "Field Staff", "Services", "Fit Score", "Customer Health"]

ANALYSIS_DOC = """Customer Fit Analysis

Customer Name: Summit Plumbing Co
Industry: Plumbing
Total Users: 80
Back Office Users: 15
Field Users: 65
Fit Score: 82
Services:
- Residential plumbing
- Drain cleaning

Key Features: Scheduling, Invoicing
Integrations: QuickBooks; Google Calendar
"""


class FailingSource(HistoricalSource):
    name = "broken"

    async def fetch(self):
        raise ConnectionError("sheet unavailable")


class CountingSource(StaticSource):
    def __init__(self, records):
        super().__init__(records, name="counting")
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        return await super().fetch()


def make_row(**overrides) -> TabularRecord:
    values = dict(zip(SHEET_HEADERS, ["Arctic Air", "HVAC", "100", "20", "80", "HVAC repair; Installation", "85", "good"]))
    values.update(overrides)
    return TabularRecord(source="sheet", headers=SHEET_HEADERS, row=[values[h] for h in SHEET_HEADERS])


class TestHeaderMatching:
    """Header keyword rules."""

    def test_first_rule_wins(self):
        assert match_header("Customer Health", TABULAR_RULES) == "health"
        assert match_header("Customer Name", TABULAR_RULES) == "customer_name"
        assert match_header("Total Users", TABULAR_RULES) == "total"
        assert match_header("Field Staff", TABULAR_RULES) == "field"
        assert match_header("Notes", TABULAR_RULES) is None


class TestNormalizeTabular:
    """Spreadsheet rows."""

    def test_row_to_record(self):
        record = normalize_tabular(make_row())

        assert record.customer_name == "Arctic Air"
        assert record.user_count.total == 100
        assert record.user_count.back_office == 20
        assert record.user_count.field == 80
        assert record.services == ["HVAC repair", "Installation"]
        assert record.fit_score == 85
        assert record.business_metrics.health == "Good"
        assert record.source == "sheet"

    def test_row_without_name_skipped(self):
        assert normalize_tabular(make_row(**{"Customer Name": ""})) is None

    def test_short_row(self):
        record = normalize_tabular(TabularRecord(headers=SHEET_HEADERS, row=["Arctic Air", "HVAC"]))
        assert record.industry == "HVAC"
        assert record.user_count.total == 0


class TestNormalizeForm:
    """Questionnaire responses."""

    def test_broader_vocabulary(self):
        headers = [
            "What is your business name?",
            "Which sector do you work in?",
            "How many office staff do you have?",
            "How many field technicians do you have?",
            "How many employees in total?",
            "What services do you offer?",
            "What software systems do you use today?",
            "What do you need most?",
        ]
        row = ["Polar Heating", "HVAC", "10", "40", "50", "Heating, Cooling", "Xero, Jobber", "Dispatch; Quotes"]
        record = normalize_form(FormRecord(source="form", headers=headers, row=row))

        assert record.customer_name == "Polar Heating"
        assert record.industry == "HVAC"
        assert record.user_count.back_office == 10
        assert record.user_count.field == 40
        assert record.user_count.total == 50
        assert record.services == ["Heating", "Cooling"]
        assert record.requirements.integration_names == ["Xero", "Jobber"]
        assert record.requirements.key_features == ["Dispatch", "Quotes"]


class TestNormalizeDocument:
    """Free-text analysis documents."""

    def test_analysis_document(self):
        record = normalize_document(DocumentRecord(source="docs", name="summit", content=ANALYSIS_DOC))

        assert record.customer_name == "Summit Plumbing Co"
        assert record.industry == "Plumbing"
        assert record.user_count.total == 80
        assert record.user_count.back_office == 15
        assert record.user_count.field == 65
        assert record.fit_score == 82
        assert record.services == ["Residential plumbing", "Drain cleaning"]
        assert record.requirements.key_features == ["Scheduling", "Invoicing"]
        assert record.requirements.integration_names == ["QuickBooks", "Google Calendar"]

    def test_name_from_document_title(self):
        doc = DocumentRecord(name="Fit Analysis for Polar Heating - 2024", content="Customer Fit\nIndustry: HVAC")
        assert normalize_document(doc).customer_name == "Polar Heating"

    def test_unrelated_document_ignored(self):
        doc = DocumentRecord(name="minutes", content="Customer Name: Someone\nIndustry: HVAC")
        assert normalize_document(doc) is None

    def test_document_without_name_ignored(self):
        doc = DocumentRecord(name="notes", content="Customer Analysis\nIndustry: HVAC")
        assert normalize_document(doc) is None

    def test_labeled_list_styles(self):
        assert extract_labeled_list("Services: A, B; C", "Services?") == ["A", "B", "C"]
        assert extract_labeled_list("Services:\n• A\n* B\nNext: x", "Services?") == ["A", "B"]
        assert extract_labeled_list("Nothing here", "Services?") == []


class TestAggregator:
    """Corpus collection, statistics and formatting."""

    def test_collects_all_record_kinds(self):
        corpus = asyncio.run(HistoricalAggregator([StaticSource()]).get_corpus())
        names = [r.customer_name for r in corpus]

        assert "Arctic Air HVAC" in names
        assert "Summit Plumbing Co" in names
        assert all(isinstance(r, HistoricalCustomerRecord) for r in corpus)

    def test_failing_source_skipped(self):
        aggregator = HistoricalAggregator([FailingSource(), StaticSource([make_row()])])
        corpus = asyncio.run(aggregator.get_corpus())
        assert [r.customer_name for r in corpus] == ["Arctic Air"]

    def test_corpus_cached(self):
        source = CountingSource([make_row()])
        aggregator = HistoricalAggregator([source], cache=TTLCache(60))

        asyncio.run(aggregator.get_corpus())
        asyncio.run(aggregator.get_corpus())
        assert source.calls == 1

        aggregator.cache.invalidate()
        asyncio.run(aggregator.get_corpus())
        assert source.calls == 2

    def test_statistics(self):
        corpus = [
            HistoricalCustomerRecord(customer_name="A", industry="HVAC/Plumbing", fit_score=80),
            HistoricalCustomerRecord(customer_name="B", industry="HVAC", fit_score=71),
            HistoricalCustomerRecord(customer_name="C", industry="Electrical", fit_score=0),
        ]
        stats = HistoricalAggregator.statistics(corpus, top_n=2)

        assert stats.total_customers == 3
        assert stats.average_fit_score == 76
        assert stats.top_industries == [("HVAC", 2), ("Plumbing", 1)]

    def test_statistics_without_scores(self):
        stats = HistoricalAggregator.statistics([HistoricalCustomerRecord(customer_name="A")])
        assert stats.average_fit_score is None
        assert stats.top_industries == []

    def test_format_for_prompt(self):
        aggregator = HistoricalAggregator([])
        corpus = [normalize_tabular(make_row())]
        text = aggregator.format_for_prompt(corpus)

        assert "Total customers in database: 1" in text
        assert "Top industries: HVAC (1 customer)" in text
        assert "Customer: Arctic Air" in text
        assert aggregator.format_for_prompt([]) == "No historical data available."


class TestFileSources:
    """CSV and document directory sources."""

    def test_csv_sheet(self, tmp_path):
        path = tmp_path / "customers.csv"
        path.write_text(",".join(SHEET_HEADERS) + "\nArctic Air,HVAC,100,20,80,HVAC repair,85,Good\n,,,,,,,\n")

        records = asyncio.run(CsvSheetSource(path).fetch())
        assert len(records) == 1
        assert records[0].kind == "tabular"
        assert normalize_tabular(records[0]).customer_name == "Arctic Air"

    def test_csv_form(self, tmp_path):
        path = tmp_path / "responses.csv"
        path.write_text("Company,Sector\nPolar Heating,HVAC\n")

        records = asyncio.run(CsvFormSource(path).fetch())
        assert records[0].kind == "form"
        assert records[0].source == "form:responses.csv"

    def test_document_directory(self, tmp_path):
        (tmp_path / "summit.txt").write_text(ANALYSIS_DOC)
        (tmp_path / "image.png").write_bytes(b"\x89PNG")

        records = asyncio.run(DocumentDirectorySource(tmp_path).fetch())
        assert [r.name for r in records] == ["summit"]

    def test_missing_directory_isolated(self, tmp_path):
        aggregator = HistoricalAggregator([DocumentDirectorySource(tmp_path / "missing")])
        assert asyncio.run(aggregator.get_corpus()) == []
