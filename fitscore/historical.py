"""Historical customer corpus: normalization of raw source records and aggregation."""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Optional

from fitscore.cache import TTLCache
from fitscore.config import settings
from fitscore.connectors import HistoricalSource
from fitscore.models import (
    DocumentRecord,
    FormRecord,
    HistoricalCustomerRecord,
    SourceRecord,
    TabularRecord,
)

logger = logging.getLogger(__name__)

HISTORICAL_CACHE_KEY = "historical"

# Header rules: (canonical field, keyword groups). Every group must match
# (any alternative within a group). First matching rule wins, and the
# name rule is last so "Customer Health" is not read as a name.
TABULAR_RULES = [
    ("fit_score", [r"fit", r"score"]),
    ("health", [r"health"]),
    ("arr", [r"\barr\b|revenue|contract value"]),
    ("days_to_onboard", [r"onboard|days to"]),
    ("retention_risk", [r"retention|churn"]),
    ("industry", [r"industry"]),
    ("total", [r"total", r"user|employee|staff|headcount"]),
    ("back_office", [r"office|admin", r"staff|user|employee"]),
    ("field", [r"field|technician", r"staff|user|employee|worker"]),
    ("services", [r"service"]),
    ("key_features", [r"requirement|feature"]),
    ("integrations", [r"integration"]),
    ("customer_name", [r"company|customer"]),
]

# Questionnaire headers are phrased as questions, so forms take a broader vocabulary
FORM_RULES = [
    ("fit_score", [r"fit", r"score"]),
    ("health", [r"health"]),
    ("arr", [r"\barr\b|revenue|contract value|budget"]),
    ("days_to_onboard", [r"onboard|days to|go[- ]live"]),
    ("retention_risk", [r"retention|churn"]),
    ("industry", [r"industry|sector|vertical"]),
    ("back_office", [r"office|admin", r"staff|user|employee|people"]),
    ("field", [r"field|technician", r"staff|user|employee|worker|people|tech"]),
    ("total", [r"total|how many", r"user|employee|staff|people"]),
    ("services", [r"service|offering"]),
    ("key_features", [r"requirement|feature|need|functionality"]),
    ("integrations", [r"integration|connect|software|system"]),
    ("customer_name", [r"company|customer|business|organi[sz]ation"]),
]

LIST_FIELDS = {"services", "key_features", "integrations"}

DOCUMENT_MARKERS = ("Customer Analysis", "Fit Analysis", "Customer Fit")
BULLET_PATTERN = re.compile(r"^\s*[•\-*]\s*")

DOC_NAME_PATTERN = re.compile(r"Analysis(?:\s+for)?\s+([^-\n]+)", re.I)
DOC_SCALAR_PATTERNS = {
    "customer_name": re.compile(r"^\s*(?:Customer|Company)(?:\s+Name)?:\s*([^\n]+)", re.I | re.M),
    "industry": re.compile(r"^\s*Industry:\s*([^\n]+)", re.I | re.M),
    "total": re.compile(r"^\s*(?:Total\s+)?Users?(?:\s+Count)?:\s*(\d+)", re.I | re.M),
    "back_office": re.compile(r"^\s*(?:Back\s+)?Office\s+(?:Staff|Users?):\s*(\d+)", re.I | re.M),
    "field": re.compile(r"^\s*(?:Field|Technician)\s+(?:Staff|Users?):\s*(\d+)", re.I | re.M),
    "fit_score": re.compile(r"Fit\s+Score:?\s*(\d+)", re.I),
    "health": re.compile(r"^\s*(?:Customer\s+)?Health:\s*(\w+)", re.I | re.M),
    "arr": re.compile(r"^\s*ARR:\s*\$?([\d,.]+)", re.I | re.M),
    "days_to_onboard": re.compile(r"Days\s+to\s+Onboard:\s*(\d+)", re.I),
}
DOC_LIST_LABELS = {
    "services": r"Services?(?:\s+Types?)?",
    "key_features": r"Key\s+Requirements|Key\s+Features|Requirements",
    "integrations": r"Integrations?(?:\s+Requirements?)?",
}

TRUTHY = {"yes", "y", "true", "1", "high", "at risk"}


def split_values(value: Any) -> list[str]:
    return [v.strip() for v in re.split(r"[,;]", str(value)) if v.strip()]


def match_header(header: str, rules: list) -> Optional[str]:
    """Return the canonical field for a header, or None."""
    lowered = header.lower()
    for name, groups in rules:
        if all(re.search(group, lowered) for group in groups):
            return name
    return None


def build_record(fields: dict[str, Any], source: str) -> Optional[HistoricalCustomerRecord]:
    """Assemble a canonical record from canonical field values."""
    name = str(fields.get("customer_name") or "").strip()
    if not name:
        return None

    risk = fields.get("retention_risk")
    if isinstance(risk, str):
        risk = risk.strip().lower() in TRUTHY

    return HistoricalCustomerRecord(
        customer_name=name,
        industry=str(fields.get("industry") or "").strip(),
        user_count={
            "total": fields.get("total"),
            "back_office": fields.get("back_office"),
            "field": fields.get("field"),
        },
        services=fields.get("services") or [],
        requirements={
            "key_features": fields.get("key_features") or [],
            "integrations": fields.get("integrations") or [],
        },
        fit_score=fields.get("fit_score"),
        business_metrics={
            "arr": fields.get("arr"),
            "health": str(fields.get("health") or "").strip().capitalize(),
            "days_to_onboard": fields.get("days_to_onboard"),
            "retention_risk": bool(risk),
        },
        source=source,
    )


def _normalize_row(headers: list[str], row: list[Any], rules: list, source: str) -> Optional[HistoricalCustomerRecord]:
    fields: dict[str, Any] = {}
    for header, value in zip(headers, row):
        if value is None or str(value).strip() == "":
            continue
        name = match_header(header, rules)
        if name is None or name in fields:
            continue
        fields[name] = split_values(value) if name in LIST_FIELDS else value

    record = build_record(fields, source)
    if record is None:
        logger.debug(f"Skipping row without a customer name from {source}")
    return record


def normalize_tabular(record: TabularRecord) -> Optional[HistoricalCustomerRecord]:
    return _normalize_row(record.headers, record.row, TABULAR_RULES, record.source)


def normalize_form(record: FormRecord) -> Optional[HistoricalCustomerRecord]:
    return _normalize_row(record.headers, record.row, FORM_RULES, record.source)


def extract_labeled_list(content: str, label: str) -> list[str]:
    """Read a labeled list that is either inline ("A, B") or bulleted below the label."""
    pattern = re.compile(rf"^\s*(?:{label})\s*:[ \t]*(.*)$", re.I | re.M)
    match = pattern.search(content)
    if not match:
        return []

    inline = match.group(1).strip()
    if inline:
        return split_values(inline)

    items = []
    for line in content[match.end():].splitlines():
        if not line.strip():
            if items:
                break
            continue
        if not BULLET_PATTERN.match(line):
            break
        item = BULLET_PATTERN.sub("", line).strip()
        if item:
            items.append(item)
    return items


def normalize_document(record: DocumentRecord) -> Optional[HistoricalCustomerRecord]:
    """Best-effort extraction from an analysis write-up.

    Returns None for documents that are not customer analyses or that
    don't name a customer.
    """
    content = record.content or ""
    if not any(marker in content for marker in DOCUMENT_MARKERS):
        return None

    fields: dict[str, Any] = {}
    for name, pattern in DOC_SCALAR_PATTERNS.items():
        match = pattern.search(content)
        if match:
            fields[name] = match.group(1).strip()

    title_match = DOC_NAME_PATTERN.search(record.name or "")
    if title_match and title_match.group(1).strip():
        fields["customer_name"] = title_match.group(1).strip()

    for name, label in DOC_LIST_LABELS.items():
        values = extract_labeled_list(content, label)
        if values:
            fields[name] = values

    return build_record(fields, record.source)


NORMALIZERS = {
    "tabular": normalize_tabular,
    "form": normalize_form,
    "document": normalize_document,
}


def normalize_record(record: SourceRecord) -> Optional[HistoricalCustomerRecord]:
    return NORMALIZERS[record.kind](record)


@dataclass
class CorpusStatistics:
    """Aggregate figures over the whole corpus."""

    total_customers: int = 0
    average_fit_score: Optional[int] = None
    top_industries: list[tuple[str, int]] = field(default_factory=list)


class HistoricalAggregator:
    """Collect historical customers from all sources into one canonical corpus."""

    def __init__(
        self,
        sources: list[HistoricalSource],
        cache: Optional[TTLCache] = None,
    ):
        self.sources = sources
        self.cache = cache

    async def get_corpus(self) -> list[HistoricalCustomerRecord]:
        if self.cache is None:
            return await self._collect()
        return await self.cache.get_or_load(HISTORICAL_CACHE_KEY, self._collect)

    async def _collect(self) -> list[HistoricalCustomerRecord]:
        corpus = []
        for source in self.sources:
            try:
                raw = await source.fetch()
            except Exception as e:
                logger.warning(f"Historical source {source.name} failed: {e}")
                continue

            kept = 0
            for item in raw:
                try:
                    record = normalize_record(item)
                except Exception as e:
                    logger.warning(f"Could not normalize record from {source.name}: {e}")
                    continue
                if record is not None:
                    corpus.append(record)
                    kept += 1

            logger.info(f"Loaded {kept} of {len(raw)} records from {source.name}")

        if not corpus:
            logger.warning("No historical data found in any configured source")
        return corpus

    @staticmethod
    def statistics(
        corpus: list[HistoricalCustomerRecord],
        top_n: Optional[int] = None,
    ) -> CorpusStatistics:
        top_n = top_n or settings.top_industries_count

        scores = [r.fit_score for r in corpus if r.fit_score > 0]
        average = round(sum(scores) / len(scores)) if scores else None

        counts: Counter = Counter()
        for record in corpus:
            for industry in re.split(r"[/,]", record.industry):
                if industry.strip():
                    counts[industry.strip()] += 1

        return CorpusStatistics(
            total_customers=len(corpus),
            average_fit_score=average,
            top_industries=counts.most_common(top_n),
        )

    def format_for_prompt(self, corpus: list[HistoricalCustomerRecord]) -> str:
        """Render the corpus and its statistics as prompt context."""
        if not corpus:
            return "No historical data available."

        stats = self.statistics(corpus)
        industries = ", ".join(
            f"{name} ({count} customer{'s' if count > 1 else ''})"
            for name, count in stats.top_industries
        ) or "None identified"
        average = stats.average_fit_score if stats.average_fit_score is not None else "Unknown"

        summaries = []
        for r in corpus:
            users = r.user_count
            summaries.append(
                f"Customer: {r.customer_name}\n"
                f"Industry: {r.industry or 'Unknown'}\n"
                f"Size: {users.total} users ({users.field} field staff, {users.back_office} office staff)\n"
                f"Services: {', '.join(r.services) or 'None listed'}\n"
                f"Key Requirements: {', '.join(r.requirements.key_features) or 'None listed'}\n"
                f"Integrations: {', '.join(r.requirements.integration_names) or 'None listed'}\n"
                f"Fit Score: {r.fit_score or 'N/A'}"
            )

        header = (
            "HISTORICAL DATA SUMMARY:\n"
            f"- Total customers in database: {stats.total_customers}\n"
            f"- Average fit score: {average}\n"
            f"- Top industries: {industries}"
        )
        return header + "\n\nDETAILED CUSTOMER EXAMPLES:\n" + "\n---\n".join(summaries)
