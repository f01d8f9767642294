"""Weighted similarity matching against the historical customer corpus."""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Optional

from fitscore.models import (
    CustomerProfile,
    HistoricalCustomerRecord,
    Implementation,
    SectionTitle,
    SimilarCustomer,
    SimilarCustomerSection,
)
from .adjuster import contains_either, normalize

logger = logging.getLogger(__name__)

MATCH_TOKEN_SPLIT = re.compile(r"[\s,/&-]+")

SECTION_DESCRIPTIONS = {
    SectionTitle.INDUSTRY_MATCH: "Customers in the same or a closely related industry",
    SectionTitle.SIZE_MATCH: "Customers of a comparable size",
    SectionTitle.COMPLEXITY_MATCH: "Customers with a similar workforce mix or service offering",
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class MatchThresholds:
    """Scoring bands, bucket thresholds and caps.

    These are tuning values; override them by passing a custom instance.
    """

    industry_exact: int = 40
    industry_token_weight: int = 35
    min_token_length: int = 3
    min_containment_length: int = 4

    size_bands: tuple = ((0.8, 30), (0.6, 20), (0.4, 10))

    field_ratio_floor: float = 0.5
    field_ratio_bands: tuple = ((0.15, 20), (0.30, 15))
    field_ratio_default: int = 10

    service_points: int = 3
    service_cap: int = 10

    min_total: int = 20

    industry_bucket: int = 25
    size_bucket: int = 20
    field_bucket: int = 15
    service_bucket: int = 8

    bucket_caps: dict = field(default_factory=lambda: {
        SectionTitle.INDUSTRY_MATCH: 3,
        SectionTitle.SIZE_MATCH: 2,
        SectionTitle.COMPLEXITY_MATCH: 2,
    })


@dataclass
class MatchResult:
    """Per-dimension similarity between the prospect and one historical record."""

    record: HistoricalCustomerRecord
    industry_score: int = 0
    size_score: int = 0
    field_ratio_score: int = 0
    service_score: int = 0
    matched_services: list[str] = field(default_factory=list)

    @property
    def total_score(self) -> int:
        return self.industry_score + self.size_score + self.field_ratio_score + self.service_score


class SimilarityMatcher:
    """Rank historical customers by similarity and group them into sections."""

    def __init__(self, thresholds: Optional[MatchThresholds] = None):
        self.thresholds = thresholds or MatchThresholds()

    def find_similar(
        self,
        profile: CustomerProfile,
        corpus: list[HistoricalCustomerRecord],
    ) -> list[SimilarCustomerSection]:
        """Score every other historical customer and return non-empty sections."""
        name = normalize(profile.customer_name)
        matches = [
            self.score(profile, record)
            for record in corpus
            if normalize(record.customer_name) != name
        ]
        sections = self.categorize(matches)

        logger.info(
            f"Found {sum(len(s.customers) for s in sections)} similar customers "
            f"for {profile.customer_name} across {len(sections)} sections"
        )
        return sections

    def score(self, profile: CustomerProfile, record: HistoricalCustomerRecord) -> MatchResult:
        service_score, matched = self._service_score(profile.services.types, record.services)
        return MatchResult(
            record=record,
            industry_score=self._industry_score(profile.industry, record.industry),
            size_score=self._size_score(profile.user_count.total, record.user_count.total),
            field_ratio_score=self._field_ratio_score(
                profile.user_count.field_ratio, record.user_count.field_ratio
            ),
            service_score=service_score,
            matched_services=matched,
        )

    def categorize(self, matches: list[MatchResult]) -> list[SimilarCustomerSection]:
        """Assign each match to at most one bucket, highest precedence first."""
        t = self.thresholds
        buckets: dict[SectionTitle, list[MatchResult]] = {title: [] for title in SectionTitle}

        # sorted() is stable, so ties keep corpus order
        for match in sorted(matches, key=lambda m: m.total_score, reverse=True):
            if match.total_score <= t.min_total:
                continue
            if match.industry_score >= t.industry_bucket:
                buckets[SectionTitle.INDUSTRY_MATCH].append(match)
            elif match.size_score >= t.size_bucket:
                buckets[SectionTitle.SIZE_MATCH].append(match)
            elif match.field_ratio_score >= t.field_bucket or match.service_score >= t.service_bucket:
                buckets[SectionTitle.COMPLEXITY_MATCH].append(match)

        sections = []
        for title in SectionTitle:
            retained = buckets[title][:t.bucket_caps.get(title, 0)]
            if retained:
                sections.append(SimilarCustomerSection(
                    section_title=title,
                    description=SECTION_DESCRIPTIONS[title],
                    customers=[self._to_similar_customer(m) for m in retained],
                ))
        return sections

    def _industry_score(self, current: str, historical: str) -> int:
        t = self.thresholds
        a, b = normalize(current), normalize(historical)
        if not a or not b:
            return 0
        if a == b:
            return t.industry_exact

        current_tokens = self._tokens(a)
        historical_tokens = self._tokens(b)
        union = current_tokens | historical_tokens
        if not union:
            return 0

        common = {
            token for token in current_tokens
            if any(self._tokens_related(token, other) for other in historical_tokens)
        }
        return round_half_up(len(common) / len(union) * t.industry_token_weight)

    def _tokens(self, text: str) -> set[str]:
        return {tok for tok in MATCH_TOKEN_SPLIT.split(text) if len(tok) >= self.thresholds.min_token_length}

    def _tokens_related(self, a: str, b: str) -> bool:
        if a == b:
            return True
        shortest = self.thresholds.min_containment_length
        return len(a) >= shortest and len(b) >= shortest and (a in b or b in a)

    def _size_score(self, current: int, historical: int) -> int:
        if current <= 0 or historical <= 0:
            return 0
        ratio = min(current, historical) / max(current, historical)
        for floor, points in self.thresholds.size_bands:
            if ratio > floor:
                return points
        return 0

    def _field_ratio_score(self, current: float, historical: float) -> int:
        t = self.thresholds
        if current <= t.field_ratio_floor or historical <= t.field_ratio_floor:
            return 0
        diff = abs(current - historical)
        for ceiling, points in t.field_ratio_bands:
            if diff < ceiling:
                return points
        return t.field_ratio_default

    def _service_score(self, current: list[str], historical: list[str]) -> tuple[int, list[str]]:
        matched = [s for s in current if any(contains_either(s, h) for h in historical)]
        t = self.thresholds
        return min(len(matched) * t.service_points, t.service_cap), matched

    def _to_similar_customer(self, match: MatchResult) -> SimilarCustomer:
        record = match.record
        return SimilarCustomer(
            name=record.customer_name,
            industry=record.industry or "Unknown",
            match_percentage=match.total_score,
            industry_score=match.industry_score,
            size_score=match.size_score,
            field_ratio_score=match.field_ratio_score,
            service_score=match.service_score,
            match_reasons=self._match_reasons(match),
            implementation=self._implementation(record),
            key_learnings=key_learnings(record),
        )

    def _match_reasons(self, match: MatchResult) -> list[str]:
        record = match.record
        reasons = []
        if match.industry_score >= self.thresholds.industry_exact:
            reasons.append(f"Same industry ({record.industry})")
        elif match.industry_score:
            reasons.append(f"Related industry ({record.industry})")
        if match.size_score:
            reasons.append(f"Similar size ({record.user_count.total} users)")
        if match.field_ratio_score:
            reasons.append(f"Similar field/office ratio ({round(record.user_count.field_ratio * 100)}% field)")
        if match.service_score:
            reasons.append(f"Service alignment ({', '.join(match.matched_services)})")
        return reasons

    @staticmethod
    def _implementation(record: HistoricalCustomerRecord) -> Implementation:
        metrics = record.business_metrics
        return Implementation(
            duration=f"{metrics.days_to_onboard} days" if metrics.days_to_onboard else "Unknown",
            health=metrics.health or "Unknown",
            arr=f"${metrics.arr:,.0f}" if metrics.arr else "Unknown",
        )


def key_learnings(record: HistoricalCustomerRecord) -> list[str]:
    """Lessons a sales team can take from a historical implementation."""
    metrics = record.business_metrics
    learnings = []

    if metrics.health in ("Excellent", "Good"):
        learnings.append("Successful implementation")
        if 0 < metrics.days_to_onboard <= 60:
            learnings.append("Quick onboarding achieved")

    checklists = (record.requirements.model_extra or {}).get("checklists")
    if isinstance(checklists, dict) and checklists.get("needed"):
        learnings.append("Checklist customization was key")

    if len(record.requirements.integrations) > 2:
        learnings.append("Multiple integrations successfully implemented")

    if metrics.health == "Poor" or metrics.retention_risk:
        learnings.append("Implementation challenges to avoid")

    return learnings or ["Standard implementation process"]
