"""Criteria-based adjustment of the model's raw fit score."""

import logging
import re
from dataclasses import dataclass

from fitscore.models import Criteria, CustomerProfile, ScoreBreakdown

logger = logging.getLogger(__name__)

PREFERRED = "preferred"
NEUTRAL = "neutral"
BLACKLISTED = "blacklisted"

INDUSTRY_TOKEN_SPLIT = re.compile(r"[\s,&-]+")


def normalize(text: str) -> str:
    return (text or "").strip().lower()


def contains_either(a: str, b: str) -> bool:
    """Bidirectional substring containment on normalized, non-empty text."""
    a, b = normalize(a), normalize(b)
    if not a or not b:
        return False
    return a in b or b in a


def industry_tokens(text: str) -> list[str]:
    return [t for t in INDUSTRY_TOKEN_SPLIT.split(normalize(text)) if len(t) >= 3]


def tokens_match(industry: str, candidate: str) -> bool:
    """Any token pair where one contains the other or both share a 3-char prefix."""
    for a in industry_tokens(industry):
        for b in industry_tokens(candidate):
            if a in b or b in a or a[:3] == b[:3]:
                return True
    return False


@dataclass
class RuleResult:
    """Points and reason produced by one scoring rule."""

    component: str
    points: int
    reason: str


class ScoreAdjuster:
    """Apply configured criteria to a profile's raw score.

    Every adjustment is recorded in the breakdown with a rationale line, so
    the final score can be explained component by component.
    """

    BLACKLIST_CAP = 25
    PREFERRED_BONUS = 10
    NEUTRAL_PENALTY = -5
    UNSUPPORTED_PENALTY = -20
    WEAKNESS_PENALTY = -10
    STRENGTH_POINTS = 3
    STRENGTH_CAP = 10

    # Component order in the breakdown rationale
    RATIONALE_ORDER = (
        "industry_adjustment",
        "complexity_penalty",
        "requirements_alignment",
        "field_worker_bonus",
        "size_adjustment",
    )

    def adjust(self, profile: CustomerProfile, criteria: Criteria) -> CustomerProfile:
        """Return a copy of the profile with a recomputed score and breakdown."""
        base = profile.fit_score
        category, industry_rule = self._industry_rule(profile.industry, criteria)

        results = [
            *self._requirement_rules(profile.requirements.key_features, criteria),
            *self._field_ratio_rule(profile.user_count.field, profile.user_count.total),
            *self._size_rule(profile.user_count.total),
            *self._integration_rule(len(profile.requirements.integrations)),
        ]

        if category == BLACKLISTED:
            # The industry component absorbs whatever keeps the total at the cap
            others = base + sum(r.points for r in results)
            points = min(0, self.BLACKLIST_CAP - others)
            industry_rule = RuleResult(
                "industry_adjustment", points, f"{profile.industry} is in the configured blacklist"
            )

        results.insert(0, industry_rule)
        breakdown = self._build_breakdown(base, category, results)

        logger.info(
            f"Adjusted score for {profile.customer_name}: {base} -> {breakdown.final_score} ({category})"
        )
        return profile.model_copy(update={
            "fit_score": breakdown.final_score,
            "score_breakdown": breakdown,
        })

    def _industry_rule(self, industry: str, criteria: Criteria) -> tuple[str, RuleResult]:
        name = normalize(industry)

        if name and any(contains_either(name, entry) for entry in criteria.industries.blacklist):
            return BLACKLISTED, RuleResult("industry_adjustment", 0, "")

        if name and self._is_preferred(name, criteria.industries.whitelist):
            return PREFERRED, RuleResult(
                "industry_adjustment",
                self.PREFERRED_BONUS,
                f"{industry} matches configured preferred industry",
            )

        label = industry or "Unspecified industry"
        return NEUTRAL, RuleResult(
            "industry_adjustment",
            self.NEUTRAL_PENALTY,
            f"{label} is not in configured preferred industries",
        )

    @staticmethod
    def _is_preferred(industry: str, whitelist: list[str]) -> bool:
        entries = [normalize(e) for e in whitelist]
        if industry in entries:
            return True
        if any(contains_either(industry, e) for e in entries):
            return True
        return any(tokens_match(industry, e) for e in entries)

    def _requirement_rules(self, features: list[str], criteria: Criteria) -> list[RuleResult]:
        results = []
        reqs = criteria.requirements

        unsupported = [f for f in features if any(contains_either(f, u) for u in reqs.unsupported)]
        if unsupported:
            results.append(RuleResult(
                "complexity_penalty",
                self.UNSUPPORTED_PENALTY,
                f"Customer requires unsupported features: {', '.join(unsupported)}",
            ))

        weak = [f for f in features if any(contains_either(f, w) for w in reqs.weaknesses)]
        if weak:
            results.append(RuleResult(
                "complexity_penalty",
                self.WEAKNESS_PENALTY,
                f"Customer needs areas where platform has limitations: {', '.join(weak)}",
            ))

        # Distinct features, case-insensitive, first spelling kept
        seen = set()
        strong = []
        for feature in features:
            key = normalize(feature)
            if key in seen:
                continue
            seen.add(key)
            if any(contains_either(feature, s) for s in reqs.strengths):
                strong.append(feature)

        if strong:
            results.append(RuleResult(
                "requirements_alignment",
                min(len(strong) * self.STRENGTH_POINTS, self.STRENGTH_CAP),
                f"Customer requirements align with platform strengths: {', '.join(strong)}",
            ))

        return results

    @staticmethod
    def _field_ratio_rule(field: int, total: int) -> list[RuleResult]:
        ratio = field / total if total > 0 else 0.0
        percent = round(ratio * 100)

        if ratio >= 0.7:
            return [RuleResult("field_worker_bonus", 10, f"Excellent field worker ratio ({percent}%)")]
        if ratio >= 0.5:
            return [RuleResult("field_worker_bonus", 5, f"Good field worker ratio ({percent}%)")]
        if ratio < 0.3 and total > 0:
            return [RuleResult(
                "field_worker_bonus",
                -15,
                f"Low field worker ratio ({percent}%) - poor fit for field service software",
            )]
        return []

    @staticmethod
    def _size_rule(total: int) -> list[RuleResult]:
        if 50 <= total <= 200:
            return [RuleResult("size_adjustment", 3, f"Good company size ({total} users)")]
        if total > 500:
            return [RuleResult(
                "size_adjustment",
                -8,
                f"Large organization ({total} users) - may need enterprise approach",
            )]
        return []

    @staticmethod
    def _integration_rule(count: int) -> list[RuleResult]:
        if count > 5:
            return [RuleResult("complexity_penalty", -15, f"High integration complexity ({count} systems)")]
        if count > 3:
            return [RuleResult("complexity_penalty", -8, f"Moderate integration complexity ({count} systems)")]
        return []

    def _build_breakdown(self, base: int, category: str, results: list[RuleResult]) -> ScoreBreakdown:
        points = {name: 0 for name in self.RATIONALE_ORDER}
        reasons: dict[str, list[str]] = {name: [] for name in self.RATIONALE_ORDER}

        for result in results:
            points[result.component] += result.points
            if result.points and result.reason:
                reasons[result.component].append(result.reason)

        rationale = [
            "; ".join(reasons[name])
            for name in self.RATIONALE_ORDER
            if points[name] != 0 and reasons[name]
        ]

        final = min(max(round(base + sum(points.values())), 0), 100)

        return ScoreBreakdown(
            base_score=base,
            final_score=final,
            category=category,
            rationale=rationale,
            **points,
        )
