"""Turn recovered model output into a CustomerProfile."""

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from fitscore.models import CustomerProfile
from fitscore.models.profile import DEFAULT_CUSTOMER_NAME, coerce_int, coerce_str_list
from .json_recovery import PARSE_WARNING_KEY

logger = logging.getLogger(__name__)

# Upstream score used when the model returns none (or the template's 0)
DEFAULT_BASE_SCORE = 50

NAME_WORDS = r"([A-Z][\w&'.]*(?:\s+[A-Z][\w&'.]*){0,4})"


@dataclass
class QuickFacts:
    """Facts pulled from the transcript with regexes before any model call."""

    customer_name: Optional[str] = None
    total_users: int = 0
    field_users: int = 0
    back_office_users: int = 0


class QuickExtractor:
    """Cheap pattern-based extraction from the raw transcript."""

    NAME_PATTERNS = [
        rf"(?i:company|organization|business)(?:\s+(?:is|called|named))?\s+{NAME_WORDS}",
        rf"(?i:i'm|i am|we're|we are)\s+(?i:from|with|at)\s+{NAME_WORDS}",
        rf"{NAME_WORDS}\s+(?i:is|are)\s+(?i:looking|interested|considering)",
    ]

    FIELD_PATTERNS = [
        r"(\d+)\s*(?:field\s+)?(?:technicians|techs)\b",
        r"(\d+)\s*field\s*(?:staff|workers|employees|users|crew)",
    ]

    OFFICE_PATTERNS = [
        r"(\d+)\s*(?:back[\s-]?)?office\s*(?:staff|workers|employees|users|people)",
        r"(\d+)\s*(?:dispatchers|admins|administrators)\b",
    ]

    TOTAL_PATTERNS = [
        r"(\d+)\+?\s*(?:total\s+)?(?:employees|users|people|staff)\b",
        r"team\s*of\s*(\d+)",
    ]

    # Words the name patterns pick up that are never a company name
    NAME_STOPWORDS = {"We", "I", "The", "Our", "They", "It", "This"}

    def extract(self, transcript: str) -> QuickFacts:
        facts = QuickFacts(customer_name=self._extract_name(transcript))
        text = transcript.lower().replace(",", "")

        facts.field_users = self._first_number(text, self.FIELD_PATTERNS)
        facts.back_office_users = self._first_number(text, self.OFFICE_PATTERNS)
        facts.total_users = self._first_number(text, self.TOTAL_PATTERNS)

        if facts.total_users < facts.field_users + facts.back_office_users:
            facts.total_users = facts.field_users + facts.back_office_users

        return facts

    def _extract_name(self, transcript: str) -> Optional[str]:
        for pattern in self.NAME_PATTERNS:
            match = re.search(pattern, transcript)
            if match:
                name = match.group(1).strip().rstrip(".")
                if name and name not in self.NAME_STOPWORDS:
                    return name
        return None

    @staticmethod
    def _first_number(text: str, patterns: list[str]) -> int:
        for pattern in patterns:
            match = re.search(pattern, text)
            if match:
                return int(match.group(1))
        return 0


class ProfileParser:
    """Build a CustomerProfile from a recovered JSON object."""

    # Keys produced downstream; anything the model sends for them is dropped
    DERIVED_KEYS = {"scoreBreakdown", "similarCustomers", "score_breakdown", "similar_customers"}

    def parse(self, data: dict, quick: Optional[QuickFacts] = None) -> CustomerProfile:
        """Normalize model output into a profile. Never raises."""
        quick = quick or QuickFacts()
        payload = {k: v for k, v in data.items() if k not in self.DERIVED_KEYS and not k.startswith("_")}
        parse_warning = bool(data.get(PARSE_WARNING_KEY))

        payload["customerName"] = (
            self._text(data.get("customerName"))
            or quick.customer_name
            or DEFAULT_CUSTOMER_NAME
        )
        payload["fitScore"] = coerce_int(data.get("fitScore")) or DEFAULT_BASE_SCORE
        payload["parseWarning"] = parse_warning

        try:
            payload["userCount"] = self._user_count(data.get("userCount"), quick)
            payload["requirements"] = self._requirements(data.get("requirements"), data.get("summary"))
            return CustomerProfile.model_validate(payload)
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Model output did not fit the profile shape: {e}")
            return CustomerProfile(
                customer_name=payload["customerName"],
                industry=self._text(data.get("industry")),
                user_count=self._user_count(data.get("userCount"), quick),
                fit_score=payload["fitScore"],
                parse_warning=True,
            )

    @staticmethod
    def _text(value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @staticmethod
    def _user_count(value: Any, quick: QuickFacts) -> dict:
        counts = value if isinstance(value, dict) else {}
        total = coerce_int(counts.get("total"))
        field = coerce_int(counts.get("field"))
        back_office = coerce_int(counts.get("backOffice", counts.get("back_office")))

        if not (total or field or back_office):
            total, field, back_office = quick.total_users, quick.field_users, quick.back_office_users

        if total < field + back_office:
            total = field + back_office
        if total and field and not back_office:
            back_office = total - field

        return {"total": total, "backOffice": back_office, "field": field}

    @staticmethod
    def _requirements(value: Any, summary: Any) -> dict:
        requirements = dict(value) if isinstance(value, dict) else {}
        if not coerce_str_list(requirements.get("keyFeatures")) and isinstance(summary, dict):
            requirements["keyFeatures"] = summary.get("keyRequirements") or []
        return requirements


def finalize_profile(profile: CustomerProfile) -> CustomerProfile:
    """Structural validation before the profile leaves the pipeline.

    Fills narrative sections the model left empty and checks the score
    breakdown still adds up.
    """
    updates: dict[str, Any] = {}

    if not isinstance(profile.summary, dict) or not profile.summary.get("overview"):
        users = profile.user_count
        updates["summary"] = {
            **(profile.summary if isinstance(profile.summary, dict) else {}),
            "overview": (
                f"{profile.customer_name} is a {profile.industry or 'field service'} company with "
                f"{users.total} total users ({users.back_office} back office, {users.field} field)."
            ),
        }

    if not profile.strengths:
        updates["strengths"] = [{
            "title": "Field Service Focus",
            "description": "Stated needs overlap with core field service management capabilities",
        }]

    if not profile.challenges:
        updates["challenges"] = [{
            "title": "Change Management",
            "description": "Transitioning from current processes to a new system",
            "severity": "Major",
        }]

    if not isinstance(profile.recommendations, dict) or not profile.recommendations:
        updates["recommendations"] = {
            "implementationApproach": {"strategy": "Phased rollout starting with core features"},
        }

    breakdown = profile.score_breakdown
    if breakdown is not None:
        expected = min(max(breakdown.raw_total(), 0), 100)
        if breakdown.final_score != expected or profile.fit_score != breakdown.final_score:
            logger.error(
                f"Score breakdown for {profile.customer_name} does not add up: "
                f"final={breakdown.final_score} expected={expected} fit={profile.fit_score}"
            )

    if updates:
        profile = profile.model_copy(update=updates)

    return CustomerProfile.model_validate(profile.model_dump())
