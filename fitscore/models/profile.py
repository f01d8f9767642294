"""Customer profile, score breakdown and similar-customer models."""

import re
from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")

DEFAULT_CUSTOMER_NAME = "Prospective Customer"


def coerce_int(value: Any) -> int:
    """Best-effort integer conversion; anything unusable becomes 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(round(value))
    match = NUMBER_PATTERN.search(str(value).replace(",", ""))
    if not match:
        return 0
    return int(round(float(match.group())))


def coerce_str_list(value: Any) -> list[str]:
    """Coerce model output into a list of non-empty strings."""
    if value is None or isinstance(value, bool):
        return []
    if isinstance(value, str):
        value = re.split(r"[,;]", value)
    elif isinstance(value, dict):
        value = list(value.keys())
    elif not isinstance(value, (list, tuple, set)):
        value = [value]
    items = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("name") or item.get("system") or item.get("title") or item.get("type") or ""
        text = str(item).strip()
        if text:
            items.append(text)
    return items


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase wire names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserCount(CamelModel):
    """User counts split by office and field staff."""

    total: int = 0
    back_office: int = 0
    field: int = 0

    @field_validator("total", "back_office", "field", mode="before")
    @classmethod
    def lenient_int(cls, value: Any) -> int:
        return max(coerce_int(value), 0)

    @property
    def field_ratio(self) -> float:
        return self.field / self.total if self.total > 0 else 0.0


class Services(CamelModel):
    """Services the customer delivers."""

    types: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)

    @field_validator("types", mode="before")
    @classmethod
    def lenient_types(cls, value: Any) -> list[str]:
        return coerce_str_list(value)

    @field_validator("details", mode="before")
    @classmethod
    def lenient_details(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}


class Requirements(CamelModel):
    """Requested features and integrations.

    Extra keys (checklists, communications, features, ...) are kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    key_features: list[str] = Field(default_factory=list)
    integrations: list[Any] = Field(default_factory=list)

    @field_validator("key_features", mode="before")
    @classmethod
    def lenient_features(cls, value: Any) -> list[str]:
        return coerce_str_list(value)

    @field_validator("integrations", mode="before")
    @classmethod
    def lenient_integrations(cls, value: Any) -> list[Any]:
        if isinstance(value, dict):
            return [value]
        if isinstance(value, (list, tuple)):
            return [v for v in value if v]
        return coerce_str_list(value)

    @property
    def integration_names(self) -> list[str]:
        return coerce_str_list(self.integrations)


class ScoreBreakdown(CamelModel):
    """Itemized additive components of the final fit score."""

    base_score: int = 0
    industry_adjustment: int = 0
    field_worker_bonus: int = 0
    requirements_alignment: int = 0
    complexity_penalty: int = 0
    size_adjustment: int = 0
    final_score: int = Field(default=0, ge=0, le=100)
    category: str = ""
    rationale: list[str] = Field(default_factory=list)

    COMPONENTS: ClassVar[tuple[str, ...]] = (
        "industry_adjustment",
        "field_worker_bonus",
        "requirements_alignment",
        "complexity_penalty",
        "size_adjustment",
    )

    def components(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.COMPONENTS}

    def raw_total(self) -> int:
        return self.base_score + sum(self.components().values())


class SectionTitle(str, Enum):
    """Similar-customer bucket names, in precedence order."""

    INDUSTRY_MATCH = "IndustryMatch"
    SIZE_MATCH = "SizeMatch"
    COMPLEXITY_MATCH = "ComplexityMatch"


class Implementation(CamelModel):
    """Outcome summary of a historical implementation."""

    duration: str = "Unknown"
    health: str = "Unknown"
    arr: str = "Unknown"


class SimilarCustomer(CamelModel):
    """A historical customer judged comparable to the prospect."""

    name: str
    industry: str = "Unknown"
    match_percentage: int = 0
    industry_score: int = 0
    size_score: int = 0
    field_ratio_score: int = 0
    service_score: int = 0
    match_reasons: list[str] = Field(default_factory=list)
    implementation: Implementation = Field(default_factory=Implementation)
    key_learnings: list[str] = Field(default_factory=list)


class SimilarCustomerSection(CamelModel):
    """One bucket of similar customers."""

    section_title: SectionTitle
    description: str
    customers: list[SimilarCustomer] = Field(default_factory=list)


class CustomerProfile(CamelModel):
    """Structured prospect profile extracted from a sales transcript."""

    customer_name: str = DEFAULT_CUSTOMER_NAME
    industry: str = ""
    user_count: UserCount = Field(default_factory=UserCount)
    services: Services = Field(default_factory=Services)
    requirements: Requirements = Field(default_factory=Requirements)
    current_state: Any = None
    timeline: Any = None
    budget: Any = None
    summary: Any = None
    fit_score: int = Field(default=0, ge=0, le=100)
    score_breakdown: Optional[ScoreBreakdown] = None
    strengths: list[Any] = Field(default_factory=list)
    challenges: list[Any] = Field(default_factory=list)
    similar_customers: list[SimilarCustomerSection] = Field(default_factory=list)
    recommendations: Any = None
    parse_warning: bool = False

    @field_validator("customer_name", "industry", mode="before")
    @classmethod
    def lenient_text(cls, value: Any, info: ValidationInfo) -> str:
        if value is None:
            return cls.model_fields[info.field_name].default
        return str(value).strip()

    @field_validator("fit_score", mode="before")
    @classmethod
    def clamp_score(cls, value: Any) -> int:
        return min(max(coerce_int(value), 0), 100)

    @field_validator("services", mode="before")
    @classmethod
    def lenient_services(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, (list, str)):
            return {"types": value}
        return value

    @field_validator("user_count", "requirements", mode="before")
    @classmethod
    def lenient_section(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, BaseModel)) else {}

    @field_validator("strengths", "challenges", mode="before")
    @classmethod
    def lenient_list(cls, value: Any) -> list[Any]:
        if value is None:
            return []
        return value if isinstance(value, list) else [value]
