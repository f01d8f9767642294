"""Historical customer records and the raw ingestion shapes they come from."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator

from .profile import CamelModel, Requirements, UserCount, coerce_int, coerce_str_list


class BusinessMetrics(CamelModel):
    """Outcome metrics recorded for a historical customer."""

    arr: float = 0.0
    health: str = ""
    days_to_onboard: int = 0
    retention_risk: bool = False

    @field_validator("arr", mode="before")
    @classmethod
    def lenient_arr(cls, value: Any) -> float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        return float(coerce_int(str(value or "").replace("$", "")))

    @field_validator("days_to_onboard", mode="before")
    @classmethod
    def lenient_days(cls, value: Any) -> int:
        return max(coerce_int(value), 0)


class HistoricalCustomerRecord(CamelModel):
    """Canonical historical customer, regardless of where it came from."""

    customer_name: str
    industry: str = ""
    user_count: UserCount = Field(default_factory=UserCount)
    services: list[str] = Field(default_factory=list)
    requirements: Requirements = Field(default_factory=Requirements)
    fit_score: int = 0
    business_metrics: BusinessMetrics = Field(default_factory=BusinessMetrics)
    source: str = ""

    @field_validator("services", mode="before")
    @classmethod
    def lenient_services(cls, value: Any) -> list[str]:
        return coerce_str_list(value)

    @field_validator("fit_score", mode="before")
    @classmethod
    def lenient_score(cls, value: Any) -> int:
        return min(max(coerce_int(value), 0), 100)


class TabularRecord(BaseModel):
    """One spreadsheet row with its sheet's header row."""

    kind: Literal["tabular"] = "tabular"
    source: str = ""
    headers: list[str]
    row: list[Any]


class FormRecord(BaseModel):
    """One questionnaire response row with the form's question headers."""

    kind: Literal["form"] = "form"
    source: str = ""
    headers: list[str]
    row: list[Any]


class DocumentRecord(BaseModel):
    """A free-text document (e.g. a previous fit analysis write-up)."""

    kind: Literal["document"] = "document"
    source: str = ""
    name: str
    content: str


SourceRecord = Annotated[
    Union[TabularRecord, FormRecord, DocumentRecord],
    Field(discriminator="kind"),
]
