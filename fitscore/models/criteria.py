"""Administrator-configured scoring criteria."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clean_entries(value: Any) -> list[str]:
    """Accept a list or a comma-separated string; drop blank entries."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


class IndustryCriteria(BaseModel):
    """Industry whitelist/blacklist."""

    model_config = ConfigDict(frozen=True)

    whitelist: list[str] = Field(default_factory=list, description="Preferred industries")
    blacklist: list[str] = Field(default_factory=list, description="Industries to cap at a low score")

    @field_validator("whitelist", "blacklist", mode="before")
    @classmethod
    def normalize_entries(cls, value: Any) -> list[str]:
        return _clean_entries(value)


class RequirementsCriteria(BaseModel):
    """Platform strengths, weaknesses and unsupported features."""

    model_config = ConfigDict(frozen=True)

    strengths: list[str] = Field(default_factory=list, description="Features the platform does well")
    weaknesses: list[str] = Field(default_factory=list, description="Areas where the platform has limitations")
    unsupported: list[str] = Field(default_factory=list, description="Features the platform does not offer")

    @field_validator("strengths", "weaknesses", "unsupported", mode="before")
    @classmethod
    def normalize_entries(cls, value: Any) -> list[str]:
        return _clean_entries(value)


class Criteria(BaseModel):
    """Complete criteria snapshot used for a single analysis.

    Snapshots are immutable; an administrative update produces a new
    snapshot via :meth:`merged`.
    """

    model_config = ConfigDict(frozen=True)

    industries: IndustryCriteria = Field(default_factory=IndustryCriteria)
    requirements: RequirementsCriteria = Field(default_factory=RequirementsCriteria)

    def merged(self, partial: dict) -> "Criteria":
        """Return a new snapshot with the given sections/lists replaced."""
        data = self.model_dump()
        for section in ("industries", "requirements"):
            if partial.get(section):
                data[section] = {**data[section], **partial[section]}
        return Criteria.model_validate(data)
