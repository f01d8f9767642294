"""Data models for customer fit scoring."""

from .criteria import (
    Criteria,
    IndustryCriteria,
    RequirementsCriteria,
)
from .profile import (
    CustomerProfile,
    UserCount,
    Services,
    Requirements,
    ScoreBreakdown,
    SectionTitle,
    Implementation,
    SimilarCustomer,
    SimilarCustomerSection,
)
from .historical import (
    BusinessMetrics,
    HistoricalCustomerRecord,
    TabularRecord,
    FormRecord,
    DocumentRecord,
    SourceRecord,
)

__all__ = [
    "Criteria",
    "IndustryCriteria",
    "RequirementsCriteria",
    "CustomerProfile",
    "UserCount",
    "Services",
    "Requirements",
    "ScoreBreakdown",
    "SectionTitle",
    "Implementation",
    "SimilarCustomer",
    "SimilarCustomerSection",
    "BusinessMetrics",
    "HistoricalCustomerRecord",
    "TabularRecord",
    "FormRecord",
    "DocumentRecord",
    "SourceRecord",
]
