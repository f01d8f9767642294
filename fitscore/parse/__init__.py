"""Recovery and parsing of language model output."""

from .json_recovery import PARSE_ERROR_KEY, PARSE_WARNING_KEY, recover_json
from .profile_parser import (
    DEFAULT_BASE_SCORE,
    ProfileParser,
    QuickExtractor,
    QuickFacts,
    finalize_profile,
)

__all__ = [
    "recover_json",
    "PARSE_WARNING_KEY",
    "PARSE_ERROR_KEY",
    "DEFAULT_BASE_SCORE",
    "ProfileParser",
    "QuickExtractor",
    "QuickFacts",
    "finalize_profile",
]
