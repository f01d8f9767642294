"""Score adjustment and similar-customer matching."""

from .adjuster import ScoreAdjuster
from .matcher import MatchResult, MatchThresholds, SimilarityMatcher

__all__ = ["ScoreAdjuster", "SimilarityMatcher", "MatchResult", "MatchThresholds"]
