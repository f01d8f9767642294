"""Language model access for transcript analysis."""

from .client import AnthropicModel, LanguageModel
from .prompts import build_analysis_prompt, format_criteria
from .retry import retry_async

__all__ = [
    "LanguageModel",
    "AnthropicModel",
    "retry_async",
    "build_analysis_prompt",
    "format_criteria",
]
