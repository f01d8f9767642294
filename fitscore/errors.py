"""Typed errors surfaced by the analysis pipeline."""


class FitScoreError(Exception):
    """Base class for errors raised by this package."""


class AnalysisError(FitScoreError):
    """The analysis request itself is unusable (e.g. empty transcript)."""


class LLMError(FitScoreError):
    """Language model call failed."""


class LLMTimeoutError(LLMError):
    """Model call did not complete within the request timeout."""


class LLMAuthError(LLMError):
    """API key missing or rejected."""


class LLMRateLimitError(LLMError):
    """Provider rate limit exceeded."""


class LLMServiceError(LLMError):
    """Any other provider or transport failure."""
