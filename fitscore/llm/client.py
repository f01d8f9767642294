"""Language model clients."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import anthropic
import httpx

from fitscore.config import settings
from fitscore.errors import (
    LLMAuthError,
    LLMRateLimitError,
    LLMServiceError,
    LLMTimeoutError,
)

logger = logging.getLogger(__name__)


class LanguageModel(ABC):
    """Abstract interface for a text-in, text-out model call."""

    name: str = "base"

    @abstractmethod
    async def invoke(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        """
        Send a prompt and return the raw response text.

        Raises:
            LLMError subclasses for provider or transport failures
        """
        pass


class AnthropicModel(LanguageModel):
    """Claude via the Anthropic SDK.

    The SDK client is synchronous; calls run in a worker thread. SDK-level
    retries are disabled so the caller's retry policy is the only one.
    """

    name = "anthropic"

    SYSTEM_PROMPT = (
        "You are a helpful assistant that analyzes meeting transcripts and extracts "
        "customer information. Always respond with valid JSON only, no other text."
    )

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        self.api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.llm_model
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self._client = None

    @property
    def client(self) -> anthropic.Anthropic:
        """Lazy-load Anthropic client."""
        if self._client is None:
            if not self.api_key:
                raise LLMAuthError("ANTHROPIC_API_KEY not configured")
            self._client = anthropic.Anthropic(
                api_key=self.api_key,
                timeout=httpx.Timeout(settings.read_timeout, connect=settings.connect_timeout),
                max_retries=0,
            )
        return self._client

    async def invoke(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        max_tokens = max_tokens or settings.llm_max_tokens
        try:
            return await asyncio.to_thread(self._call_api, prompt, max_tokens)
        except anthropic.APITimeoutError as e:
            raise LLMTimeoutError(f"Model request timed out: {e}") from e
        except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as e:
            raise LLMAuthError(f"Anthropic API key rejected: {e}") from e
        except anthropic.RateLimitError as e:
            raise LLMRateLimitError(f"Anthropic rate limit exceeded: {e}") from e
        except anthropic.APIError as e:
            raise LLMServiceError(f"Anthropic API error: {e}") from e

    def _call_api(self, prompt: str, max_tokens: int) -> str:
        """Call Claude API synchronously."""
        logger.debug(f"Calling {self.model} with {len(prompt)} prompt chars")
        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=self.temperature,
            system=self.SYSTEM_PROMPT,
            messages=[
                {"role": "user", "content": prompt}
            ],
        )

        if response.stop_reason == "max_tokens":
            logger.warning(f"Model output hit the {max_tokens} token limit and may be truncated")

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        logger.info(f"Model response: {len(text)} chars")
        return text
