"""End-to-end analysis of a sales transcript."""

import asyncio
import logging
from typing import Optional

from fitscore.config import settings
from fitscore.criteria import CriteriaProvider
from fitscore.errors import AnalysisError, LLMAuthError, LLMError, LLMTimeoutError
from fitscore.historical import HistoricalAggregator
from fitscore.llm import LanguageModel, build_analysis_prompt, format_criteria, retry_async
from fitscore.models import Criteria, CustomerProfile
from fitscore.parse import ProfileParser, QuickExtractor, finalize_profile, recover_json
from fitscore.score import ScoreAdjuster, SimilarityMatcher

logger = logging.getLogger(__name__)


class AnalysisPipeline:
    """Transcript in, scored and enriched CustomerProfile out.

    Phases run one after another for a request. Criteria and the historical
    corpus come from the injected provider and aggregator, whose caches are
    the only state shared between requests.
    """

    def __init__(
        self,
        model: LanguageModel,
        criteria_provider: CriteriaProvider,
        aggregator: HistoricalAggregator,
        adjuster: Optional[ScoreAdjuster] = None,
        matcher: Optional[SimilarityMatcher] = None,
        retry_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        request_timeout: Optional[float] = None,
    ):
        self.model = model
        self.criteria_provider = criteria_provider
        self.aggregator = aggregator
        self.adjuster = adjuster or ScoreAdjuster()
        self.matcher = matcher or SimilarityMatcher()
        self.quick_extractor = QuickExtractor()
        self.parser = ProfileParser()
        self.retry_attempts = retry_attempts or settings.llm_retry_attempts
        self.retry_delay = settings.llm_retry_delay if retry_delay is None else retry_delay
        self.request_timeout = request_timeout or settings.llm_request_timeout

    async def analyze(self, transcript: str) -> CustomerProfile:
        """Run every phase and return the final profile.

        Raises:
            AnalysisError: the transcript is empty
            LLMTimeoutError: the model phase exceeded the request timeout
            LLMError: the model call failed after all retries
        """
        if not transcript or not transcript.strip():
            raise AnalysisError("Transcript is empty")

        quick = self.quick_extractor.extract(transcript)
        logger.info(f"Starting analysis for {quick.customer_name or 'unnamed prospect'}")

        criteria = await self.criteria_provider.get()
        corpus = await self.aggregator.get_corpus()
        logger.info(f"Using {len(corpus)} historical customers")

        prompt = build_analysis_prompt(
            transcript,
            format_criteria(criteria),
            self.aggregator.format_for_prompt(corpus),
        )
        raw = await self._call_model(prompt)

        data = recover_json(raw)
        profile = self.parser.parse(data, quick)
        if profile.parse_warning:
            logger.warning(f"Profile for {profile.customer_name} built from partial model output")

        profile = self.adjuster.adjust(profile, criteria)
        sections = self.matcher.find_similar(profile, corpus)
        profile = profile.model_copy(update={"similar_customers": sections})

        return finalize_profile(profile)

    async def rescore(self, profile: CustomerProfile, criteria: Optional[Criteria] = None) -> CustomerProfile:
        """Re-apply criteria to an existing profile without calling the model."""
        criteria = criteria or await self.criteria_provider.get()
        return self.adjuster.adjust(profile, criteria)

    async def update_criteria(self, partial: dict) -> Criteria:
        return await self.criteria_provider.update(partial)

    async def _call_model(self, prompt: str) -> str:
        call = retry_async(
            lambda: self.model.invoke(prompt, settings.llm_max_tokens),
            attempts=self.retry_attempts,
            delay=self.retry_delay,
            retry_on=(LLMError,),
            give_up_on=(LLMAuthError,),
        )
        try:
            return await asyncio.wait_for(call, timeout=self.request_timeout)
        except asyncio.TimeoutError as e:
            raise LLMTimeoutError(f"Model phase exceeded {self.request_timeout}s") from e
