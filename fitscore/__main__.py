"""CLI entry point for customer fit scoring."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from fitscore.cache import TTLCache
from fitscore.config import settings
from fitscore.connectors import (
    CsvFormSource,
    CsvSheetSource,
    DocumentDirectorySource,
    HistoricalSource,
    StaticSource,
)
from fitscore.criteria import (
    CachedCriteriaProvider,
    CriteriaProvider,
    InMemoryCriteriaProvider,
    SqlCriteriaProvider,
)
from fitscore.errors import FitScoreError
from fitscore.historical import HistoricalAggregator
from fitscore.llm import AnthropicModel
from fitscore.models import Criteria, CustomerProfile
from fitscore.pipeline import AnalysisPipeline

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def load_criteria(path: Path) -> Criteria:
    """Load criteria from JSON file."""
    with open(path) as f:
        data = json.load(f)
    return Criteria.model_validate(data)


def build_sources(args: argparse.Namespace) -> list[HistoricalSource]:
    sources: list[HistoricalSource] = []
    sources.extend(CsvSheetSource(path) for path in args.sheet)
    sources.extend(CsvFormSource(path) for path in args.forms)
    sources.extend(DocumentDirectorySource(path) for path in args.docs)
    if args.mock:
        sources.append(StaticSource())
    return sources


def build_criteria_provider(criteria_path: Optional[Path], store: bool) -> CriteriaProvider:
    """File criteria are used as-is unless --store-criteria saves them to the database."""
    cache = TTLCache(settings.criteria_cache_ttl_seconds)

    if criteria_path and not store:
        return CachedCriteriaProvider(InMemoryCriteriaProvider(load_criteria(criteria_path)), cache)

    return CachedCriteriaProvider(SqlCriteriaProvider(), cache)


async def run_analysis(args: argparse.Namespace) -> CustomerProfile:
    """Run the complete analysis pipeline."""
    transcript = sys.stdin.read() if str(args.transcript) == "-" else args.transcript.read_text(encoding="utf-8")

    provider = build_criteria_provider(args.criteria, args.store_criteria)
    if args.criteria and args.store_criteria:
        stored = await provider.update(load_criteria(args.criteria).model_dump())
        logger.info(
            f"Stored criteria: {len(stored.industries.whitelist)} preferred industries, "
            f"{len(stored.industries.blacklist)} blacklisted"
        )

    aggregator = HistoricalAggregator(
        build_sources(args),
        cache=TTLCache(settings.historical_cache_ttl_seconds),
    )

    pipeline = AnalysisPipeline(
        model=AnthropicModel(model=args.model),
        criteria_provider=provider,
        aggregator=aggregator,
    )
    return await pipeline.analyze(transcript)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Customer fit scoring - analyze a sales transcript against platform criteria"
    )
    parser.add_argument(
        "--transcript", "-t",
        type=Path,
        required=True,
        help="Path to transcript text file, or - to read stdin",
    )
    parser.add_argument(
        "--criteria", "-c",
        type=Path,
        default=None,
        help="Path to criteria JSON file (default: criteria stored in the database)",
    )
    parser.add_argument(
        "--store-criteria",
        action="store_true",
        help="Save the --criteria file to the database before analyzing",
    )
    parser.add_argument(
        "--sheet",
        type=Path,
        action="append",
        default=[],
        help="CSV export of the historical customer sheet (repeatable)",
    )
    parser.add_argument(
        "--forms",
        type=Path,
        action="append",
        default=[],
        help="CSV export of questionnaire responses (repeatable)",
    )
    parser.add_argument(
        "--docs",
        type=Path,
        action="append",
        default=[],
        help="Directory of customer analysis documents (repeatable)",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Add built-in sample historical customers",
    )
    parser.add_argument(
        "--model",
        default=None,
        help=f"Model name (default: {settings.llm_model})",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Output JSON path (default: print to stdout)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if str(args.transcript) != "-" and not args.transcript.exists():
        logger.error(f"Transcript file not found: {args.transcript}")
        sys.exit(1)

    if args.criteria and not args.criteria.exists():
        logger.error(f"Criteria file not found: {args.criteria}")
        sys.exit(1)

    try:
        profile = asyncio.run(run_analysis(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    except FitScoreError as e:
        logger.error(f"Analysis failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    output = json.dumps(profile.model_dump(by_alias=True, mode="json"), indent=2)
    if args.output:
        args.output.write_text(output, encoding="utf-8")
        logger.info(f"Results written to {args.output}")
    else:
        print(output)

    breakdown = profile.score_breakdown
    logger.info(f"{profile.customer_name}: fit score {profile.fit_score} ({breakdown.category if breakdown else 'n/a'})")


if __name__ == "__main__":
    main()
