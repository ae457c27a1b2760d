# src/services/comparison_orchestrator.py

"""Orchestrates cross-platform comparison of one product listing."""

import asyncio
import logging

from src.clients.extraction_client import ExtractionClient
from src.config.settings import Settings
from src.discovery.base_strategy import (
    CandidateDiscoveryStrategy,
    load_discovery_strategy,
)
from src.filters.deduplicator import ListingDeduplicator
from src.filters.product_matcher import ProductMatcher
from src.models.errors import PriceWatchError, ValidationError
from src.models.results import ComparisonResult, ResultStatus, ScoredFact
from src.models.search_candidate import SearchCandidate
from src.scoring.deal_scorer import DealScorer

logger = logging.getLogger("pricewatch.orchestrator")


class CandidateRejected(Exception):
    """A candidate that extracted fine but is not a usable alternative."""


def ranking_key(listing: ScoredFact) -> tuple[float, int, str]:
    """Score desc, then review count desc, then platform domain asc."""
    return (
        -listing.deal_score.score,
        -(listing.fact.review_count or 0),
        listing.fact.platform_domain,
    )


class ComparisonOrchestrator:
    """Coordinates extraction, discovery, matching and scoring."""

    def __init__(
        self,
        settings: Settings | None = None,
        extractor: ExtractionClient | None = None,
        strategy: CandidateDiscoveryStrategy | None = None,
        matcher: ProductMatcher | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.extractor = extractor or ExtractionClient(self.settings)
        self._strategy = strategy
        self.matcher = matcher or ProductMatcher(
            self.settings.MATCH_OVERLAP_THRESHOLD
        )

    @property
    def strategy(self) -> CandidateDiscoveryStrategy:
        """The discovery strategy, loaded from settings on first use."""
        if self._strategy is None:
            self._strategy = load_discovery_strategy(self.settings)
        return self._strategy

    # ── Private helpers ──────────────────────────────────

    async def _evaluate_candidate(
        self,
        candidate: SearchCandidate,
        original: ScoredFact,
        semaphore: asyncio.Semaphore,
    ) -> ScoredFact:
        """Extract, validate, match and score one candidate.

        Raises on any failure; the caller drops only this candidate.
        """
        async with semaphore:
            fact = await asyncio.wait_for(
                asyncio.to_thread(self.extractor.extract, candidate.url),
                timeout=self.settings.CANDIDATE_TIMEOUT,
            )

        if not fact.is_valid:
            msg = f"invalid fact from {candidate.url}"
            raise CandidateRejected(msg)
        if not self.matcher.is_same_product(original.fact.name, fact.name):
            msg = f"'{fact.name}' is a different product"
            raise CandidateRejected(msg)
        if not fact.image_url:
            msg = f"'{fact.name}' has no image"
            raise CandidateRejected(msg)

        return ScoredFact(
            fact=fact,
            deal_score=DealScorer.score_fact(fact),
            candidate_url=candidate.url,
        )

    async def _evaluate_all(
        self,
        candidates: list[SearchCandidate],
        original: ScoredFact,
        result: ComparisonResult,
    ) -> list[ScoredFact]:
        """Run candidate evaluations concurrently, isolating failures."""
        semaphore = asyncio.Semaphore(
            self.settings.MAX_CONCURRENT_EXTRACTIONS
        )
        outcomes = await asyncio.gather(
            *(
                self._evaluate_candidate(c, original, semaphore)
                for c in candidates
            ),
            return_exceptions=True,
        )

        survivors: list[ScoredFact] = []
        for candidate, outcome in zip(candidates, outcomes):
            if isinstance(outcome, ScoredFact):
                survivors.append(outcome)
                continue
            result.failed_count += 1
            if isinstance(outcome, asyncio.TimeoutError):
                reason = "timed out"
            else:
                reason = str(outcome) or type(outcome).__name__
            if isinstance(outcome, CandidateRejected):
                logger.info(
                    "Candidate %s rejected: %s", candidate.url, reason,
                )
            else:
                result.errors.append(f"{candidate.platform}: {reason}")
                logger.warning(
                    "Candidate %s failed: %s", candidate.url, reason,
                )
        return survivors

    # ── Entry point ──────────────────────────────────────

    async def compare_across_platforms(
        self, original_url: str,
    ) -> ComparisonResult:
        """Compare the product at *original_url* across other platforms.

        Only the original's extraction is fatal; every other failure
        shrinks the alternatives list instead.
        """
        result = ComparisonResult()
        try:
            fact = await asyncio.to_thread(
                self.extractor.extract, original_url
            )
        except ValidationError as exc:
            result.status = ResultStatus.VALIDATION_ERROR
            result.message = str(exc)
            return result
        except PriceWatchError as exc:
            logger.error(
                "Original extraction failed for %s: %s", original_url, exc,
            )
            result.status = ResultStatus.EXTRACTION_ERROR
            result.message = f"Could not extract product: {exc}"
            return result

        if not fact.is_valid:
            result.status = ResultStatus.EXTRACTION_ERROR
            result.message = "Extracted product has no name or price"
            return result

        original = ScoredFact(
            fact=fact,
            deal_score=DealScorer.score_fact(fact),
            candidate_url=original_url,
        )
        result.original = original

        try:
            candidates = await asyncio.to_thread(
                self.strategy.discover, fact, fact.platform_domain,
            )
        except PriceWatchError as exc:
            logger.warning("Discovery failed for '%s': %s", fact.name, exc)
            result.errors.append(f"discovery: {exc}")
            candidates = []
        result.discovered_count = len(candidates)

        survivors = await self._evaluate_all(candidates, original, result)
        survivors, result.deduplicated_count = (
            ListingDeduplicator.deduplicate(survivors)
        )
        result.alternatives = sorted(survivors, key=ranking_key)

        if not result.alternatives:
            result.message = "No matching listings found on other platforms"
        logger.info(
            "Compared '%s': %d discovered, %d alternatives, %d failed",
            fact.name,
            result.discovered_count,
            len(result.alternatives),
            result.failed_count,
        )
        return result
