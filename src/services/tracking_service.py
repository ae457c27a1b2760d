# src/services/tracking_service.py

"""User-facing tracking operations returning typed results."""

import logging
from typing import Any

from src.clients.extraction_client import ExtractionClient
from src.config.settings import Settings
from src.discovery.base_strategy import (
    CandidateDiscoveryStrategy,
    load_discovery_strategy,
)
from src.models.errors import PriceWatchError, ValidationError
from src.models.product_fact import ProductFact
from src.models.results import (
    ActionResult,
    ComparisonResult,
    ResultStatus,
    ScoredFact,
)
from src.scoring.deal_scorer import DealScorer
from src.services.collaborators import (
    Identity,
    LoggingNotifier,
    Notifier,
    StaticIdentity,
    User,
)
from src.services.comparison_orchestrator import ComparisonOrchestrator
from src.services.price_history_tracker import PriceHistoryTracker
from src.services.verdict_service import VerdictService
from src.storage.product_store import ProductStore
from src.storage.sqlite_product_store import SQLiteProductStore

logger = logging.getLogger("pricewatch.tracking")

_NOT_AUTHENTICATED = ActionResult(
    ResultStatus.NOT_AUTHENTICATED, "Sign in to track products",
)


def fact_fields(fact: ProductFact, deal_score: float) -> dict[str, Any]:
    """Columns stored for a tracked product, taken from a fresh fact."""
    return {
        "name": fact.name.strip(),
        "current_price": fact.current_price,
        "currency": fact.currency_code,
        "image_url": fact.image_url,
        "original_price": fact.original_price,
        "seller_name": fact.seller_name,
        "seller_rating": fact.seller_rating,
        "rating": fact.rating,
        "review_count": fact.review_count,
        "platform_domain": fact.platform_domain,
        "deal_score": deal_score,
    }


class TrackingService:
    """Preview, track, compare and inspect products for the current user.

    Every operation resolves the identity first; without a user it
    returns ``NOT_AUTHENTICATED`` instead of raising.  Collaborators
    are built from settings when not injected.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: ProductStore | None = None,
        identity: Identity | None = None,
        extractor: ExtractionClient | None = None,
        notifier: Notifier | None = None,
        strategy: CandidateDiscoveryStrategy | None = None,
        orchestrator: ComparisonOrchestrator | None = None,
        verdicts: VerdictService | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.store = store or SQLiteProductStore(self.settings.PRICE_DB_PATH)
        self.identity = identity or StaticIdentity(settings=self.settings)
        self.extractor = extractor or ExtractionClient(self.settings)
        self.tracker = PriceHistoryTracker(
            self.store, notifier or LoggingNotifier(),
        )
        self._strategy = strategy
        self._orchestrator = orchestrator
        self._verdicts = verdicts

    # ── Lazily built collaborators ───────────────────────

    @property
    def strategy(self) -> CandidateDiscoveryStrategy:
        if self._strategy is None:
            self._strategy = load_discovery_strategy(self.settings)
        return self._strategy

    @property
    def orchestrator(self) -> ComparisonOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = ComparisonOrchestrator(
                self.settings, extractor=self.extractor,
                strategy=self._strategy,
            )
        return self._orchestrator

    @property
    def verdicts(self) -> VerdictService:
        if self._verdicts is None:
            self._verdicts = VerdictService(self.settings)
        return self._verdicts

    # ── Private helpers ──────────────────────────────────

    def _extract(self, url: str) -> ProductFact | ActionResult:
        """Extract *url*, or return the failure as an ActionResult."""
        try:
            fact = self.extractor.extract(url)
        except ValidationError as exc:
            return ActionResult(ResultStatus.VALIDATION_ERROR, str(exc))
        except PriceWatchError as exc:
            logger.error("Extraction failed for %s: %s", url, exc)
            return ActionResult(
                ResultStatus.EXTRACTION_ERROR,
                f"Could not extract product: {exc}",
            )
        if not fact.is_valid:
            return ActionResult(
                ResultStatus.EXTRACTION_ERROR,
                "Extracted product has no name or price",
            )
        return fact

    def _save(self, user: User, fact: ProductFact, url: str) -> ActionResult:
        """Insert a new tracked product or fold the fact into an existing one."""
        score = DealScorer.score_fact(fact)
        existing = self.store.get_tracked_product(user.id, url)
        if existing is None:
            product = self.store.upsert_tracked_product(
                user.id, url, fact_fields(fact, score.score),
            )
            if product.id is not None:
                self.store.append_price_history(
                    product.id, product.current_price, product.currency,
                )
            logger.info("Now tracking '%s' for %s", product.name, user.id)
            return ActionResult(
                ResultStatus.OK, "Product is now being tracked", product,
            )

        observation = self.tracker.apply(existing, fact, recipient=user.id)
        if observation.price_changed:
            message = (
                f"Price updated from {observation.old_price:,.2f} "
                f"to {observation.new_price:,.2f}"
            )
        else:
            message = "Product already tracked; details refreshed"
        return ActionResult(ResultStatus.OK, message, observation.updated)

    # ── Operations ───────────────────────────────────────

    def preview_product(self, url: str) -> ActionResult:
        """Extract and score a product without saving it."""
        if self.identity.current_user() is None:
            return _NOT_AUTHENTICATED
        outcome = self._extract(url)
        if isinstance(outcome, ActionResult):
            return outcome
        scored = ScoredFact(
            fact=outcome,
            deal_score=DealScorer.score_fact(outcome),
            candidate_url=url,
        )
        return ActionResult(ResultStatus.OK, payload=scored)

    def track_product(self, url: str) -> ActionResult:
        """Extract, score and save a product for the current user."""
        user = self.identity.current_user()
        if user is None:
            return _NOT_AUTHENTICATED
        outcome = self._extract(url)
        if isinstance(outcome, ActionResult):
            return outcome
        return self._save(user, outcome, url)

    def track_fact(
        self, fact: ProductFact, url: str | None = None,
    ) -> ActionResult:
        """Save an already-extracted fact (e.g. a comparison alternative)."""
        user = self.identity.current_user()
        if user is None:
            return _NOT_AUTHENTICATED
        target = (url or fact.source_url or fact.requested_url).strip()
        if not target:
            return ActionResult(
                ResultStatus.VALIDATION_ERROR, "A product URL is required",
            )
        if not fact.is_valid:
            return ActionResult(
                ResultStatus.VALIDATION_ERROR,
                "Product has no name or price",
            )
        return self._save(user, fact, target)

    def list_products(self) -> ActionResult:
        user = self.identity.current_user()
        if user is None:
            return _NOT_AUTHENTICATED
        products = self.store.list_tracked_products(user.id)
        return ActionResult(ResultStatus.OK, payload=products)

    def delete_product(self, product_id: int) -> ActionResult:
        user = self.identity.current_user()
        if user is None:
            return _NOT_AUTHENTICATED
        if not self.store.delete_tracked_product(product_id, user.id):
            return ActionResult(
                ResultStatus.NOT_FOUND, f"No tracked product {product_id}",
            )
        return ActionResult(ResultStatus.OK, "Product removed")

    def get_price_history(self, product_id: int) -> ActionResult:
        """History points plus a min/max/avg summary for one product."""
        user = self.identity.current_user()
        if user is None:
            return _NOT_AUTHENTICATED
        product = self.store.get_tracked_product_by_id(product_id, user.id)
        if product is None:
            return ActionResult(
                ResultStatus.NOT_FOUND, f"No tracked product {product_id}",
            )
        return ActionResult(
            ResultStatus.OK,
            payload={
                "product": product,
                "history": self.store.get_price_history(product_id),
                "summary": self.store.get_trend_summary(product_id),
            },
        )

    def search_products(self, name: str) -> ActionResult:
        """Discover listings for a free-text product name."""
        if self.identity.current_user() is None:
            return _NOT_AUTHENTICATED
        query = (name or "").strip()
        if len(query) < self.settings.MIN_SEARCH_QUERY_LENGTH:
            return ActionResult(
                ResultStatus.VALIDATION_ERROR,
                "Search query must be at least "
                f"{self.settings.MIN_SEARCH_QUERY_LENGTH} characters",
            )
        try:
            candidates = self.strategy.discover(query)
        except ValidationError as exc:
            return ActionResult(ResultStatus.VALIDATION_ERROR, str(exc))
        except PriceWatchError as exc:
            logger.error("Search failed for '%s': %s", query, exc)
            return ActionResult(ResultStatus.ERROR, f"Search failed: {exc}")
        message = "" if candidates else (
            "No listings found; try a more specific product name"
        )
        return ActionResult(ResultStatus.OK, message, candidates)

    async def compare_product(self, url: str) -> ActionResult:
        """Run the cross-platform comparison for *url*."""
        if self.identity.current_user() is None:
            return _NOT_AUTHENTICATED
        comparison: ComparisonResult = (
            await self.orchestrator.compare_across_platforms(url)
        )
        return ActionResult(comparison.status, comparison.message, comparison)

    def get_verdict(self, product_id: int) -> ActionResult:
        """AI buy/wait verdict for a tracked product."""
        user = self.identity.current_user()
        if user is None:
            return _NOT_AUTHENTICATED
        product = self.store.get_tracked_product_by_id(product_id, user.id)
        if product is None:
            return ActionResult(
                ResultStatus.NOT_FOUND, f"No tracked product {product_id}",
            )
        history = self.store.get_price_history(product_id)
        try:
            verdict = self.verdicts.get_verdict(product, history)
        except PriceWatchError as exc:
            logger.error("Verdict failed for product %d: %s", product_id, exc)
            return ActionResult(
                ResultStatus.ERROR, f"Could not generate verdict: {exc}",
            )
        return ActionResult(ResultStatus.OK, payload=verdict)
