# src/services/price_history_tracker.py

"""Folds fresh extractions into tracked products and their history."""

import logging
from dataclasses import replace
from datetime import datetime

from src.models.product_fact import ProductFact
from src.models.results import ObservationResult
from src.models.tracked_product import TrackedProduct
from src.scoring.deal_scorer import DealScorer
from src.services.collaborators import Notifier
from src.storage.product_store import ProductStore

logger = logging.getLogger("pricewatch.history")


class PriceHistoryTracker:
    """Decides what an observation changes, then optionally persists it."""

    def __init__(
        self,
        store: ProductStore | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier

    @staticmethod
    def record_observation(
        tracked: TrackedProduct, fact: ProductFact,
    ) -> ObservationResult:
        """Compute the updated product and history decision.

        Pure: *tracked* is not mutated and nothing is persisted.
        An invalid fact is rejected and leaves the product unchanged.
        """
        if not fact.is_valid:
            return ObservationResult(updated=tracked, accepted=False)

        old_price = tracked.current_price
        new_price = fact.current_price
        updated = replace(
            tracked,
            name=fact.name.strip(),
            current_price=new_price,
            currency=fact.currency_code or tracked.currency,
            image_url=fact.image_url or tracked.image_url,
            original_price=fact.original_price,
            seller_name=fact.seller_name,
            seller_rating=fact.seller_rating,
            rating=fact.rating,
            review_count=fact.review_count,
            platform_domain=fact.platform_domain or tracked.platform_domain,
            deal_score=DealScorer.score_fact(fact).score,
            updated_at=datetime.now(),
        )
        changed = old_price is None or float(new_price) != float(old_price)
        dropped = old_price is not None and new_price < old_price
        return ObservationResult(
            updated=updated,
            history_appended=changed,
            dropped=dropped,
            old_price=old_price,
            new_price=new_price,
        )

    def apply(
        self,
        tracked: TrackedProduct,
        fact: ProductFact,
        recipient: str | None = None,
    ) -> ObservationResult:
        """Persist an observation and alert on a strict price drop.

        A notifier failure is logged and never fails the observation.
        """
        if self.store is None:
            msg = "PriceHistoryTracker.apply() needs a store"
            raise RuntimeError(msg)

        result = self.record_observation(tracked, fact)
        if not result.accepted:
            logger.warning(
                "Rejected invalid observation for product %s", tracked.id,
            )
            return result

        result.updated = self.store.update_tracked_product(result.updated)
        if result.history_appended and result.updated.id is not None:
            self.store.append_price_history(
                result.updated.id,
                result.updated.current_price,
                result.updated.currency,
            )

        if result.dropped and self.notifier is not None:
            result.alert_sent = self._notify(
                recipient or tracked.owner_id, result,
            )
        return result

    def _notify(self, recipient: str, result: ObservationResult) -> bool:
        if result.old_price is None or result.new_price is None:
            return False
        try:
            outcome = self.notifier.notify_price_drop(
                recipient,
                result.updated,
                result.old_price,
                result.new_price,
            )
        except Exception as exc:
            logger.error(
                "Notifier raised for product %s: %s",
                result.updated.id, exc,
                exc_info=exc,
            )
            return False
        if not outcome.success:
            logger.error(
                "Price-drop alert failed for product %s: %s",
                result.updated.id, outcome.error,
            )
        return outcome.success
