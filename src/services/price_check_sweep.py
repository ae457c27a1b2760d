# src/services/price_check_sweep.py

"""Scheduled re-check of every tracked product's price."""

import hmac
import logging
import time

from src.clients.extraction_client import ExtractionClient
from src.config.settings import Settings
from src.models.errors import PriceWatchError
from src.models.results import SweepResult
from src.services.collaborators import LoggingNotifier, Notifier
from src.services.price_history_tracker import PriceHistoryTracker
from src.storage.product_store import ProductStore
from src.storage.sqlite_product_store import SQLiteProductStore

logger = logging.getLogger("pricewatch.sweep")


class PriceCheckSweep:
    """Sequentially re-extracts tracked products and records changes.

    Products are processed one at a time to bound load on the
    extraction service.  One product's failure is counted and the
    sweep moves on.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: ProductStore | None = None,
        extractor: ExtractionClient | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.store = store or SQLiteProductStore(self.settings.PRICE_DB_PATH)
        self.extractor = extractor or ExtractionClient(self.settings)
        self.tracker = PriceHistoryTracker(
            self.store, notifier or LoggingNotifier(),
        )

    def is_authorized(self, authorization: str | None) -> bool:
        """Constant-time check of ``Bearer <CRON_SECRET>``."""
        secret = self.settings.CRON_SECRET
        if not secret or not authorization:
            return False
        return hmac.compare_digest(
            authorization.encode(), f"Bearer {secret}".encode(),
        )

    def run(self, authorization: str | None) -> SweepResult:
        """Check every tracked product once. Safe to re-run.

        Any error while checking one product is counted in ``failed``
        and the sweep moves on to the next product.
        """
        if not self.is_authorized(authorization):
            logger.warning("Rejected unauthorized sweep request")
            return SweepResult(authorized=False)

        started = time.monotonic()
        products = self.store.list_all_tracked_products()
        result = SweepResult(total=len(products))
        logger.info("Sweep started for %d products", result.total)

        for product in products:
            try:
                fact = self.extractor.extract(product.url)
                observation = self.tracker.apply(product, fact)
            except PriceWatchError as exc:
                result.failed += 1
                logger.error(
                    "Sweep failed for product %s (%s): %s",
                    product.id, product.url, exc,
                )
                continue
            except Exception as exc:
                # Storage or parsing faults stay local to this product
                result.failed += 1
                logger.error(
                    "Unexpected sweep error for product %s (%s): %s",
                    product.id, product.url, exc,
                    exc_info=exc,
                )
                continue
            if not observation.accepted:
                result.failed += 1
                continue
            result.updated += 1
            if observation.price_changed:
                result.price_changes += 1
            if observation.alert_sent:
                result.alerts_sent += 1

        result.duration_seconds = round(time.monotonic() - started, 2)
        logger.info(
            "Sweep done: %d/%d updated, %d failed, %d price changes, "
            "%d alerts in %.2fs",
            result.updated, result.total, result.failed,
            result.price_changes, result.alerts_sent,
            result.duration_seconds,
        )
        return result
