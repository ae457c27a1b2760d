# tests/test_tracking_service.py

"""Tests for TrackingService operations."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from src.config.settings import Settings
from src.models.errors import (
    ExtractionError,
    FailureReason,
    PlanningError,
    SearchError,
    ValidationError,
)
from src.models.product_fact import ProductFact
from src.models.results import ComparisonResult, ResultStatus
from src.models.search_candidate import SearchCandidate
from src.services.collaborators import StaticIdentity
from src.services.tracking_service import TrackingService
from src.storage.sqlite_product_store import SQLiteProductStore

URL = "https://www.amazon.in/Apple-iPhone-15/dp/B0CHX1W1XY"


def _fact(price: float = 69900.0, url: str = URL) -> ProductFact:
    return ProductFact(
        name="Apple iPhone 15 128GB",
        current_price=price,
        rating=4.5,
        review_count=1200,
        image_url="https://img.test/x.jpg",
        platform_domain="amazon.in",
        source_url=url,
    )


class _ServiceTestCase(unittest.TestCase):
    """Service wired to a temp store and mocked remote collaborators."""

    user_id: str | None = "u1"

    def setUp(self) -> None:
        self.tmp_dir = tempfile.mkdtemp()
        self.settings = Settings()
        self.settings.USER_ID = ""
        self.store = SQLiteProductStore(Path(self.tmp_dir) / "svc.db")
        self.extractor = MagicMock()
        self.extractor.extract.return_value = _fact()
        self.notifier = MagicMock()
        self.strategy = MagicMock()
        self.orchestrator = MagicMock()
        self.verdicts = MagicMock()
        self.service = TrackingService(
            self.settings,
            store=self.store,
            identity=StaticIdentity(self.user_id or "", self.settings),
            extractor=self.extractor,
            notifier=self.notifier,
            strategy=self.strategy,
            orchestrator=self.orchestrator,
            verdicts=self.verdicts,
        )

    def tearDown(self) -> None:
        self.store.close()


class TestUnauthenticated(_ServiceTestCase):
    """Every operation short-circuits without a user."""

    user_id = None

    def test_all_operations_refuse(self) -> None:
        results = [
            self.service.preview_product(URL),
            self.service.track_product(URL),
            self.service.track_fact(_fact()),
            self.service.list_products(),
            self.service.delete_product(1),
            self.service.get_price_history(1),
            self.service.search_products("iphone 15"),
            self.service.get_verdict(1),
        ]
        for result in results:
            self.assertIs(result.status, ResultStatus.NOT_AUTHENTICATED)
        self.extractor.extract.assert_not_called()
        self.strategy.discover.assert_not_called()


class TestPreviewAndTrack(_ServiceTestCase):
    """preview_product / track_product / track_fact."""

    def test_preview_does_not_persist(self) -> None:
        result = self.service.preview_product(URL)
        self.assertTrue(result.success)
        self.assertEqual(result.payload.fact.name, "Apple iPhone 15 128GB")
        self.assertGreater(result.payload.deal_score.score, 0)
        self.assertEqual(self.store.list_tracked_products("u1"), [])

    def test_preview_validation_error(self) -> None:
        self.extractor.extract.side_effect = ValidationError("bad url")
        result = self.service.preview_product("ftp://x")
        self.assertIs(result.status, ResultStatus.VALIDATION_ERROR)

    def test_track_extraction_failure(self) -> None:
        self.extractor.extract.side_effect = ExtractionError(
            FailureReason.TIMEOUT, "too slow",
        )
        result = self.service.track_product(URL)
        self.assertIs(result.status, ResultStatus.EXTRACTION_ERROR)
        self.assertEqual(self.store.list_tracked_products("u1"), [])

    def test_track_invalid_fact_is_not_saved(self) -> None:
        self.extractor.extract.return_value = _fact(price=0.0)
        result = self.service.track_product(URL)
        self.assertIs(result.status, ResultStatus.EXTRACTION_ERROR)
        self.assertEqual(self.store.list_tracked_products("u1"), [])

    def test_track_new_product_records_first_point(self) -> None:
        result = self.service.track_product(URL)
        self.assertTrue(result.success)
        product = result.payload
        self.assertIsNotNone(product.id)
        self.assertIsNotNone(product.deal_score)
        history = self.store.get_price_history(product.id)
        self.assertEqual([p.price for p in history], [69900.0])

    def test_track_again_same_price(self) -> None:
        first = self.service.track_product(URL)
        second = self.service.track_product(URL)
        self.assertEqual(first.payload.id, second.payload.id)
        self.assertIn("already tracked", second.message)
        history = self.store.get_price_history(first.payload.id)
        self.assertEqual(len(history), 1)

    def test_track_again_lower_price_alerts(self) -> None:
        first = self.service.track_product(URL)
        self.extractor.extract.return_value = _fact(price=64900.0)
        second = self.service.track_product(URL)
        self.assertIn("Price updated", second.message)
        self.assertEqual(second.payload.current_price, 64900.0)
        self.notifier.notify_price_drop.assert_called_once()
        history = self.store.get_price_history(first.payload.id)
        self.assertEqual([p.price for p in history], [69900.0, 64900.0])

    def test_track_fact_uses_source_url(self) -> None:
        flip = "https://www.flipkart.com/apple-iphone-15/p/itm1"
        result = self.service.track_fact(_fact(url=flip))
        self.assertTrue(result.success)
        self.assertEqual(result.payload.url, flip)
        self.extractor.extract.assert_not_called()

    def test_track_fact_requires_url(self) -> None:
        result = self.service.track_fact(_fact(url=""))
        self.assertIs(result.status, ResultStatus.VALIDATION_ERROR)


class TestListDeleteHistory(_ServiceTestCase):
    """list_products / delete_product / get_price_history."""

    def test_list_is_per_user(self) -> None:
        self.service.track_product(URL)
        self.store.upsert_tracked_product(
            "someone-else", URL, {"name": "x", "current_price": 1.0},
        )
        result = self.service.list_products()
        self.assertEqual(len(result.payload), 1)
        self.assertEqual(result.payload[0].owner_id, "u1")

    def test_delete(self) -> None:
        product_id = self.service.track_product(URL).payload.id
        self.assertTrue(self.service.delete_product(product_id).success)
        missing = self.service.delete_product(product_id)
        self.assertIs(missing.status, ResultStatus.NOT_FOUND)

    def test_history_payload(self) -> None:
        product_id = self.service.track_product(URL).payload.id
        result = self.service.get_price_history(product_id)
        self.assertTrue(result.success)
        self.assertEqual(result.payload["product"].id, product_id)
        self.assertEqual(len(result.payload["history"]), 1)
        self.assertEqual(result.payload["summary"]["count"], 1)

    def test_history_not_found(self) -> None:
        result = self.service.get_price_history(999)
        self.assertIs(result.status, ResultStatus.NOT_FOUND)


class TestSearch(_ServiceTestCase):
    """search_products()."""

    def test_short_query_rejected(self) -> None:
        result = self.service.search_products(" ab ")
        self.assertIs(result.status, ResultStatus.VALIDATION_ERROR)
        self.strategy.discover.assert_not_called()

    def test_results_returned(self) -> None:
        candidates = [
            SearchCandidate(
                platform="flipkart.com",
                url="https://www.flipkart.com/iphone/p/itm1",
            ),
        ]
        self.strategy.discover.return_value = candidates
        result = self.service.search_products("iphone 15")
        self.assertTrue(result.success)
        self.assertEqual(result.payload, candidates)
        self.strategy.discover.assert_called_once_with("iphone 15")

    def test_empty_results_hint(self) -> None:
        self.strategy.discover.return_value = []
        result = self.service.search_products("iphone 15")
        self.assertTrue(result.success)
        self.assertIn("more specific", result.message)

    def test_search_failure(self) -> None:
        self.strategy.discover.side_effect = SearchError(
            FailureReason.NETWORK, "down",
        )
        result = self.service.search_products("iphone 15")
        self.assertIs(result.status, ResultStatus.ERROR)


class TestVerdict(_ServiceTestCase):
    """get_verdict()."""

    def test_verdict_text(self) -> None:
        product_id = self.service.track_product(URL).payload.id
        self.verdicts.get_verdict.return_value = "Buy now."
        result = self.service.get_verdict(product_id)
        self.assertTrue(result.success)
        self.assertEqual(result.payload, "Buy now.")
        product, history = self.verdicts.get_verdict.call_args.args
        self.assertEqual(product.id, product_id)
        self.assertEqual(len(history), 1)

    def test_verdict_failure(self) -> None:
        product_id = self.service.track_product(URL).payload.id
        self.verdicts.get_verdict.side_effect = PlanningError(
            FailureReason.UNAUTHORIZED, "no key",
        )
        result = self.service.get_verdict(product_id)
        self.assertIs(result.status, ResultStatus.ERROR)

    def test_verdict_not_found(self) -> None:
        result = self.service.get_verdict(42)
        self.assertIs(result.status, ResultStatus.NOT_FOUND)


class TestCompare(unittest.IsolatedAsyncioTestCase):
    """compare_product() forwards the orchestrator result."""

    async def test_compare_wraps_result(self) -> None:
        tmp_dir = tempfile.mkdtemp()
        store = SQLiteProductStore(Path(tmp_dir) / "cmp.db")
        self.addCleanup(store.close)
        orchestrator = MagicMock()
        comparison = ComparisonResult(message="No alternatives found")
        orchestrator.compare_across_platforms = AsyncMock(
            return_value=comparison,
        )
        service = TrackingService(
            Settings(),
            store=store,
            identity=StaticIdentity("u1"),
            extractor=MagicMock(),
            orchestrator=orchestrator,
        )
        result = await service.compare_product(URL)
        self.assertTrue(result.success)
        self.assertIs(result.payload, comparison)
        self.assertEqual(result.message, "No alternatives found")
        orchestrator.compare_across_platforms.assert_awaited_once_with(URL)


if __name__ == "__main__":
    unittest.main()
