# tests/test_price_history_tracker.py

"""Tests for PriceHistoryTracker decisions and persistence."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from src.models.product_fact import ProductFact
from src.models.results import NotificationResult
from src.models.tracked_product import TrackedProduct
from src.services.price_history_tracker import PriceHistoryTracker
from src.storage.sqlite_product_store import SQLiteProductStore

URL = "https://www.amazon.in/dp/B0CHX1W1XY"


def _fact(price: float, name: str = "Apple iPhone 15") -> ProductFact:
    return ProductFact(
        name=name,
        current_price=price,
        image_url="https://img.test/new.jpg",
        platform_domain="amazon.in",
        source_url=URL,
    )


def _tracked(price: float) -> TrackedProduct:
    return TrackedProduct(
        owner_id="u1", url=URL, name="Old name", current_price=price, id=7,
    )


class TestRecordObservation(unittest.TestCase):
    """Pure decision logic."""

    def test_unchanged_price_refreshes_but_no_history(self) -> None:
        result = PriceHistoryTracker.record_observation(
            _tracked(1000.0), _fact(1000.0),
        )
        self.assertTrue(result.accepted)
        self.assertFalse(result.history_appended)
        self.assertFalse(result.dropped)
        self.assertEqual(result.updated.name, "Apple iPhone 15")
        self.assertEqual(result.updated.image_url, "https://img.test/new.jpg")

    def test_drop_appends_and_flags(self) -> None:
        result = PriceHistoryTracker.record_observation(
            _tracked(1000.0), _fact(900.0),
        )
        self.assertTrue(result.history_appended)
        self.assertTrue(result.dropped)
        self.assertEqual(result.old_price, 1000.0)
        self.assertEqual(result.new_price, 900.0)

    def test_increase_appends_without_drop(self) -> None:
        result = PriceHistoryTracker.record_observation(
            _tracked(900.0), _fact(950.0),
        )
        self.assertTrue(result.history_appended)
        self.assertFalse(result.dropped)

    def test_numeric_comparison(self) -> None:
        tracked = _tracked(1000)
        result = PriceHistoryTracker.record_observation(
            tracked, _fact(1000.0),
        )
        self.assertFalse(result.history_appended)

    def test_invalid_fact_rejected_without_mutation(self) -> None:
        tracked = _tracked(1000.0)
        result = PriceHistoryTracker.record_observation(
            tracked, _fact(0.0),
        )
        self.assertFalse(result.accepted)
        self.assertIs(result.updated, tracked)
        self.assertEqual(tracked.name, "Old name")

    def test_input_not_mutated(self) -> None:
        tracked = _tracked(1000.0)
        PriceHistoryTracker.record_observation(tracked, _fact(900.0))
        self.assertEqual(tracked.current_price, 1000.0)


class TestApply(unittest.TestCase):
    """Persistence and notification against a real SQLite store."""

    def setUp(self) -> None:
        self.tmp_dir = tempfile.mkdtemp()
        self.store = SQLiteProductStore(Path(self.tmp_dir) / "test.db")
        self.notifier = MagicMock()
        self.notifier.notify_price_drop.return_value = NotificationResult(
            success=True
        )
        self.tracker = PriceHistoryTracker(self.store, self.notifier)
        product = self.store.upsert_tracked_product(
            "u1", URL, {"name": "Apple iPhone 15", "current_price": 1000.0},
        )
        assert product.id is not None
        self.store.append_price_history(product.id, 1000.0, "INR")
        self.product = product

    def tearDown(self) -> None:
        self.store.close()

    def _history(self) -> list[float]:
        assert self.product.id is not None
        return [p.price for p in self.store.get_price_history(self.product.id)]

    def test_repeated_same_price_keeps_one_point(self) -> None:
        for _ in range(2):
            current = self.store.get_tracked_product("u1", URL)
            assert current is not None
            self.tracker.apply(current, _fact(1000.0))
        self.assertEqual(self._history(), [1000.0])
        self.notifier.notify_price_drop.assert_not_called()

    def test_drop_then_rise(self) -> None:
        result = self.tracker.apply(self.product, _fact(900.0))
        self.assertTrue(result.dropped)
        self.assertTrue(result.alert_sent)
        self.notifier.notify_price_drop.assert_called_once()
        args = self.notifier.notify_price_drop.call_args.args
        self.assertEqual(args[0], "u1")
        self.assertEqual(args[2:], (1000.0, 900.0))

        result = self.tracker.apply(result.updated, _fact(950.0))
        self.assertFalse(result.dropped)
        self.assertEqual(self._history(), [1000.0, 900.0, 950.0])
        self.assertEqual(self.notifier.notify_price_drop.call_count, 1)

        stored = self.store.get_tracked_product("u1", URL)
        assert stored is not None
        self.assertEqual(stored.current_price, 950.0)

    def test_notifier_exception_is_not_fatal(self) -> None:
        self.notifier.notify_price_drop.side_effect = RuntimeError("smtp")
        result = self.tracker.apply(self.product, _fact(900.0))
        self.assertTrue(result.dropped)
        self.assertFalse(result.alert_sent)
        self.assertEqual(self._history(), [1000.0, 900.0])

    def test_notifier_failure_result_is_not_fatal(self) -> None:
        self.notifier.notify_price_drop.return_value = NotificationResult(
            success=False, error="bounced",
        )
        result = self.tracker.apply(self.product, _fact(900.0))
        self.assertFalse(result.alert_sent)
        self.assertEqual(self._history(), [1000.0, 900.0])

    def test_invalid_fact_is_never_persisted(self) -> None:
        result = self.tracker.apply(self.product, _fact(0.0))
        self.assertFalse(result.accepted)
        self.assertEqual(self._history(), [1000.0])
        stored = self.store.get_tracked_product("u1", URL)
        assert stored is not None
        self.assertEqual(stored.current_price, 1000.0)


if __name__ == "__main__":
    unittest.main()
