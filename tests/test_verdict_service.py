# tests/test_verdict_service.py

"""Tests for the verdict prompt and service."""

import unittest
from datetime import datetime, timedelta
from unittest.mock import MagicMock

from src.config.settings import Settings
from src.models.price_history_point import PriceHistoryPoint
from src.models.tracked_product import TrackedProduct
from src.services.verdict_service import (
    VerdictService,
    build_verdict_prompt,
    describe_history,
)


def _product(**overrides: object) -> TrackedProduct:
    values: dict[str, object] = {
        "owner_id": "u1",
        "url": "https://www.amazon.in/dp/B0CHX1W1XY",
        "name": "Apple iPhone 15",
        "current_price": 60000.0,
        "original_price": 80000.0,
        "rating": 4.5,
        "review_count": 1500,
        "platform_domain": "amazon.in",
        "id": 3,
    }
    values.update(overrides)
    return TrackedProduct(**values)  # type: ignore[arg-type]


def _history(prices: list[float]) -> list[PriceHistoryPoint]:
    start = datetime(2024, 1, 1)
    return [
        PriceHistoryPoint(
            product_id=3, price=p, currency="INR",
            observed_at=start + timedelta(days=i),
        )
        for i, p in enumerate(prices)
    ]


class TestDescribeHistory(unittest.TestCase):
    """Trend lines for the prompt."""

    def test_single_point_has_no_trend(self) -> None:
        self.assertEqual(describe_history(_history([100.0]), "INR"), [])

    def test_drop_direction_and_tail(self) -> None:
        prices = [1000.0, 990.0, 980.0, 970.0, 960.0, 950.0, 800.0]
        lines = describe_history(_history(prices), "INR")
        text = "\n".join(lines)
        self.assertIn("dropped 20.0%", text)
        self.assertIn("Lowest tracked price: INR 800.00", text)
        self.assertIn("Highest tracked price: INR 1,000.00", text)
        # only the last five points are listed
        self.assertNotIn("2024-01-02", text)
        self.assertIn("2024-01-03", text)
        self.assertIn("2024-01-07", text)

    def test_stable(self) -> None:
        lines = describe_history(_history([500.0, 500.0]), "INR")
        self.assertIn("stable", "\n".join(lines))


class TestBuildVerdictPrompt(unittest.TestCase):
    """Prompt content."""

    def test_includes_price_discount_and_score(self) -> None:
        prompt = build_verdict_prompt(_product(), _history([65000, 60000]))
        self.assertIn("Apple iPhone 15", prompt)
        self.assertIn("INR 60,000.00", prompt)
        self.assertIn("(25% off)", prompt)
        self.assertIn("Deal score:", prompt)
        self.assertIn("Rating: 4.5/5 from 1500 reviews", prompt)
        self.assertIn("dropped", prompt)

    def test_omits_missing_mrp_and_rating(self) -> None:
        prompt = build_verdict_prompt(
            _product(original_price=None, rating=None), [],
        )
        self.assertNotIn("MRP", prompt)
        self.assertNotIn("Rating:", prompt)


class TestVerdictService(unittest.TestCase):
    """get_verdict() delegates to the model client."""

    def test_returns_stripped_text(self) -> None:
        client = MagicMock()
        client.generate_text.return_value = "  Good time to buy.\n"
        settings = Settings()
        service = VerdictService(settings, client=client)
        verdict = service.get_verdict(_product(), _history([1.0, 2.0]))
        self.assertEqual(verdict, "Good time to buy.")
        kwargs = client.generate_text.call_args.kwargs
        self.assertEqual(kwargs["temperature"], settings.VERDICT_TEMPERATURE)


if __name__ == "__main__":
    unittest.main()
