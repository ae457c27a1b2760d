# tests/test_search_client.py

"""Tests for the Serper web search client."""

import unittest
from unittest.mock import MagicMock, patch

from src.clients.search_client import SearchClient
from src.config.settings import Settings
from src.models.errors import FailureReason, SearchError


def _settings() -> Settings:
    settings = Settings()
    settings.SERPER_API_KEY = "serper-test"
    return settings


class TestSearchClient(unittest.TestCase):
    """search() request shape and result parsing."""

    def setUp(self) -> None:
        with patch("src.clients.base_client.curl_requests.Session"):
            self.client = SearchClient(_settings())
        resp = MagicMock()
        resp.status_code = 200
        resp.json.return_value = {
            "organic": [
                {
                    "title": "Apple iPhone 15 (128 GB) - Black",
                    "link": "https://www.amazon.in/dp/B0CHX1W1XY",
                    "snippet": "Buy now",
                    "price": "₹69,900",
                    "imageUrl": "https://img.test/a.jpg",
                    "rating": 4.5,
                },
                {"title": "No link"},
                {
                    "title": "Flipkart listing",
                    "link": "https://www.flipkart.com/p/itm123",
                },
            ]
        }
        self.client.session.post.return_value = resp

    def test_site_filters_in_query(self) -> None:
        self.client.search("iphone 15", ["amazon.in", "flipkart.com"])
        payload = self.client.session.post.call_args.kwargs["json"]
        self.assertEqual(
            payload["q"],
            "iphone 15 (site:amazon.in OR site:flipkart.com)",
        )
        self.assertEqual(payload["gl"], "in")

    def test_api_key_header(self) -> None:
        self.client.search("iphone 15")
        headers = self.client.session.post.call_args.kwargs["headers"]
        self.assertEqual(headers["X-API-KEY"], "serper-test")

    def test_parses_organic_results(self) -> None:
        results = self.client.search("iphone 15")
        self.assertEqual(len(results), 2)
        first = results[0]
        self.assertEqual(first.price, 69900.0)
        self.assertEqual(first.image, "https://img.test/a.jpg")
        self.assertEqual(first.rating, 4.5)
        self.assertIsNone(results[1].price)
        self.assertIsNone(results[1].image)

    def test_missing_api_key(self) -> None:
        self.client.settings.SERPER_API_KEY = ""
        with self.assertRaises(SearchError) as ctx:
            self.client.search("iphone 15")
        self.assertIs(ctx.exception.reason, FailureReason.UNAUTHORIZED)


if __name__ == "__main__":
    unittest.main()
