# src/clients/search_client.py

"""Web search through the Serper Google Search API."""

from dataclasses import dataclass
from typing import Any

from src.clients.base_client import BaseApiClient
from src.config.settings import Settings
from src.models.errors import FailureReason, SearchError


@dataclass
class WebResult:
    """One organic result returned by the search service."""

    title: str
    link: str
    snippet: str = ""
    price: float | None = None
    image: str | None = None
    rating: float | None = None


class SearchClient(BaseApiClient):
    """Runs a single web query and normalises the organic results."""

    error_cls = SearchError

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__("search", settings)

    def search(
        self,
        query: str,
        site_filters: list[str] | None = None,
    ) -> list[WebResult]:
        """Search the web, optionally restricted to ``site:`` domains."""
        if not self.settings.SERPER_API_KEY:
            raise SearchError(
                FailureReason.UNAUTHORIZED,
                "SERPER_API_KEY is not set",
            )
        full_query = query
        if site_filters:
            sites = " OR ".join(f"site:{s}" for s in site_filters)
            full_query = f"{query} ({sites})"

        payload: dict[str, Any] = {
            "q": full_query,
            "gl": self.settings.SEARCH_COUNTRY,
            "hl": self.settings.SEARCH_LANGUAGE,
            "num": self.settings.SEARCH_RESULT_COUNT,
        }
        data = self._retry_with_backoff(
            lambda: self._post_json(
                self.settings.SERPER_API_URL,
                {"X-API-KEY": self.settings.SERPER_API_KEY},
                payload,
                timeout=self.settings.SEARCH_TIMEOUT,
            ),
            max_attempts=self.settings.EXTRACTION_MAX_ATTEMPTS,
            base_delay=self.settings.BACKOFF_BASE,
        )

        organic: Any = data.get("organic") or []
        results = [
            self._parse_result(item)
            for item in organic
            if isinstance(item, dict) and item.get("link")
        ]
        self.logger.info(
            "[search] %d raw results for '%s'", len(results), query,
        )
        return results

    def _parse_result(self, item: dict[str, Any]) -> WebResult:
        """Normalise one organic result."""
        price = self.extract_price(item.get("price"))
        rating = self.extract_price(item.get("rating"))
        return WebResult(
            title=str(item.get("title") or ""),
            link=str(item["link"]),
            snippet=str(item.get("snippet") or ""),
            price=price if price > 0 else None,
            image=item.get("imageUrl") or None,
            rating=rating if rating > 0 else None,
        )
