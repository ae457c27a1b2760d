# src/discovery/direct_url.py

"""Discovery via model-proposed product URLs, strictly validated."""

from typing import Any
from urllib.parse import urlparse

from src.clients.gemini_client import GeminiClient
from src.config.platforms import (
    BLOCKED_URL_FRAGMENTS,
    LISTING_PATH_MARKERS,
    PRODUCT_PATH_MARKERS,
    SEARCH_PLATFORMS,
    hostname_of,
    normalize_domain,
)
from src.config.settings import Settings
from src.discovery.base_strategy import CandidateDiscoveryStrategy
from src.models.errors import PlanningError, ValidationError
from src.models.product_fact import ProductFact
from src.models.search_candidate import SearchCandidate


def is_valid_product_url(url: Any, platform: str | None = None) -> bool:
    """Shape check for a proposed direct product URL.

    Requires https, a product-path marker and no search/category/
    browse marker.  With *platform*, the host must belong to it.
    """
    if not isinstance(url, str) or not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme != "https" or not parsed.netloc:
        return False
    lowered = url.lower()
    if any(fragment in lowered for fragment in BLOCKED_URL_FRAGMENTS):
        return False

    path = parsed.path.lower()
    path_and_query = path + (f"?{parsed.query}" if parsed.query else "")
    if not any(marker in path for marker in PRODUCT_PATH_MARKERS):
        return False
    if any(marker in path_and_query for marker in LISTING_PATH_MARKERS):
        return False

    if platform:
        host = hostname_of(url)
        if host != platform and not host.endswith("." + platform):
            return False
    return True


class DirectUrlStrategy(CandidateDiscoveryStrategy):
    """Asks a search-grounded model for product URLs of a known product.

    Only accepts an already-extracted :class:`ProductFact`; free-text
    queries go through the structured or planned strategies.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        planner: GeminiClient | None = None,
    ) -> None:
        super().__init__("direct", settings)
        self.planner = planner or GeminiClient(self.settings)

    def discover(
        self,
        product: str | ProductFact,
        exclude_platform: str | None = None,
    ) -> list[SearchCandidate]:
        """Return validated direct listings on other platforms."""
        if not isinstance(product, ProductFact):
            msg = (
                "Direct URL discovery needs an extracted product, "
                "not a free-text query"
            )
            raise ValidationError(msg)
        name, exclude = self.resolve_target(product, exclude_platform)

        try:
            listings = self.planner.find_listings(
                name,
                product.current_price,
                product.currency_code,
                exclude,
            )
        except PlanningError as exc:
            self.logger.warning(
                "[direct] No usable listings for '%s': %s", name, exc,
            )
            return []

        candidates: list[SearchCandidate] = []
        seen: set[str] = set()
        for listing in listings:
            platform = normalize_domain(str(listing.get("platform") or ""))
            url = str(listing.get("url") or "").strip()
            if not platform or platform == exclude or url in seen:
                continue
            if not is_valid_product_url(url, platform):
                self.logger.debug(
                    "[direct] Dropped invalid URL for %s: %s", platform, url,
                )
                continue
            seen.add(url)
            candidates.append(
                SearchCandidate(
                    platform=platform,
                    url=url,
                    title=name,
                    raw_snippet_signals={
                        "confidence": listing.get("confidence"),
                        "notes": listing.get("notes"),
                    },
                    platform_name=SEARCH_PLATFORMS.get(platform, platform),
                )
            )
        self.logger.info(
            "[direct] '%s': %d of %d proposed URLs kept",
            name,
            len(candidates),
            len(listings),
        )
        return candidates
