# src/discovery/structured_search.py

"""Discovery via one site-filtered web search across storefronts."""

from urllib.parse import urlparse

from src.clients.search_client import SearchClient, WebResult
from src.config.platforms import (
    PRODUCT_PAGE_PATTERNS,
    SEARCH_PLATFORMS,
    match_search_platform,
)
from src.config.settings import Settings
from src.discovery.base_strategy import CandidateDiscoveryStrategy
from src.models.product_fact import ProductFact
from src.models.search_candidate import SearchCandidate


def looks_like_product_page(platform: str, url: str) -> bool:
    """True when *url* is an individual product page on *platform*.

    Category, brand and search pages fail the per-platform shape rule.
    Platforms without a rule accept any URL.
    """
    pattern = PRODUCT_PAGE_PATTERNS.get(platform)
    if pattern is None:
        return True
    parsed = urlparse(url)
    target = parsed.path + (f"?{parsed.query}" if parsed.query else "")
    return bool(pattern.search(target))


class StructuredSearchStrategy(CandidateDiscoveryStrategy):
    """Groups web search hits by storefront, keeping the top few each."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: SearchClient | None = None,
    ) -> None:
        super().__init__("search", settings)
        self.client = client or SearchClient(self.settings)

    def _site_filters(self, exclude: str) -> list[str]:
        """Allow-listed domains for the ``site:`` operators."""
        domains = [d for d in SEARCH_PLATFORMS if d != exclude]
        return domains[: self.settings.SITE_FILTER_LIMIT]

    def discover(
        self,
        product: str | ProductFact,
        exclude_platform: str | None = None,
    ) -> list[SearchCandidate]:
        """Search once and bucket results per platform."""
        name, exclude = self.resolve_target(product, exclude_platform)
        results = self.client.search(name, self._site_filters(exclude))

        per_platform: dict[str, list[SearchCandidate]] = {}
        rejected = 0
        for result in results:
            platform = match_search_platform(result.link)
            if platform is None or platform == exclude:
                continue
            if not looks_like_product_page(platform, result.link):
                rejected += 1
                continue
            bucket = per_platform.setdefault(platform, [])
            if len(bucket) >= self.settings.MAX_RESULTS_PER_PLATFORM:
                continue
            bucket.append(self._to_candidate(platform, result))

        candidates = [c for bucket in per_platform.values() for c in bucket]
        self.logger.info(
            "[search] '%s': %d candidates on %d platforms "
            "(%d non-product pages skipped)",
            name,
            len(candidates),
            len(per_platform),
            rejected,
        )
        return candidates

    @staticmethod
    def _to_candidate(
        platform: str, result: WebResult,
    ) -> SearchCandidate:
        return SearchCandidate(
            platform=platform,
            url=result.link,
            title=result.title,
            raw_snippet_signals={
                "snippet": result.snippet,
                "price": result.price,
                "image": result.image,
                "rating": result.rating,
            },
            platform_name=SEARCH_PLATFORMS[platform],
        )
