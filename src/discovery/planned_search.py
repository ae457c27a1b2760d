# src/discovery/planned_search.py

"""Discovery via model-refined queries and fixed search-URL templates.

The model only rewrites the query and picks platforms; every URL is
built here from a template, so no model-invented links reach the
extractor.  The extractor resolves each search page to its first
product.
"""

from src.clients.gemini_client import GeminiClient, QueryPlan
from src.config.platforms import (
    CATEGORY_PLATFORMS,
    FALLBACK_PLATFORMS,
    SEARCH_PLATFORMS,
    SEARCH_URL_TEMPLATES,
    build_search_url,
    normalize_domain,
)
from src.config.settings import Settings
from src.discovery.base_strategy import CandidateDiscoveryStrategy
from src.models.errors import PlanningError
from src.models.product_fact import ProductFact
from src.models.search_candidate import SearchCandidate


def fallback_plan(query: str) -> QueryPlan:
    """Plan used when the model reply is unusable."""
    return QueryPlan(
        refined_query=query.strip(),
        platforms=list(FALLBACK_PLATFORMS),
        category="General",
        confidence="low",
        fallback=True,
    )


def category_platforms(category: str | None) -> list[str]:
    """Platforms for a category name such as 'Fashion/Footwear'."""
    if not category:
        return []
    lowered = category.lower()
    for key, platforms in CATEGORY_PLATFORMS.items():
        if key in lowered:
            return list(platforms)
    return []


class PlannedSearchStrategy(CandidateDiscoveryStrategy):
    """One search-results URL per platform the planner picked."""

    def __init__(
        self,
        settings: Settings | None = None,
        planner: GeminiClient | None = None,
    ) -> None:
        super().__init__("planned", settings)
        self.planner = planner or GeminiClient(self.settings)

    def plan(self, query: str) -> QueryPlan:
        """Ask the planner, degrading to :func:`fallback_plan`."""
        try:
            return self.planner.plan(query)
        except PlanningError as exc:
            self.logger.warning(
                "[planned] Planner failed for '%s', using fallback: %s",
                query,
                exc,
            )
            return fallback_plan(query)

    def choose_platforms(self, plan: QueryPlan, exclude: str) -> list[str]:
        """Model picks first, then the category table, then the defaults."""
        for source in (
            plan.platforms,
            category_platforms(plan.category),
            list(FALLBACK_PLATFORMS),
        ):
            chosen: list[str] = []
            for raw in source:
                domain = normalize_domain(raw)
                if (
                    domain in SEARCH_URL_TEMPLATES
                    and domain != exclude
                    and domain not in chosen
                ):
                    chosen.append(domain)
            if chosen:
                return chosen
        return []

    def discover(
        self,
        product: str | ProductFact,
        exclude_platform: str | None = None,
    ) -> list[SearchCandidate]:
        """Build search-results URLs for the planned platforms."""
        name, exclude = self.resolve_target(product, exclude_platform)
        plan = self.plan(name)
        candidates: list[SearchCandidate] = []
        for platform in self.choose_platforms(plan, exclude):
            url = build_search_url(platform, plan.refined_query)
            if url is None:
                continue
            candidates.append(
                SearchCandidate(
                    platform=platform,
                    url=url,
                    title=plan.refined_query,
                    raw_snippet_signals={
                        "brand": plan.brand,
                        "category": plan.category,
                        "confidence": plan.confidence,
                        "fallback": plan.fallback,
                    },
                    platform_name=SEARCH_PLATFORMS.get(platform, platform),
                    is_search_page=True,
                )
            )
        self.logger.info(
            "[planned] '%s' -> %d search pages (confidence=%s)",
            name,
            len(candidates),
            plan.confidence,
        )
        return candidates
