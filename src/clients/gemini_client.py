# src/clients/gemini_client.py

"""Gemini ``generateContent`` client: query planning and free text."""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from src.clients.base_client import BaseApiClient
from src.config.settings import Settings
from src.models.errors import FailureReason, PlanningError

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

PLANNER_PROMPT = """\
You are a product search expert. Analyze this product query and help \
create the best search terms.

USER QUERY: "{query}"

1. Extract the brand (if mentioned)
2. Identify the product type and category
3. Extract key specifications (color, size, model, storage)
4. Choose the Indian e-commerce platforms that sell this category
5. Write an optimized search query (brand + type + key specs, 4-8 words)

Return ONLY this JSON (no markdown):
{{
  "productAnalysis": {{
    "brand": "brand name or null",
    "productType": "type of product",
    "category": "Electronics, Fashion, Beauty, Home, Sports, Books or General",
    "specifications": "key specs"
  }},
  "searchQuery": "optimized search string",
  "platforms": ["platform1.com", "platform2.com"],
  "confidence": "high/medium/low"
}}

PLATFORM SELECTION RULES:
- Electronics: amazon.in, flipkart.com, tatacliq.com, croma.com, \
reliancedigital.in, vijaysales.com
- Fashion/Footwear: amazon.in, flipkart.com, myntra.com, tatacliq.com, ajio.com
- Beauty/Cosmetics: amazon.in, flipkart.com, myntra.com, nykaa.com
- Home/Furniture, Sports/Fitness: amazon.in, flipkart.com, tatacliq.com
- Books/Media and anything else: amazon.in, flipkart.com
Never include snapdeal.com."""

LISTINGS_PROMPT = """\
You are a product search expert with access to Google Search. Find REAL, \
CURRENT product listings for the product below.

PRODUCT: "{name}"
PRICE SEEN: {currency} {price}
ALREADY ON: {platform}

Rules:
- Use Google Search; never guess or invent URLs.
- Return ONLY direct product page URLs, never search or category pages.
- Include only platforms where this EXACT variant is sold.
- Skip {platform}, Snapdeal and unknown sites.
- If unsure about a listing, leave it out. An empty list is fine.

Return ONLY this JSON (no markdown):
{{
  "listings": [
    {{"platform": "flipkart.com", "url": "https://...", \
"confidence": "high/medium", "notes": "why"}}
  ]
}}"""


@dataclass
class QueryPlan:
    """Refined search query and platforms chosen by the model."""

    refined_query: str
    platforms: list[str] = field(
        default_factory=lambda: list[str]()
    )
    brand: str | None = None
    category: str | None = None
    confidence: str = "medium"
    fallback: bool = False


def parse_json_object(text: str) -> dict[str, Any]:
    """Pull the first JSON object out of a model reply.

    Handles markdown fences and chatter around the object.
    Raises :class:`PlanningError` when nothing parses.
    """
    cleaned = _FENCE_RE.sub("", text).strip()
    candidates = [cleaned]
    match = _OBJECT_RE.search(cleaned)
    if match:
        candidates.append(match.group(0))
    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    raise PlanningError(
        FailureReason.INVALID_RESPONSE,
        f"Model reply is not a JSON object: {text[:120]!r}",
    )


def _optional_text(value: Any) -> str | None:
    """Treat blanks and the literal string 'null' as missing."""
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped or stripped.lower() == "null":
        return None
    return stripped


class GeminiClient(BaseApiClient):
    """Text generation for query planning, URL discovery and verdicts."""

    error_cls = PlanningError

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__("planner", settings)

    def generate_text(
        self,
        prompt: str,
        temperature: float,
        grounded: bool = False,
    ) -> str:
        """Send one prompt and return the concatenated reply text."""
        if not self.settings.GEMINI_API_KEY:
            raise PlanningError(
                FailureReason.UNAUTHORIZED,
                "GEMINI_API_KEY is not set",
            )
        url = (
            f"{self.settings.GEMINI_API_BASE}/models/"
            f"{self.settings.GEMINI_MODEL}:generateContent"
        )
        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature},
        }
        if grounded:
            payload["tools"] = [{"google_search": {}}]

        data = self._post_json(
            url,
            {"x-goog-api-key": self.settings.GEMINI_API_KEY},
            payload,
            timeout=self.settings.PLANNER_TIMEOUT,
        )
        try:
            parts: list[dict[str, Any]] = (
                data["candidates"][0]["content"]["parts"]
            )
        except (KeyError, IndexError, TypeError) as exc:
            raise PlanningError(
                FailureReason.INVALID_RESPONSE,
                "Model reply has no candidates",
            ) from exc
        text = "".join(
            str(p.get("text", "")) for p in parts if isinstance(p, dict)
        ).strip()
        if not text:
            raise PlanningError(
                FailureReason.INVALID_RESPONSE, "Model reply is empty",
            )
        return text

    def plan(self, query: str) -> QueryPlan:
        """Ask the model for a refined query and platform subset.

        Raises :class:`PlanningError` on any unusable reply; callers
        own the fallback.
        """
        text = self.generate_text(
            PLANNER_PROMPT.format(query=query),
            temperature=self.settings.PLANNER_TEMPERATURE,
        )
        data = parse_json_object(text)

        refined = _optional_text(data.get("searchQuery"))
        if refined is None:
            raise PlanningError(
                FailureReason.INVALID_RESPONSE,
                "Model reply has no searchQuery",
            )
        raw_platforms: Any = data.get("platforms") or []
        if not isinstance(raw_platforms, list):
            raise PlanningError(
                FailureReason.INVALID_RESPONSE,
                "Model reply has a non-list 'platforms'",
            )
        analysis: Any = data.get("productAnalysis") or {}
        if not isinstance(analysis, dict):
            analysis = {}
        plan = QueryPlan(
            refined_query=refined,
            platforms=[
                str(p).strip().lower()
                for p in raw_platforms
                if isinstance(p, str) and p.strip()
            ],
            brand=_optional_text(analysis.get("brand")),
            category=_optional_text(analysis.get("category")),
            confidence=_optional_text(data.get("confidence")) or "medium",
        )
        self.logger.info(
            "[planner] '%s' -> '%s' (category=%s, platforms=%s)",
            query,
            plan.refined_query,
            plan.category,
            plan.platforms,
        )
        return plan

    def find_listings(
        self,
        name: str,
        price: float,
        currency: str,
        platform: str,
    ) -> list[dict[str, Any]]:
        """Ask the search-grounded model for direct product listings."""
        text = self.generate_text(
            LISTINGS_PROMPT.format(
                name=name,
                price=f"{price:,.2f}",
                currency=currency,
                platform=platform or "unknown",
            ),
            temperature=self.settings.DIRECT_URL_TEMPERATURE,
            grounded=True,
        )
        data = parse_json_object(text)
        listings: Any = data.get("listings") or []
        if not isinstance(listings, list):
            raise PlanningError(
                FailureReason.INVALID_RESPONSE,
                "Model reply has a non-list 'listings'",
            )
        return [item for item in listings if isinstance(item, dict)]
