# src/clients/extraction_client.py

"""Product page extraction through the Firecrawl scrape API."""

import math
from datetime import datetime
from typing import Any

from src.clients.base_client import BaseApiClient
from src.config.platforms import PlatformConfig, detect_platform
from src.config.settings import Settings
from src.models.errors import (
    ExtractionError,
    FailureReason,
    ValidationError,
)
from src.models.product_fact import ProductFact

EXTRACTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "productName": {"type": "string"},
        "productUrl": {"type": "string"},
        "currentPrice": {"type": "number"},
        "currencyCode": {"type": "string"},
        "productImageUrl": {"type": "string"},
        "originalPrice": {"type": "number"},
        "sellerName": {"type": "string"},
        "sellerRating": {"type": "number"},
        "rating": {"type": "number"},
        "reviewCount": {"type": "number"},
    },
    "required": ["productName", "currentPrice"],
}


def build_extraction_prompt(platform: PlatformConfig) -> str:
    """Natural-language instruction sent alongside the schema."""
    currency_hint = (
        'use "INR" for Indian Rupees'
        if platform.is_indian
        else "USD, EUR, GBP, etc."
    )
    return (
        f"Extract product information from this {platform.name} page:\n"
        "- Product name as 'productName'\n"
        "- Direct URL of the product page as 'productUrl'. If this is a "
        "search results page, use the URL of the FIRST product listing "
        "shown. If this is already a product page, use its canonical "
        "URL.\n"
        "- Current selling price as 'currentPrice' (look for: "
        f"{', '.join(platform.price_terms)}). Numeric value only, no "
        "currency symbols or thousands separators.\n"
        f"- Currency code as 'currencyCode' ({currency_hint})\n"
        "- Main product image URL as 'productImageUrl'\n"
        "- Original MRP/list price as 'originalPrice' if available\n"
        "- Seller name as 'sellerName' if available\n"
        "- Seller rating as 'sellerRating' if available (0-5 scale)\n"
        "- Product rating as 'rating' if available (0-5 scale)\n"
        "- Number of reviews as 'reviewCount' if available\n\n"
        "Important: if multiple prices exist (MRP vs sale price), use the "
        "LOWEST as currentPrice and the HIGHEST as originalPrice."
    )


class ExtractionClient(BaseApiClient):
    """Turns a product page URL into a validated :class:`ProductFact`."""

    error_cls = ExtractionError

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__("extraction", settings)

    def extract(self, url: str) -> ProductFact:
        """Extract one product page, retrying transient failures.

        Raises:
            ValidationError: the URL is empty or has no hostname.
            ExtractionError: no valid fact after all attempts, or a
                terminal failure (timeout, rejected API key).
        """
        if not url or not url.strip():
            msg = "URL is required"
            raise ValidationError(msg)
        url = url.strip()
        platform = detect_platform(url)
        if platform is None:
            msg = f"Not a valid product URL: {url}"
            raise ValidationError(msg)
        if not self.settings.FIRECRAWL_API_KEY:
            raise ExtractionError(
                FailureReason.UNAUTHORIZED,
                "FIRECRAWL_API_KEY is not set",
            )

        self.logger.info(
            "[extraction] Start %s (%s, wait=%dms)",
            url,
            platform.domain,
            platform.wait_ms,
        )
        try:
            fact = self._retry_with_backoff(
                lambda: self._extract_once(url, platform),
                max_attempts=self.settings.EXTRACTION_MAX_ATTEMPTS,
                base_delay=self.settings.BACKOFF_BASE,
            )
        except ExtractionError as exc:
            self.logger.error(
                "[extraction] Failed %s from %s: %s",
                url,
                platform.name,
                exc,
            )
            raise
        self.logger.info(
            "[extraction] Done %s: %r at %s %.2f",
            url,
            fact.name,
            fact.currency_code,
            fact.current_price,
        )
        return fact

    def _extract_once(
        self, url: str, platform: PlatformConfig,
    ) -> ProductFact:
        """Single extraction attempt bounded by the attempt timeout."""
        payload: dict[str, Any] = {
            "url": url,
            "formats": ["extract"],
            "waitFor": platform.wait_ms,
            "timeout": self.settings.EXTRACTION_SERVICE_TIMEOUT_MS,
            "headers": {
                "Accept-Language": platform.accept_language,
                "Accept": (
                    "text/html,application/xhtml+xml,"
                    "application/xml;q=0.9,*/*;q=0.8"
                ),
            },
            "extract": {
                "prompt": build_extraction_prompt(platform),
                "schema": EXTRACTION_SCHEMA,
            },
        }
        headers = {
            "Authorization": f"Bearer {self.settings.FIRECRAWL_API_KEY}",
        }
        data = self._post_json(
            self.settings.FIRECRAWL_API_URL,
            headers,
            payload,
            timeout=self.settings.EXTRACTION_ATTEMPT_TIMEOUT,
        )
        if data.get("success") is False:
            raise ExtractionError(
                FailureReason.INVALID_RESPONSE,
                str(data.get("error") or "extraction service reported failure"),
            )
        body: Any = data.get("data") or {}
        raw: Any = body.get("extract") if isinstance(body, dict) else None
        if not isinstance(raw, dict):
            raise ExtractionError(
                FailureReason.INVALID_RESPONSE,
                f"No extracted data for {platform.name}; the page might be "
                "protected or have an unusual structure",
            )
        return self.build_fact(raw, url, platform)

    def build_fact(
        self,
        raw: dict[str, Any],
        requested_url: str,
        platform: PlatformConfig,
    ) -> ProductFact:
        """Coerce a raw extraction dict into a validated fact."""
        name = str(raw.get("productName") or "").strip()
        if not name:
            raise ExtractionError(
                FailureReason.INVALID_RESPONSE,
                f"Could not extract a product name from {platform.name}",
            )
        price = self.extract_price(raw.get("currentPrice"))
        if not math.isfinite(price) or price <= 0:
            raise ExtractionError(
                FailureReason.INVALID_RESPONSE,
                "Could not extract a valid price from the product page",
            )

        original = _positive(self.extract_price(raw.get("originalPrice")))
        reviews = _positive(self.extract_price(raw.get("reviewCount")))
        resolved = str(raw.get("productUrl") or "").strip()
        return ProductFact(
            name=name,
            current_price=price,
            currency_code=(
                str(raw.get("currencyCode") or "").strip().upper()
                or platform.default_currency
            ),
            original_price=original,
            image_url=_optional_str(raw.get("productImageUrl")),
            seller_name=_optional_str(raw.get("sellerName")),
            seller_rating=_optional_rating(raw.get("sellerRating")),
            rating=_optional_rating(raw.get("rating")),
            review_count=int(reviews) if reviews else 0,
            platform_domain=platform.domain,
            platform_name=platform.name,
            source_url=(
                resolved if resolved.startswith("http") else requested_url
            ),
            requested_url=requested_url,
            extracted_at=datetime.now(),
        )


def _optional_str(value: Any) -> str | None:
    """Blank strings and non-strings become ``None``."""
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def _optional_rating(value: Any) -> float | None:
    """Ratings outside 0-5 are dropped rather than trusted."""
    number = BaseApiClient.extract_price(value)
    if not 0 < number <= 5:
        return None
    return number


def _positive(number: float) -> float | None:
    """Finite positive numbers only; NaN and infinity count as missing."""
    if not math.isfinite(number) or number <= 0:
        return None
    return number
