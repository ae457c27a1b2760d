# src/services/verdict_service.py

"""Short AI buying verdict for a tracked product."""

import logging

from src.clients.gemini_client import GeminiClient
from src.config.settings import Settings
from src.models.price_history_point import PriceHistoryPoint
from src.models.tracked_product import TrackedProduct
from src.scoring.deal_scorer import DealScorer, DealSignals

logger = logging.getLogger("pricewatch.verdict")

VERDICT_PROMPT = """\
You are a shopping assistant. Give a concise verdict (2-4 sentences) on
whether this is a good time to buy. Be specific about the price and the
trend; do not use markdown.

{details}
"""

HISTORY_TAIL = 5


def describe_history(
    history: list[PriceHistoryPoint], currency: str,
) -> list[str]:
    """Trend lines for the prompt; empty with fewer than two points."""
    if len(history) < 2:
        return []
    prices = [p.price for p in history]
    first, latest = prices[0], prices[-1]
    change = (latest - first) / first * 100 if first else 0.0
    if latest < first:
        direction = "dropped"
    elif latest > first:
        direction = "increased"
    else:
        direction = "stable"

    lines = [
        f"Lowest tracked price: {currency} {min(prices):,.2f}",
        f"Highest tracked price: {currency} {max(prices):,.2f}",
        f"Price has {direction} {abs(change):.1f}% since tracking began",
        "Recent prices:",
    ]
    for point in history[-HISTORY_TAIL:]:
        lines.append(
            f"  {point.observed_at:%Y-%m-%d}: {currency} {point.price:,.2f}"
        )
    return lines


def build_verdict_prompt(
    product: TrackedProduct, history: list[PriceHistoryPoint],
) -> str:
    """Prompt text from the product, its deal score and price trend."""
    score = DealScorer.score(DealSignals(
        rating=product.rating,
        review_count=product.review_count,
        seller_rating=product.seller_rating,
        seller_name=product.seller_name,
        platform_domain=product.platform_domain,
    ))
    lines = [
        f"Product: {product.name}",
        f"Platform: {product.platform_domain or 'unknown'}",
        f"Current price: {product.currency} {product.current_price:,.2f}",
    ]
    if product.original_price and (
        product.original_price > product.current_price
    ):
        discount = (
            (product.original_price - product.current_price)
            / product.original_price * 100
        )
        lines.append(
            f"MRP: {product.currency} {product.original_price:,.2f} "
            f"({discount:.0f}% off)"
        )
    lines.append(f"Deal score: {score.score} ({score.label.value})")
    if product.rating is not None:
        lines.append(
            f"Rating: {product.rating}/5 from {product.review_count} reviews"
        )
    lines.extend(describe_history(history, product.currency))
    return VERDICT_PROMPT.format(details="\n".join(lines))


class VerdictService:
    """Asks the model for a buy/wait verdict."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: GeminiClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.client = client or GeminiClient(self.settings)

    def get_verdict(
        self,
        product: TrackedProduct,
        history: list[PriceHistoryPoint],
    ) -> str:
        """Return the trimmed verdict text.

        Raises :class:`PlanningError` when the model call fails.
        """
        prompt = build_verdict_prompt(product, history)
        text = self.client.generate_text(
            prompt, temperature=self.settings.VERDICT_TEMPERATURE,
        )
        logger.info("Verdict generated for product %s", product.id)
        return text.strip()
