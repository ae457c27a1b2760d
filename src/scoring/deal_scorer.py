# src/scoring/deal_scorer.py

"""Weighted 0-100 deal score from a listing's quality signals.

Four factors, each scored 0-100 and then weighted:

* rating   (40%): product star rating, neutral 60 when unknown
* reviews  (30%): review-count bands as social proof
* seller   (20%): seller rating, or a name heuristic when unrated
* platform (10%): static storefront trust table (0-10, rescaled)

The scorer is a pure function of its inputs; nothing is cached.
"""

import math
from dataclasses import dataclass

from src.config.platforms import (
    DEFAULT_PLATFORM_TRUST,
    FULFILMENT_PHRASES,
    PLATFORM_TRUST,
    SELLER_TRUST_PHRASES,
    TRUSTED_SELLERS,
    normalize_domain,
)
from src.models.deal_score import ComponentScore, DealLabel, DealScore
from src.models.product_fact import ProductFact

WEIGHTS: dict[str, float] = {
    "rating": 0.4,
    "reviews": 0.3,
    "seller": 0.2,
    "platform": 0.1,
}

# (minimum review count, score), checked top-down
REVIEW_BANDS: tuple[tuple[int, float], ...] = (
    (1000, 100.0),
    (500, 85.0),
    (250, 70.0),
    (100, 55.0),
    (50, 40.0),
    (10, 25.0),
    (1, 10.0),
)

# (minimum score, label, emoji, rich style)
LABEL_BANDS: tuple[tuple[float, DealLabel, str, str], ...] = (
    (85.0, DealLabel.EXCELLENT, "🔥", "bold green"),
    (70.0, DealLabel.GOOD, "✅", "blue"),
    (55.0, DealLabel.AVERAGE, "⚠️", "yellow"),
    (40.0, DealLabel.BELOW_AVERAGE, "👎", "dark_orange"),
)
POOR_BAND: tuple[DealLabel, str, str] = (DealLabel.POOR, "❌", "red")


@dataclass(frozen=True)
class DealSignals:
    """Inputs the scorer looks at."""

    rating: float | None = None
    review_count: int = 0
    seller_rating: float | None = None
    seller_name: str | None = None
    platform_domain: str | None = None

    @classmethod
    def from_fact(cls, fact: ProductFact) -> "DealSignals":
        """Read the quality signals off an extracted fact."""
        return cls(
            rating=fact.rating,
            review_count=fact.review_count,
            seller_rating=fact.seller_rating,
            seller_name=fact.seller_name,
            platform_domain=fact.platform_domain,
        )


def rating_score(rating: float | None) -> float:
    """Product rating on 0-100; unknown ratings are neutral."""
    if not rating:
        return 60.0
    return rating / 5.0 * 100


def review_score(review_count: int | None) -> float:
    """Banded review-count score."""
    if not review_count or review_count <= 0:
        return 0.0
    for minimum, score in REVIEW_BANDS:
        if review_count >= minimum:
            return score
    return 0.0


def seller_score(
    seller_rating: float | None,
    seller_name: str | None,
    platform_domain: str | None,
) -> float:
    """Seller trust on 0-100, preferring the platform's own rating."""
    if seller_rating and seller_rating > 0:
        return seller_rating / 5.0 * 100
    if not seller_name or not seller_name.strip():
        return 50.0

    seller = seller_name.strip().lower()
    if any(phrase in seller for phrase in SELLER_TRUST_PHRASES):
        return 100.0

    domain = (platform_domain or "").lower()
    for platform_key, trusted in TRUSTED_SELLERS.items():
        if platform_key in domain and any(t in seller for t in trusted):
            return 100.0

    if any(phrase in seller for phrase in FULFILMENT_PHRASES):
        return 80.0
    return 30.0


def platform_trust(platform_domain: str | None) -> float:
    """Static storefront trust on 0-10."""
    domain = normalize_domain(platform_domain)
    return PLATFORM_TRUST.get(domain, DEFAULT_PLATFORM_TRUST)


def _round_half_up(value: float) -> float:
    """Round to one decimal, halves away from zero."""
    return math.floor(value * 10 + 0.5) / 10


def _label_for(score: float) -> tuple[DealLabel, str, str]:
    for minimum, label, emoji, color in LABEL_BANDS:
        if score >= minimum:
            return label, emoji, color
    return POOR_BAND


class DealScorer:
    """Maps quality signals to a :class:`DealScore`."""

    @staticmethod
    def score(signals: DealSignals) -> DealScore:
        """Compute the weighted score, label and breakdown."""
        trust = platform_trust(signals.platform_domain)
        raw: dict[str, float] = {
            "rating": rating_score(signals.rating),
            "reviews": review_score(signals.review_count),
            "seller": seller_score(
                signals.seller_rating,
                signals.seller_name,
                signals.platform_domain,
            ),
            "platform": trust / 10 * 100,
        }
        breakdown = {
            name: ComponentScore(
                raw_score=round(value, 2),
                weight=WEIGHTS[name],
                earned_points=round(value * WEIGHTS[name], 2),
            )
            for name, value in raw.items()
        }
        total = sum(raw[name] * WEIGHTS[name] for name in WEIGHTS)
        final = _round_half_up(max(0.0, min(100.0, total)))
        label, emoji, color = _label_for(final)
        return DealScore(
            score=final,
            label=label,
            emoji=emoji,
            color=color,
            breakdown=breakdown,
            platform_trust=trust,
        )

    @staticmethod
    def score_fact(fact: ProductFact) -> DealScore:
        """Score an extracted fact."""
        return DealScorer.score(DealSignals.from_fact(fact))
