# src/models/deal_score.py

"""Deal score value objects."""

from dataclasses import dataclass, field
from enum import Enum


class DealLabel(Enum):
    """Score bucket shown next to a listing."""

    EXCELLENT = "Excellent Deal"
    GOOD = "Good Deal"
    AVERAGE = "Average Deal"
    BELOW_AVERAGE = "Below Average"
    POOR = "Poor Deal"


_RECOMMENDATIONS: dict[DealLabel, str] = {
    DealLabel.EXCELLENT: (
        "Highly recommended! This product has excellent ratings, many "
        "reviews, and comes from a trusted seller."
    ),
    DealLabel.GOOD: (
        "Good choice! This product has solid ratings and reasonable "
        "validation."
    ),
    DealLabel.AVERAGE: (
        "Proceed with caution. This product is average, check reviews "
        "carefully before purchasing."
    ),
    DealLabel.BELOW_AVERAGE: (
        "Not recommended. This product has concerning ratings or lacks "
        "validation."
    ),
    DealLabel.POOR: (
        "Avoid! This product has poor ratings, few reviews, or comes "
        "from an untrusted seller."
    ),
}


@dataclass(frozen=True)
class ComponentScore:
    """One weighted factor of a deal score."""

    raw_score: float        # 0-100
    weight: float           # fraction of the final score
    earned_points: float    # raw_score * weight


@dataclass(frozen=True)
class DealScore:
    """Normalised 0-100 trust/quality score for a listing."""

    score: float
    label: DealLabel
    emoji: str
    color: str
    breakdown: dict[str, ComponentScore] = field(
        default_factory=lambda: dict[str, ComponentScore]()
    )
    platform_trust: float = 0.0

    @property
    def recommendation(self) -> str:
        """Plain-language advice for the score bucket."""
        return _RECOMMENDATIONS[self.label]

    def format_breakdown(self) -> str:
        """Render the breakdown as one line per factor."""
        lines = [
            f"{name.title()}: {part.raw_score:.0f}/100 "
            f"({part.earned_points:.1f}/{part.weight * 100:.0f} pts)"
            for name, part in self.breakdown.items()
        ]
        return "\n".join(lines)
