# src/models/results.py

"""Typed result envelopes returned across service boundaries."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.models.deal_score import DealScore
from src.models.product_fact import ProductFact
from src.models.tracked_product import TrackedProduct


class ResultStatus(Enum):
    """Outcome of a service operation."""

    OK = "ok"
    NOT_AUTHENTICATED = "not_authenticated"
    VALIDATION_ERROR = "validation_error"
    EXTRACTION_ERROR = "extraction_error"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class ActionResult:
    """Outcome of a tracking operation plus its payload."""

    status: ResultStatus
    message: str = ""
    payload: Any = None

    @property
    def success(self) -> bool:
        """True when the operation completed."""
        return self.status is ResultStatus.OK


@dataclass
class ScoredFact:
    """An extracted listing together with its deal score."""

    fact: ProductFact
    deal_score: DealScore
    candidate_url: str = ""


@dataclass
class ComparisonResult:
    """The original listing plus ranked same-product alternatives."""

    status: ResultStatus = ResultStatus.OK
    message: str = ""
    original: ScoredFact | None = None
    alternatives: list[ScoredFact] = field(
        default_factory=lambda: list[ScoredFact]()
    )
    discovered_count: int = 0
    failed_count: int = 0
    deduplicated_count: int = 0
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )

    @property
    def success(self) -> bool:
        """True when the original was extracted (alternatives may be empty)."""
        return self.status is ResultStatus.OK


@dataclass
class ObservationResult:
    """What a fresh extraction did to a tracked product."""

    updated: TrackedProduct
    accepted: bool = True
    history_appended: bool = False
    dropped: bool = False
    old_price: float | None = None
    new_price: float | None = None
    alert_sent: bool = False

    @property
    def price_changed(self) -> bool:
        """True when the stored price moved."""
        return (
            self.old_price is not None
            and self.new_price is not None
            and self.new_price != self.old_price
        )


@dataclass
class NotificationResult:
    """Outcome reported by a notifier."""

    success: bool
    error: str | None = None


@dataclass
class SweepResult:
    """Counters from one periodic price-check sweep."""

    authorized: bool = True
    total: int = 0
    updated: int = 0
    failed: int = 0
    price_changes: int = 0
    alerts_sent: int = 0
    duration_seconds: float = 0.0
