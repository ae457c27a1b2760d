# src/models/product_fact.py

"""Structured facts extracted from one product page."""

import math
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ProductFact:
    """Represents a single extracted product listing from any storefront."""

    name: str
    current_price: float
    currency_code: str = "INR"
    original_price: float | None = None
    image_url: str | None = None
    seller_name: str | None = None
    seller_rating: float | None = None
    rating: float | None = None
    review_count: int = 0
    platform_domain: str = ""
    platform_name: str = ""
    source_url: str = ""
    requested_url: str = ""
    extracted_at: datetime = field(default_factory=datetime.now)

    @property
    def is_valid(self) -> bool:
        """A fact is usable only with a name and a finite positive price."""
        return bool(self.name and self.name.strip()) and (
            math.isfinite(self.current_price) and self.current_price > 0
        )

    @property
    def discount_percent(self) -> float | None:
        """Percent below the list price, for display only."""
        if not self.original_price or (
            self.original_price <= self.current_price
        ):
            return None
        saved = self.original_price - self.current_price
        return round(saved / self.original_price * 100, 1)
