# src/models/tracked_product.py

"""A product a user has asked to watch."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class TrackedProduct:
    """Latest known state of a product, unique per (owner_id, url)."""

    owner_id: str
    url: str
    name: str
    current_price: float
    currency: str = "INR"
    id: int | None = None
    image_url: str | None = None
    original_price: float | None = None
    seller_name: str | None = None
    seller_rating: float | None = None
    rating: float | None = None
    review_count: int = 0
    platform_domain: str = ""
    deal_score: float | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
