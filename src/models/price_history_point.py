# src/models/price_history_point.py

"""Temporal price observation for a tracked product."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class PriceHistoryPoint:
    """A single stored price for a tracked product at a point in time."""

    product_id: int
    price: float
    currency: str
    observed_at: datetime
