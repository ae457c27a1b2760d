# src/storage/product_store.py

"""Persistence contract for tracked products and their price history."""

from abc import ABC, abstractmethod
from typing import Any

from src.models.price_history_point import PriceHistoryPoint
from src.models.tracked_product import TrackedProduct

# Columns a caller may set through upsert_tracked_product()
TRACKED_FIELDS: tuple[str, ...] = (
    "name",
    "current_price",
    "currency",
    "image_url",
    "original_price",
    "seller_name",
    "seller_rating",
    "rating",
    "review_count",
    "platform_domain",
    "deal_score",
)


class ProductStore(ABC):
    """Stores tracked products, unique per ``(owner_id, url)``."""

    @abstractmethod
    def upsert_tracked_product(
        self, owner_id: str, url: str, fields: dict[str, Any],
    ) -> TrackedProduct:
        """Insert or update the product for this owner and URL."""
        ...

    @abstractmethod
    def update_tracked_product(
        self, product: TrackedProduct,
    ) -> TrackedProduct:
        """Persist the display fields of an existing product."""
        ...

    @abstractmethod
    def get_tracked_product(
        self, owner_id: str, url: str,
    ) -> TrackedProduct | None:
        ...

    @abstractmethod
    def get_tracked_product_by_id(
        self, product_id: int, owner_id: str,
    ) -> TrackedProduct | None:
        ...

    @abstractmethod
    def append_price_history(
        self, product_id: int, price: float, currency: str,
    ) -> PriceHistoryPoint:
        ...

    @abstractmethod
    def get_price_history(
        self, product_id: int,
    ) -> list[PriceHistoryPoint]:
        """Return the product's history, oldest first."""
        ...

    @abstractmethod
    def get_trend_summary(
        self, product_id: int,
    ) -> dict[str, object] | None:
        """Min / max / avg / latest / count, or None without history."""
        ...

    @abstractmethod
    def list_tracked_products(
        self, owner_id: str,
    ) -> list[TrackedProduct]:
        ...

    @abstractmethod
    def list_all_tracked_products(self) -> list[TrackedProduct]:
        """Every tracked product across owners (used by the sweep)."""
        ...

    @abstractmethod
    def delete_tracked_product(
        self, product_id: int, owner_id: str,
    ) -> bool:
        """Delete the product and its history. False if not owned."""
        ...
