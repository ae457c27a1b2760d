# src/services/collaborators.py

"""Notifier and identity collaborators with their default implementations."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.config.settings import Settings
from src.models.results import NotificationResult
from src.models.tracked_product import TrackedProduct

logger = logging.getLogger("pricewatch.notify")


@dataclass(frozen=True)
class User:
    """The caller on whose behalf tracking operations run."""

    id: str
    email: str | None = None


class Notifier(ABC):
    """Delivers price-drop alerts."""

    @abstractmethod
    def notify_price_drop(
        self,
        recipient: str,
        product: TrackedProduct,
        old_price: float,
        new_price: float,
    ) -> NotificationResult:
        ...


class LoggingNotifier(Notifier):
    """Writes price-drop alerts to the log instead of sending them."""

    def notify_price_drop(
        self,
        recipient: str,
        product: TrackedProduct,
        old_price: float,
        new_price: float,
    ) -> NotificationResult:
        saved = old_price - new_price
        percent = saved / old_price * 100 if old_price else 0.0
        logger.warning(
            "Price drop for %s: '%s' %s %.2f -> %.2f (-%.1f%%) %s",
            recipient,
            product.name,
            product.currency,
            old_price,
            new_price,
            percent,
            product.url,
        )
        return NotificationResult(success=True)


class Identity(ABC):
    """Resolves the current user, or None when nobody is signed in."""

    @abstractmethod
    def current_user(self) -> User | None:
        ...


class StaticIdentity(Identity):
    """Identity fixed at construction (``--user`` or ``PRICEWATCH_USER_ID``)."""

    def __init__(
        self,
        user_id: str | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or Settings()
        self._user_id = (user_id or settings.USER_ID or "").strip()

    def current_user(self) -> User | None:
        if not self._user_id:
            return None
        return User(id=self._user_id)
