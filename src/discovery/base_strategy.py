# src/discovery/base_strategy.py

"""Contract shared by all candidate discovery strategies."""

import importlib
import logging
from abc import ABC, abstractmethod
from typing import Any

from src.config.platforms import normalize_domain
from src.config.settings import Settings
from src.models.errors import ValidationError
from src.models.product_fact import ProductFact
from src.models.search_candidate import SearchCandidate


class CandidateDiscoveryStrategy(ABC):
    """Finds candidate listings of a product on other platforms."""

    def __init__(
        self,
        strategy_id: str,
        settings: Settings | None = None,
    ) -> None:
        self.strategy_id = strategy_id
        self.settings = settings or Settings()
        self.logger = logging.getLogger(
            f"pricewatch.discovery.{strategy_id}"
        )

    @staticmethod
    def resolve_target(
        product: str | ProductFact,
        exclude_platform: str | None,
    ) -> tuple[str, str]:
        """Return the product name and the normalised platform to skip.

        A fact's own platform is excluded unless the caller names one.
        """
        if isinstance(product, ProductFact):
            name = product.name
            exclude = exclude_platform or product.platform_domain
        else:
            name = product
            exclude = exclude_platform or ""
        name = (name or "").strip()
        if not name:
            msg = "A product name is required for discovery"
            raise ValidationError(msg)
        return name, normalize_domain(exclude)

    @abstractmethod
    def discover(
        self,
        product: str | ProductFact,
        exclude_platform: str | None = None,
    ) -> list[SearchCandidate]:
        """Return candidate listings, never on *exclude_platform*."""
        ...


def _load_strategy_class(dotted_path: str) -> type[Any]:
    """Dynamically import a strategy class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


def load_discovery_strategy(
    settings: Settings | None = None,
    strategy_id: str | None = None,
) -> CandidateDiscoveryStrategy:
    """Instantiate the configured discovery strategy.

    Raises :class:`ValidationError` for an unknown strategy id.
    """
    settings = settings or Settings()
    wanted = strategy_id or settings.DISCOVERY_STRATEGY
    registry = {s["id"]: s for s in settings.DISCOVERY_STRATEGIES}
    if wanted not in registry:
        valid = ", ".join(sorted(registry))
        msg = f"Unknown discovery strategy '{wanted}' (available: {valid})"
        raise ValidationError(msg)
    cls = _load_strategy_class(registry[wanted]["strategy"])
    strategy: CandidateDiscoveryStrategy = cls(settings=settings)
    return strategy
