# src/models/errors.py

"""Exception taxonomy shared by clients, discovery and services."""

from enum import Enum


class FailureReason(Enum):
    """Why a call to an external service failed."""

    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    INVALID_RESPONSE = "invalid_response"
    NETWORK = "network"
    UNAUTHORIZED = "unauthorized"


# Reasons that a second attempt cannot fix
_TERMINAL_REASONS: frozenset[FailureReason] = frozenset({
    FailureReason.TIMEOUT,
    FailureReason.UNAUTHORIZED,
})


class PriceWatchError(Exception):
    """Base class for all pricewatch errors."""


class ValidationError(PriceWatchError):
    """Missing or malformed caller input. Never retried."""


class ServiceError(PriceWatchError):
    """A remote collaborator could not produce a usable answer."""

    def __init__(self, reason: FailureReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message

    @property
    def retryable(self) -> bool:
        """Whether the backoff loop may try again."""
        return self.reason not in _TERMINAL_REASONS

    def __str__(self) -> str:
        return f"[{self.reason.value}] {self.message}"


class ExtractionError(ServiceError):
    """The extraction service could not produce a valid product fact."""


class SearchError(ServiceError):
    """The web search service failed."""


class PlanningError(ServiceError):
    """The language model returned nothing usable."""
