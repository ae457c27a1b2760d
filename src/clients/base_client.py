# src/clients/base_client.py

"""Abstract base class for JSON API clients (extraction, search, LLM)."""

import logging
import re
import time
from abc import ABC
from collections.abc import Callable
from typing import Any, TypeVar

from curl_cffi import requests as curl_requests
from curl_cffi.requests.exceptions import RequestException, Timeout

from src.config.settings import Settings
from src.models.errors import FailureReason, ServiceError

T = TypeVar("T")


class BaseApiClient(ABC):
    """Shared HTTP plumbing: one session, error mapping, backoff."""

    # Subclasses raise their own ServiceError flavour
    error_cls: type[ServiceError] = ServiceError

    def __init__(
        self,
        service_name: str,
        settings: Settings | None = None,
    ) -> None:
        self.service_name = service_name
        self.logger = logging.getLogger(
            f"pricewatch.{service_name}"
        )
        self.settings = settings or Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self.session.close()

    def _fail(
        self, reason: FailureReason, message: str,
    ) -> ServiceError:
        """Build this client's error type."""
        return self.error_cls(reason, message)

    def _classify_status(self, status_code: int) -> FailureReason:
        """Map a non-200 HTTP status to a failure reason."""
        if status_code == 429:
            return FailureReason.RATE_LIMITED
        if status_code in (401, 403):
            return FailureReason.UNAUTHORIZED
        if status_code == 408:
            return FailureReason.TIMEOUT
        if status_code >= 500:
            return FailureReason.NETWORK
        return FailureReason.INVALID_RESPONSE

    def _post_json(
        self,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any],
        timeout: float,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """POST a JSON body once and return the decoded JSON object.

        Raises this client's :class:`ServiceError` subclass with a
        :class:`FailureReason` describing what went wrong.
        """
        try:
            resp = self.session.post(
                url,
                headers={**self.settings.DEFAULT_HEADERS, **headers},
                params=params,
                json=payload,
                timeout=timeout,
            )
        except Timeout as exc:
            raise self._fail(
                FailureReason.TIMEOUT,
                f"{self.service_name} timed out after {timeout}s",
            ) from exc
        except RequestException as exc:
            raise self._fail(
                FailureReason.NETWORK,
                f"{self.service_name} request failed: {exc}",
            ) from exc

        if resp.status_code != 200:
            reason = self._classify_status(resp.status_code)
            raise self._fail(
                reason,
                f"{self.service_name} returned HTTP "
                f"{resp.status_code}: {resp.text[:200]}",
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise self._fail(
                FailureReason.INVALID_RESPONSE,
                f"{self.service_name} returned non-JSON body",
            ) from exc
        if not isinstance(data, dict):
            raise self._fail(
                FailureReason.INVALID_RESPONSE,
                f"{self.service_name} returned a JSON "
                f"{type(data).__name__}, expected an object",
            )
        return data

    def _retry_with_backoff(
        self,
        operation: Callable[[], T],
        max_attempts: int,
        base_delay: float,
    ) -> T:
        """Run *operation* with exponential backoff between attempts.

        Waits ``base_delay * 2 ** (attempt - 1)`` seconds after a
        retryable failure.  Terminal failures and the final attempt's
        failure are re-raised unchanged.
        """
        for attempt in range(1, max_attempts + 1):
            try:
                return operation()
            except ServiceError as exc:
                if not exc.retryable or attempt == max_attempts:
                    raise
                delay = base_delay * 2 ** (attempt - 1)
                self.logger.warning(
                    "[%s] Attempt %d/%d failed (%s), retrying in %.1fs",
                    self.service_name,
                    attempt,
                    max_attempts,
                    exc.reason.value,
                    delay,
                )
                time.sleep(delay)
        msg = "max_attempts must be >= 1"
        raise ValueError(msg)

    @staticmethod
    def extract_price(value: Any) -> float:
        """Extract a numeric price from ``1299``, ``'₹1,299.00'`` etc."""
        if value is None or isinstance(value, bool):
            return 0.0
        if isinstance(value, (int, float)):
            return float(value)
        cleaned = str(value).replace(",", "")
        numbers = re.findall(r"\d+\.?\d*", cleaned)
        return float(numbers[0]) if numbers else 0.0
