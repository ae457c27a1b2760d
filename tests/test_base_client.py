# tests/test_base_client.py

"""Tests for BaseApiClient error mapping and backoff."""

import time
import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from curl_cffi.requests.exceptions import RequestException, Timeout

from src.clients.base_client import BaseApiClient
from src.config.settings import Settings
from src.models.errors import FailureReason, SearchError, ServiceError


class _StubClient(BaseApiClient):
    """Concrete client exposing protected members for testing."""

    error_cls = SearchError

    def post_json(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Public wrapper for _post_json."""
        return self._post_json("https://api.test/x", {}, payload, timeout=5)

    def retry(self, operation: Any, attempts: int = 3) -> Any:
        """Public wrapper for _retry_with_backoff."""
        return self._retry_with_backoff(operation, attempts, 2.0)


def _response(status: int = 200, body: Any = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.text = "body"
    resp.json.return_value = body if body is not None else {}
    return resp


class TestPostJson(unittest.TestCase):
    """HTTP status and exception classification."""

    def setUp(self) -> None:
        with patch("src.clients.base_client.curl_requests.Session"):
            self.client = _StubClient("stub", Settings())

    def _assert_reason(self, reason: FailureReason) -> None:
        with self.assertRaises(SearchError) as ctx:
            self.client.post_json({})
        self.assertIs(ctx.exception.reason, reason)

    def test_success_returns_dict(self) -> None:
        self.client.session.post.return_value = _response(body={"ok": 1})
        self.assertEqual(self.client.post_json({}), {"ok": 1})

    def test_merges_default_headers(self) -> None:
        self.client.session.post.return_value = _response(body={"ok": 1})
        self.client.post_json({"a": 1})
        kwargs = self.client.session.post.call_args.kwargs
        self.assertEqual(kwargs["headers"]["Content-Type"], "application/json")
        self.assertEqual(kwargs["json"], {"a": 1})
        self.assertEqual(kwargs["timeout"], 5)

    def test_rate_limited(self) -> None:
        self.client.session.post.return_value = _response(429)
        self._assert_reason(FailureReason.RATE_LIMITED)

    def test_unauthorized(self) -> None:
        self.client.session.post.return_value = _response(401)
        self._assert_reason(FailureReason.UNAUTHORIZED)

    def test_server_error_is_network(self) -> None:
        self.client.session.post.return_value = _response(503)
        self._assert_reason(FailureReason.NETWORK)

    def test_bad_request_is_invalid_response(self) -> None:
        self.client.session.post.return_value = _response(400)
        self._assert_reason(FailureReason.INVALID_RESPONSE)

    def test_timeout_exception(self) -> None:
        self.client.session.post.side_effect = Timeout("slow")
        self._assert_reason(FailureReason.TIMEOUT)

    def test_connection_exception(self) -> None:
        self.client.session.post.side_effect = RequestException("reset")
        self._assert_reason(FailureReason.NETWORK)

    def test_non_json_body(self) -> None:
        resp = _response()
        resp.json.side_effect = ValueError("not json")
        self.client.session.post.return_value = resp
        self._assert_reason(FailureReason.INVALID_RESPONSE)

    def test_json_array_body(self) -> None:
        self.client.session.post.return_value = _response(body=[1, 2])
        self._assert_reason(FailureReason.INVALID_RESPONSE)


class TestRetryWithBackoff(unittest.TestCase):
    """Exponential backoff between retryable failures."""

    def setUp(self) -> None:
        with patch("src.clients.base_client.curl_requests.Session"):
            self.client = _StubClient("stub", Settings())

    def test_retries_then_succeeds(self) -> None:
        operation = MagicMock(side_effect=[
            ServiceError(FailureReason.NETWORK, "a"),
            ServiceError(FailureReason.RATE_LIMITED, "b"),
            "done",
        ])
        self.assertEqual(self.client.retry(operation), "done")
        self.assertEqual(operation.call_count, 3)

    def test_backoff_delays_double(self) -> None:
        operation = MagicMock(side_effect=[
            ServiceError(FailureReason.NETWORK, "a"),
            ServiceError(FailureReason.NETWORK, "b"),
            "done",
        ])
        with patch.object(time, "sleep") as sleep:
            self.client.retry(operation)
        self.assertEqual(
            [c.args[0] for c in sleep.call_args_list], [2.0, 4.0]
        )

    def test_gives_up_after_max_attempts(self) -> None:
        operation = MagicMock(
            side_effect=ServiceError(FailureReason.NETWORK, "down")
        )
        with self.assertRaises(ServiceError):
            self.client.retry(operation, attempts=3)
        self.assertEqual(operation.call_count, 3)

    def test_timeout_is_not_retried(self) -> None:
        operation = MagicMock(
            side_effect=ServiceError(FailureReason.TIMEOUT, "slow")
        )
        with self.assertRaises(ServiceError):
            self.client.retry(operation)
        self.assertEqual(operation.call_count, 1)

    def test_unauthorized_is_not_retried(self) -> None:
        operation = MagicMock(
            side_effect=ServiceError(FailureReason.UNAUTHORIZED, "key")
        )
        with self.assertRaises(ServiceError):
            self.client.retry(operation)
        self.assertEqual(operation.call_count, 1)


class TestExtractPrice(unittest.TestCase):
    """Price coercion from loosely typed values."""

    def test_values(self) -> None:
        cases: dict[Any, float] = {
            1299: 1299.0,
            "₹1,299.00": 1299.0,
            "Rs. 49,999": 49999.0,
            "free": 0.0,
            None: 0.0,
            True: 0.0,
        }
        for value, expected in cases.items():
            with self.subTest(value=value):
                self.assertEqual(BaseApiClient.extract_price(value), expected)


if __name__ == "__main__":
    unittest.main()
