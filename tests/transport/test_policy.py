from __future__ import annotations

from unittest.mock import Mock

import httpx
import pytest

from apm_intake.errors import DeliveryError
from apm_intake.transport.policy import (
    RETRYABLE_EXCEPTIONS,
    BestEffortDelivery,
    RetryingDelivery,
    is_retryable,
)


@pytest.mark.unit
class TestBestEffortDelivery:
    def test_single_attempt(self) -> None:
        send = Mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(httpx.ConnectError):
            BestEffortDelivery().deliver(send, "item")

        send.assert_called_once_with("item")

    def test_named_policy(self) -> None:
        assert BestEffortDelivery.name == "best-effort, at-most-once"


@pytest.mark.unit
class TestRetryingDelivery:
    """
    Test the bounded retry extension.
    """

    @pytest.fixture
    def policy(self) -> RetryingDelivery:
        return RetryingDelivery(max_attempts=3, initial_wait=0, max_wait=0)

    @pytest.mark.parametrize("exception_type", RETRYABLE_EXCEPTIONS)
    def test_retries_network_errors(
        self, policy: RetryingDelivery, exception_type: type
    ) -> None:
        send = Mock(side_effect=[exception_type("Network error"), None])

        policy.deliver(send, "item")

        assert send.call_count == 2

    @pytest.mark.parametrize("status_code", [408, 429, 500, 502, 503, 504])
    def test_retries_transient_status(
        self, policy: RetryingDelivery, status_code: int
    ) -> None:
        send = Mock(side_effect=[DeliveryError(status_code), None])

        policy.deliver(send, "item")

        assert send.call_count == 2

    @pytest.mark.parametrize("status_code", [400, 401, 403, 413])
    def test_does_not_retry_client_errors(
        self, policy: RetryingDelivery, status_code: int
    ) -> None:
        send = Mock(side_effect=DeliveryError(status_code))

        with pytest.raises(DeliveryError):
            policy.deliver(send, "item")

        send.assert_called_once()

    def test_gives_up_after_max_attempts(self, policy: RetryingDelivery) -> None:
        send = Mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(httpx.ConnectError):
            policy.deliver(send, "item")

        assert send.call_count == 3


@pytest.mark.unit
class TestIsRetryable:
    def test_other_exceptions_not_retryable(self) -> None:
        assert is_retryable(TypeError("not json")) is False

    def test_delivery_error(self) -> None:
        assert is_retryable(DeliveryError(503)) is True
        assert is_retryable(DeliveryError(404)) is False
