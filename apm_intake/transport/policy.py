"""
Delivery policies for the flush loop.

The default policy is best-effort and at-most-once: every batch gets one
delivery attempt and is dropped when it fails. RetryingDelivery adds a
bounded retry in front of that drop; it does not change what happens
after the last attempt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, TypeVar

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from apm_intake.errors import DeliveryError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_EXCEPTIONS = (
    httpx.ConnectError,
    httpx.ReadTimeout,
    httpx.WriteTimeout,
    httpx.RemoteProtocolError,
)


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, DeliveryError):
        return exc.is_retryable
    return isinstance(exc, RETRYABLE_EXCEPTIONS)


class DeliveryPolicy(Protocol):
    name: str

    def deliver(self, send: Callable[[T], None], item: T) -> None: ...


class BestEffortDelivery:
    name = "best-effort, at-most-once"

    def deliver(self, send: Callable[[T], None], item: T) -> None:
        send(item)


@dataclass(frozen=True)
class RetryingDelivery:
    max_attempts: int = 3
    initial_wait: float = 0.5
    max_wait: float = 10.0

    name = "bounded retry, at-most-once"

    def deliver(self, send: Callable[[T], None], item: T) -> None:
        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(initial=self.initial_wait, max=self.max_wait),
            retry=retry_if_exception(is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        retrying(send, item)


DEFAULT_POLICY = BestEffortDelivery()
