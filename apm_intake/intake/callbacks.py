"""Callback interface for flush loop events."""

from enum import Enum
from typing import Protocol


class LoopState(Enum):
    """States of the flush loop."""

    IDLE = "idle"  # Buffer observed empty, waiting
    DRAINING = "draining"  # Delivering a drained snapshot
    STOPPED = "stopped"


class DeliveryCallbacks(Protocol):
    def batch_sent(self, count: int) -> None: ...
    def batch_failed(self, count: int, exc: Exception) -> None: ...
    def state_change(self, state: LoopState) -> None: ...


class NullDeliveryCallbacks:
    def batch_sent(self, count: int) -> None:
        pass

    def batch_failed(self, count: int, exc: Exception) -> None:
        pass

    def state_change(self, state: LoopState) -> None:
        pass
