from __future__ import annotations

import logging
import threading
from collections import deque

from apm_intake.constants import (
    OVERFLOW_DROP_OLDEST,
    VALID_OVERFLOW_POLICIES,
)
from apm_intake.errors import ConfigurationError
from apm_intake.log_codes import BUFFER_OVERFLOW_DROPPED

from .batch import Batch

logger = logging.getLogger(__name__)


class IntakeBuffer:
    """
    Lock-guarded sequence of pending batches.

    Producers append from any thread; the flush loop takes everything at
    once with drain(). No I/O happens while the lock is held.

    Unbounded unless max_batches is set, in which case the overflow policy
    decides which batch is dropped. Producers are never blocked.
    """

    def __init__(
        self,
        max_batches: int | None = None,
        overflow_policy: str = OVERFLOW_DROP_OLDEST,
    ):
        if max_batches is not None and max_batches < 1:
            raise ConfigurationError(
                f"max_batches must be positive, got {max_batches}"
            )
        if overflow_policy not in VALID_OVERFLOW_POLICIES:
            raise ConfigurationError(
                f"Invalid overflow policy: {overflow_policy!r}. "
                f"Valid options: {', '.join(VALID_OVERFLOW_POLICIES)}"
            )

        self.max_batches = max_batches
        self.overflow_policy = overflow_policy

        self._batches: deque[Batch] = deque()
        self._lock = threading.Lock()
        self._dropped = 0

    def append(self, batch: Batch) -> None:
        dropped = False

        with self._lock:
            if self.max_batches is not None and len(self._batches) >= self.max_batches:
                dropped = True
                self._dropped += 1
                if self.overflow_policy == OVERFLOW_DROP_OLDEST:
                    self._batches.popleft()
                    self._batches.append(batch)
            else:
                self._batches.append(batch)

        if dropped:
            logger.warning(
                BUFFER_OVERFLOW_DROPPED,
                extra={
                    "policy": self.overflow_policy,
                    "max_batches": self.max_batches,
                    "dropped_total": self._dropped,
                },
            )

    def drain(self) -> list[Batch]:
        """
        Take every buffered batch, leaving the buffer empty.
        """
        with self._lock:
            batches, self._batches = self._batches, deque()
        return list(batches)

    @property
    def dropped(self) -> int:
        return self._dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._batches)
