from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, List, TypeVar

from apm_intake.constants import DEFAULT_FLUSH_INTERVAL
from apm_intake.log_codes import (
    FLUSH_CALLBACK_FAILED,
    FLUSH_DELIVERY_FAILED,
    FLUSH_DRAINED,
    FLUSH_DROPPED_ON_STOP,
    FLUSH_LOOP_STARTED,
    FLUSH_LOOP_STOPPED,
    FLUSH_SERIALIZATION_FAILED,
)
from apm_intake.transport.policy import DEFAULT_POLICY, DeliveryPolicy

from .batch import Batch
from .buffer import IntakeBuffer
from .callbacks import DeliveryCallbacks, LoopState, NullDeliveryCallbacks

if TYPE_CHECKING:
    from apm_intake.transport.http import EventSender

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FlushLoop:
    """
    Background consumer of the intake buffer.

    Each pass drains the buffer in one step and delivers the snapshot in
    drain order, one request per batch unless merge_batches is set. An
    empty drain waits flush_interval before the next pass; a non-empty one
    loops again right away.

    Failed deliveries are logged and dropped. A batch is never retried by
    the loop itself and never goes back into the buffer.
    """

    def __init__(
        self,
        buffer: IntakeBuffer,
        sender: EventSender,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL,
        policy: DeliveryPolicy = DEFAULT_POLICY,
        merge_batches: bool = False,
        drain_on_stop: bool = True,
        callbacks: DeliveryCallbacks | None = None,
    ):
        self.buffer = buffer
        self.sender = sender
        self.flush_interval = flush_interval
        self.policy = policy
        self.merge_batches = merge_batches
        self.drain_on_stop = drain_on_stop
        self.callbacks = callbacks or NullDeliveryCallbacks()

        self.state = LoopState.IDLE
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Flush loop already started")

        self._thread = threading.Thread(
            target=self.run, name="apm-intake-flush", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """
        Signal the loop to stop and wait for it to finish.

        With drain_on_stop the loop delivers what is still buffered
        before exiting.
        """
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self) -> None:
        logger.debug(
            FLUSH_LOOP_STARTED,
            extra={"flush_interval": self.flush_interval, "policy": self.policy.name},
        )

        while not self._stop.is_set():
            if self.flush() == 0:
                self._stop.wait(self.flush_interval)

        if self.drain_on_stop:
            self.flush(final=True)

        self._set_state(LoopState.STOPPED)
        logger.debug(FLUSH_LOOP_STOPPED)

    def flush(self, final: bool = False) -> int:
        """
        Drain the buffer once and deliver the snapshot.

        Returns:
            int: Number of batches taken from the buffer.
        """
        batches = self.buffer.drain()

        if not batches:
            self._set_state(LoopState.IDLE)
            return 0

        self._set_state(LoopState.DRAINING)
        logger.debug(FLUSH_DRAINED, extra={"batches": len(batches)})

        if self.merge_batches:
            bodies = self._serialize(batches)
            if bodies:
                self._deliver(self.sender.send_ndjson, "".join(bodies), len(bodies))
        else:
            for index, batch in enumerate(batches):
                if not (final or self.drain_on_stop) and self._stop.is_set():
                    logger.warning(
                        FLUSH_DROPPED_ON_STOP,
                        extra={"batches": len(batches) - index},
                    )
                    break
                self._deliver(self.sender.send_batch, batch, 1)

        self._set_state(LoopState.IDLE)
        return len(batches)

    def _serialize(self, batches: List[Batch]) -> List[str]:
        """
        Serialize each batch on its own. A batch that cannot be serialized
        is reported as failed and left out.
        """
        bodies = []
        for batch in batches:
            try:
                bodies.append(batch.to_ndjson())
            except (TypeError, ValueError) as e:
                logger.error(
                    FLUSH_SERIALIZATION_FAILED,
                    extra={"error": str(e), "error_type": type(e).__name__},
                )
                self._notify("batch_failed", 1, e)
        return bodies

    def _deliver(self, send: Callable[[T], None], item: T, count: int) -> None:
        try:
            self.policy.deliver(send, item)
        except Exception as e:
            # Nothing upstream can act on the failure; the batch is dropped.
            logger.error(
                FLUSH_DELIVERY_FAILED,
                extra={
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "batches": count,
                },
            )
            self._notify("batch_failed", count, e)
            return

        self._notify("batch_sent", count)

    def _set_state(self, state: LoopState) -> None:
        if state is not self.state:
            self.state = state
            self._notify("state_change", state)

    def _notify(self, event: str, *args: Any) -> None:
        # Callbacks are user code and must not take the flush thread down.
        try:
            getattr(self.callbacks, event)(*args)
        except Exception:
            logger.exception(FLUSH_CALLBACK_FAILED, extra={"callback": event})
