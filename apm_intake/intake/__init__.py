from .batch import Batch
from .buffer import IntakeBuffer
from .callbacks import DeliveryCallbacks, LoopState, NullDeliveryCallbacks
from .loop import FlushLoop

__all__ = [
    "Batch",
    "IntakeBuffer",
    "DeliveryCallbacks",
    "LoopState",
    "NullDeliveryCallbacks",
    "FlushLoop",
]
