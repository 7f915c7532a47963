from .builder import build_http_client
from .http import EventSender
from .policy import BestEffortDelivery, DeliveryPolicy, RetryingDelivery

__all__ = [
    "build_http_client",
    "EventSender",
    "BestEffortDelivery",
    "DeliveryPolicy",
    "RetryingDelivery",
]
