from .client import ApmClient
from .config import ApiKey, Authorization, Config, SecretToken
from .constants import TRACE_ID_FIELD_NAME
from .errors import (
    ApmIntakeError,
    CertificateError,
    ConfigurationError,
    DeliveryError,
    TransportBuildError,
)
from .intake import Batch
from .metadata import build_metadata
from .transport import BestEffortDelivery, RetryingDelivery

__all__ = [
    "ApmClient",
    "ApiKey",
    "Authorization",
    "Config",
    "SecretToken",
    "TRACE_ID_FIELD_NAME",
    "ApmIntakeError",
    "CertificateError",
    "ConfigurationError",
    "DeliveryError",
    "TransportBuildError",
    "Batch",
    "build_metadata",
    "BestEffortDelivery",
    "RetryingDelivery",
]
