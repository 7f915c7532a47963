from typing import Optional


class ApmIntakeError(Exception):
    """
    Base error for the APM intake client.

    Args:
        message (str): The error message.
    """
    def __init__(self, message: str = "An error occurred in the APM intake client."):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(ApmIntakeError):
    """
    Error raised when the client configuration is missing or malformed.

    Args:
        reason (str): What is wrong with the configuration.
        source (str): Where the offending value came from.
    """
    def __init__(self, reason: str, source: str = "arguments"):
        self.reason = reason
        self.source = source
        super().__init__(f"Invalid APM intake configuration ({source}): {reason}")


class CertificateError(ApmIntakeError):
    """
    Error raised when the root certificate cannot be read or parsed.

    Args:
        path (str): The root certificate path.
        reason (Optional[str]): The underlying failure.
    """
    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason
        info = f" Details: {reason}" if reason else ""
        super().__init__(f"Unable to load root certificate from {path}.{info}")


class TransportBuildError(ApmIntakeError):
    """
    Error raised when the HTTP client cannot be constructed.

    Args:
        reason (Optional[str]): The underlying failure.
    """
    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        info = f" Details: {reason}" if reason else ""
        super().__init__(f"Unable to build the HTTP transport.{info}")


class DeliveryError(ApmIntakeError):
    """
    Error raised when the collector rejects a batch.

    Args:
        status_code (int): The HTTP status returned by the collector.
        detail (Optional[str]): Response body excerpt, if any.
    """
    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        info = f": {detail}" if detail else ""
        super().__init__(f"Collector responded with HTTP {status_code}{info}")

    @property
    def is_retryable(self) -> bool:
        return self.status_code in {408, 429} or 500 <= self.status_code < 600
