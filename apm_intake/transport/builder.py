import logging
from typing import Optional

import httpx

from apm_intake.config.auth import AuthorizationHeaderAuth
from apm_intake.config.tls import TLSConfig
from apm_intake.constants import REQUEST_TIMEOUT
from apm_intake.errors import TransportBuildError
from apm_intake.meta import get_meta_http_headers

logger = logging.getLogger(__name__)


def build_http_client(
    tls_config: TLSConfig,
    authorization: Optional[str] = None,
    timeout: Optional[float] = REQUEST_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """
    Create the HTTP client used for every collector request.

    Args:
        tls_config (TLSConfig): Resolved TLS trust posture.
        authorization (Optional[str]): Resolved Authorization header value.
        timeout (Optional[float]): Per-request timeout in seconds.
        transport (Optional[httpx.BaseTransport]): Transport override.

    Returns:
        httpx.Client: The configured client.

    Raises:
        TransportBuildError: If the client cannot be created.
    """
    client_kwargs = {
        "verify": tls_config.verify_context,
        "headers": get_meta_http_headers(),
        "timeout": httpx.Timeout(timeout),
        "trust_env": False,
    }

    if authorization:
        client_kwargs["auth"] = AuthorizationHeaderAuth(authorization)

    if transport is not None:
        client_kwargs["transport"] = transport

    try:
        client = httpx.Client(**client_kwargs)
    except (TypeError, ValueError, OSError) as e:
        raise TransportBuildError(reason=str(e)) from e

    logger.debug(
        "HTTP client created (tls=%s, authorization=%s)",
        tls_config.mode,
        bool(authorization),
    )
    return client
