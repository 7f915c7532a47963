import base64
import logging
from dataclasses import dataclass
from typing import Optional, Union

import httpx

from apm_intake.log_codes import AUTH_RESOLVED

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SecretToken:
    token: str

    def __repr__(self) -> str:
        return "SecretToken(token='***')"


@dataclass(frozen=True)
class ApiKey:
    id: str
    key: str

    def __repr__(self) -> str:
        return f"ApiKey(id={self.id!r}, key='***')"


# APM authorization method.
Authorization = Union[SecretToken, ApiKey]


def resolve_authorization(authorization: Optional[Authorization]) -> Optional[str]:
    """
    Turn the configured credential into an Authorization header value.

    Args:
        authorization (Optional[Authorization]): The configured credential.

    Returns:
        Optional[str]: The header value, or None when no credential is set.
    """
    if authorization is None:
        return None

    if isinstance(authorization, SecretToken):
        scheme = "Bearer"
        value = f"Bearer {authorization.token}"
    elif isinstance(authorization, ApiKey):
        scheme = "ApiKey"
        encoded = base64.b64encode(
            f"{authorization.id}:{authorization.key}".encode("utf-8")
        ).decode("ascii")
        value = f"ApiKey {encoded}"
    else:
        raise TypeError(f"Unsupported authorization: {type(authorization)}")

    logger.debug(AUTH_RESOLVED, extra={"scheme": scheme})
    return value


class AuthorizationHeaderAuth(httpx.Auth):
    """
    Attaches a pre-resolved Authorization header to every request.
    """

    def __init__(self, header_value: str):
        self.header_value = header_value

    def auth_flow(self, request):
        request.headers["Authorization"] = self.header_value
        yield request
