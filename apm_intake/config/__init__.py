from .auth import ApiKey, Authorization, SecretToken, resolve_authorization
from .main import Config
from .tls import TLSConfig, get_tls_config

__all__ = [
    "ApiKey",
    "Authorization",
    "SecretToken",
    "resolve_authorization",
    "Config",
    "TLSConfig",
    "get_tls_config",
]
