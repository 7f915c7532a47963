import dataclasses
import logging
import os
from configparser import ConfigParser
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from apm_intake.constants import (
    CONFIG_SECTION_NAME,
    DEFAULT_FLUSH_INTERVAL,
    ENV_ALLOW_INVALID_CERTS,
    ENV_API_KEY,
    ENV_API_KEY_ID,
    ENV_FLUSH_INTERVAL_MS,
    ENV_ROOT_CERT_PATH,
    ENV_SECRET_TOKEN,
    ENV_SERVER_URL,
    OVERFLOW_DROP_OLDEST,
    REQUEST_TIMEOUT,
    VALID_OVERFLOW_POLICIES,
)
from apm_intake.errors import ConfigurationError

from .auth import ApiKey, Authorization, SecretToken

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class Config:
    """
    Construction-time settings of an ApmClient.

    Everything here is consumed once when the client is built. The
    service, process, system, user and cloud values are opaque and only
    threaded through to the metadata envelope.
    """

    apm_address: str
    authorization: Optional[Authorization] = None
    allow_invalid_certs: bool = False
    root_cert_path: Optional[str] = None
    flush_interval: float = DEFAULT_FLUSH_INTERVAL
    timeout: float = REQUEST_TIMEOUT
    max_buffered_batches: Optional[int] = None
    overflow_policy: str = OVERFLOW_DROP_OLDEST
    merge_batches: bool = False
    service: Optional[Mapping[str, Any]] = None
    process: Optional[Mapping[str, Any]] = None
    system: Optional[Mapping[str, Any]] = None
    user: Optional[Mapping[str, Any]] = None
    cloud: Optional[Mapping[str, Any]] = None

    def __post_init__(self):
        if not self.apm_address:
            raise ConfigurationError("apm_address is required")
        if self.flush_interval <= 0:
            raise ConfigurationError(
                f"flush_interval must be positive, got {self.flush_interval}"
            )
        if self.max_buffered_batches is not None and self.max_buffered_batches < 1:
            raise ConfigurationError(
                f"max_buffered_batches must be positive, got {self.max_buffered_batches}"
            )
        if self.overflow_policy not in VALID_OVERFLOW_POLICIES:
            raise ConfigurationError(
                f"Invalid overflow policy: {self.overflow_policy!r}. "
                f"Valid options: {', '.join(VALID_OVERFLOW_POLICIES)}"
            )

    def allow_invalid_certificates(self, allow: bool) -> "Config":
        return dataclasses.replace(self, allow_invalid_certs=allow)

    def with_root_cert_path(self, cert_path: str) -> "Config":
        return dataclasses.replace(self, root_cert_path=cert_path)

    def with_authorization(self, authorization: Authorization) -> "Config":
        return dataclasses.replace(self, authorization=authorization)

    def with_service(self, service: Mapping[str, Any]) -> "Config":
        return dataclasses.replace(self, service=service)

    def with_process(self, process: Mapping[str, Any]) -> "Config":
        return dataclasses.replace(self, process=process)

    def with_system(self, system: Mapping[str, Any]) -> "Config":
        return dataclasses.replace(self, system=system)

    def with_user(self, user: Mapping[str, Any]) -> "Config":
        return dataclasses.replace(self, user=user)

    def with_cloud(self, cloud: Mapping[str, Any]) -> "Config":
        return dataclasses.replace(self, cloud=cloud)

    def with_flush_interval(self, seconds: float) -> "Config":
        return dataclasses.replace(self, flush_interval=seconds)

    @classmethod
    def from_env(cls, **overrides: Any) -> "Config":
        """
        Build a configuration from environment variables.

        Environment variables:
            APM_INTAKE_SERVER_URL: Collector base address (required)
            APM_INTAKE_SECRET_TOKEN: Secret token (Bearer scheme)
            APM_INTAKE_API_KEY_ID / APM_INTAKE_API_KEY: API key pair
            APM_INTAKE_ALLOW_INVALID_CERTS: Disable certificate checks
            APM_INTAKE_ROOT_CERT_PATH: Extra PEM root certificate
            APM_INTAKE_FLUSH_INTERVAL_MS: Idle flush interval

        Keyword overrides win over the environment.

        Raises:
            ConfigurationError: If a value is missing or malformed.
        """
        values = _collect(
            address=os.getenv(ENV_SERVER_URL),
            secret_token=os.getenv(ENV_SECRET_TOKEN),
            api_key_id=os.getenv(ENV_API_KEY_ID),
            api_key=os.getenv(ENV_API_KEY),
            allow_invalid_certs=os.getenv(ENV_ALLOW_INVALID_CERTS),
            root_cert_path=os.getenv(ENV_ROOT_CERT_PATH),
            flush_interval_ms=os.getenv(ENV_FLUSH_INTERVAL_MS),
            source="environment",
            overrides=overrides,
        )
        return cls(**values)

    @classmethod
    def from_config_ini(cls, config_path: Path, **overrides: Any) -> "Config":
        """
        Build a configuration from the [apm] section of an ini file.

        Keys mirror the environment variables: server_url, secret_token,
        api_key_id, api_key, allow_invalid_certs, root_cert_path,
        flush_interval_ms.

        Raises:
            ConfigurationError: If the section is missing or a value is
                malformed.
        """
        config = ConfigParser()
        config_files = config.read([config_path])

        if not config_files or not config.has_section(CONFIG_SECTION_NAME):
            raise ConfigurationError(
                f"missing [{CONFIG_SECTION_NAME}] section in {config_path}",
                source="config",
            )

        section = config[CONFIG_SECTION_NAME]

        def get(key: str) -> Optional[str]:
            return section.get(key, "").strip() or None

        values = _collect(
            address=get("server_url"),
            secret_token=get("secret_token"),
            api_key_id=get("api_key_id"),
            api_key=get("api_key"),
            allow_invalid_certs=get("allow_invalid_certs"),
            root_cert_path=get("root_cert_path"),
            flush_interval_ms=get("flush_interval_ms"),
            source="config",
            overrides=overrides,
        )
        return cls(**values)


def _parse_bool(raw: Optional[str], key: str, source: str) -> bool:
    value = (raw or "").strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {raw!r}", source=source)


def _parse_interval_ms(raw: Optional[str], source: str) -> float:
    if raw is None:
        return DEFAULT_FLUSH_INTERVAL
    try:
        millis = int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"flush interval must be an integer of milliseconds, got {raw!r}",
            source=source,
        ) from e
    return millis / 1000


def _collect(
    address: Optional[str],
    secret_token: Optional[str],
    api_key_id: Optional[str],
    api_key: Optional[str],
    allow_invalid_certs: Optional[str],
    root_cert_path: Optional[str],
    flush_interval_ms: Optional[str],
    source: str,
    overrides: Mapping[str, Any],
) -> dict[str, Any]:
    """
    Common logic for turning raw string settings into Config arguments.

    A key given in overrides is taken as is and its raw setting is not
    checked.
    """
    values: dict[str, Any] = {}

    if "apm_address" not in overrides:
        if not address:
            raise ConfigurationError("collector address is not set", source=source)
        values["apm_address"] = address

    if "authorization" not in overrides:
        values["authorization"] = _authorization(
            secret_token, api_key_id, api_key, source
        )

    if "allow_invalid_certs" not in overrides:
        values["allow_invalid_certs"] = _parse_bool(
            allow_invalid_certs, "allow_invalid_certs", source
        )

    if "flush_interval" not in overrides:
        values["flush_interval"] = _parse_interval_ms(flush_interval_ms, source)

    values["root_cert_path"] = root_cert_path or None
    values.update(overrides)

    logger.debug(
        "Collected %s configuration for %s", source, values.get("apm_address")
    )
    return values


def _authorization(
    secret_token: Optional[str],
    api_key_id: Optional[str],
    api_key: Optional[str],
    source: str,
) -> Optional[Authorization]:
    if secret_token and (api_key_id or api_key):
        raise ConfigurationError(
            "set either a secret token or an API key, not both", source=source
        )
    if secret_token:
        return SecretToken(secret_token)
    if api_key_id or api_key:
        if not (api_key_id and api_key):
            raise ConfigurationError(
                "API key authorization needs both an id and a key", source=source
            )
        return ApiKey(id=api_key_id, key=api_key)
    return None
