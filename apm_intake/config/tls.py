import logging
import re
import ssl
from pathlib import Path
from ssl import SSLContext
from typing import NamedTuple, Optional, Union

import certifi

from apm_intake.errors import CertificateError
from apm_intake.log_codes import (
    TLS_INSECURE_ENABLED,
    TLS_RESOLVED,
    TLS_ROOT_CERT_LOADED,
)

logger = logging.getLogger(__name__)

TLS_MODE_DEFAULT = "default"
TLS_MODE_BUNDLE = "bundle"
TLS_MODE_INSECURE = "insecure"

PEM_CERTIFICATE = re.compile(
    r"-----BEGIN CERTIFICATE-----.+?-----END CERTIFICATE-----", re.DOTALL
)


class TLSConfig(NamedTuple):
    """
    TLS configuration containing mode, root certificate path, and resolved
    verify context.

    Args:
        mode (str): The TLS mode ('default', 'bundle', 'insecure').
        root_cert_path (Optional[Path]): Extra root certificate, if any.
        verify_context (SSLContext): The resolved verification context.
    """

    mode: str
    root_cert_path: Optional[Path]
    verify_context: SSLContext

    def as_dict(self) -> dict[str, Union[str, None]]:
        return {
            "mode": self.mode,
            "root_cert_path": str(self.root_cert_path) if self.root_cert_path else None,
        }


def _read_root_certificate(path: Path) -> str:
    """
    Read the whole PEM file into memory.

    Raises:
        CertificateError: If the file cannot be read or decoded.
    """
    try:
        return path.expanduser().read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CertificateError(str(path), reason=str(e)) from e


def _load_root_certificate(context: SSLContext, path: Path) -> None:
    blocks = PEM_CERTIFICATE.findall(_read_root_certificate(path))
    if not blocks:
        raise CertificateError(str(path), reason="no PEM certificate found")

    try:
        context.load_verify_locations(cadata="\n".join(blocks))
    except (ssl.SSLError, ValueError) as e:
        raise CertificateError(str(path), reason=str(e)) from e

    logger.debug(TLS_ROOT_CERT_LOADED, extra={"path": str(path)})


def _insecure_context() -> SSLContext:
    context = ssl.create_default_context(cafile=certifi.where())
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def get_tls_config(
    allow_invalid_certs: bool = False,
    root_cert_path: Optional[Union[str, Path]] = None,
) -> TLSConfig:
    """
    Resolve the TLS trust posture for the collector connection.

    The root certificate, when given, is always read and parsed so that a
    bad path fails construction even in insecure mode.

    Args:
        allow_invalid_certs (bool): Skip certificate verification entirely.
            Unsafe, intended for development only.
        root_cert_path (Optional[Union[str, Path]]): PEM root certificate
            trusted in addition to the certifi bundle.

    Returns:
        TLSConfig: The TLS configuration.

    Raises:
        CertificateError: If the root certificate cannot be read or parsed.
    """
    path = Path(root_cert_path) if root_cert_path else None

    verify_context = ssl.create_default_context(cafile=certifi.where())
    mode = TLS_MODE_DEFAULT

    if path:
        _load_root_certificate(verify_context, path)
        mode = TLS_MODE_BUNDLE

    if allow_invalid_certs:
        logger.warning(TLS_INSECURE_ENABLED)
        verify_context = _insecure_context()
        mode = TLS_MODE_INSECURE

    result = TLSConfig(mode=mode, root_cert_path=path, verify_context=verify_context)
    logger.info(TLS_RESOLVED, extra=result.as_dict())
    return result
