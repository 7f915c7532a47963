from importlib.metadata import PackageNotFoundError, version
import logging
import platform
from typing import Dict, Optional


LOG = logging.getLogger(__name__)

DISTRIBUTION_NAME = "apm-intake"


def get_version() -> Optional[str]:
    """
    Get the installed version of the client package.

    Returns:
      Optional[str]: The version if found, otherwise None.
    """
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        LOG.debug("Unable to get %s version.", DISTRIBUTION_NAME)
        return None


def get_user_agent() -> str:
    """
    Get the user agent string for collector requests.

    Returns:
      str: The user agent string in the format: apm-intake/{version} ({os} {arch}; Python/{python_version})
    """
    client_version = get_version() or "unknown"
    os_name = platform.system()

    machine = platform.machine()
    # Normalize architecture names
    if machine in ("x86_64", "AMD64"):
        arch = "x86_64"
    elif machine in ("arm64", "aarch64"):
        arch = "arm_64"
    elif machine == "i386":
        arch = "x86"
    else:
        arch = machine or "unknown"

    python_version = platform.python_version()

    return f"{DISTRIBUTION_NAME}/{client_version} ({os_name} {arch}; Python/{python_version})"


def get_meta_http_headers() -> Dict[str, str]:
    return {
        "User-Agent": get_user_agent(),
    }
