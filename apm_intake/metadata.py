from typing import Any, Dict, Mapping, Optional

from apm_intake.config.main import Config

METADATA_FIELDS = ("service", "process", "system", "user", "cloud")


def build_metadata(
    config: Config, extra: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """
    Assemble the metadata envelope from the configured descriptors.

    The descriptor values are passed through untouched; absent ones are
    omitted. Keys in extra are added last and win over configured ones.

    Args:
        config (Config): The client configuration.
        extra (Optional[Mapping[str, Any]]): Additional metadata entries.

    Returns:
        Dict[str, Any]: The metadata value for a Batch.
    """
    metadata = {
        name: getattr(config, name)
        for name in METADATA_FIELDS
        if getattr(config, name) is not None
    }

    if extra:
        metadata.update(extra)

    return metadata
