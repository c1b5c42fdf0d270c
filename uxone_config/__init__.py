"""
uxone_config -- single public entrypoint for UXOne configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- sits above ``uxone_kernel`` and below
    ``uxone_services``.  The kernel never imports from ``uxone_config``;
    services receive the parsed values they need.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``ConfigurationError`` -- a value fails validation.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from uxone_config.loader import load_yaml_file, parse_config
from uxone_config.schema import (
    ApprovalPolicy,
    DatabaseConfig,
    InventoryConfig,
    NotificationConfig,
    UXOneConfig,
)

_logger = logging.getLogger("uxone_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "uxone.yaml"
CONFIG_ENV_VAR = "UXONE_CONFIG"
DATABASE_URL_ENV_VAR = "DATABASE_URL"


def get_active_config(path: Path | str | None = None) -> UXOneConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: ``path`` argument, then the
    ``UXONE_CONFIG`` environment variable, then the packaged defaults.
    ``DATABASE_URL``, when set, replaces ``database.url``.

    Raises:
        FileNotFoundError: If the selected file does not exist.
        ConfigurationError: If validation fails.
    """
    source = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    config = parse_config(load_yaml_file(source))

    database_url = os.environ.get(DATABASE_URL_ENV_VAR)
    if database_url:
        config = replace(config, database=replace(config.database, url=database_url))

    _logger.info(
        "UXONE_CONFIG_TRACE",
        extra={
            "config_path": str(source),
            "identifier_families": sorted(config.identifier_families),
            "override_roles": [r.value for r in config.approval.override_roles],
            "webhook_enabled": config.notifications.webhook_url is not None,
        },
    )
    return config


__all__ = [
    "ApprovalPolicy",
    "DatabaseConfig",
    "InventoryConfig",
    "NotificationConfig",
    "UXOneConfig",
    "get_active_config",
]
