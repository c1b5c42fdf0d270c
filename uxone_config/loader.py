"""
Configuration Loader (``uxone_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses it into the frozen
``uxone_config.schema`` dataclasses.  Runtime callers use
``uxone_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Invalid values raise ``ConfigurationError`` naming the offending field;
  there are no silent fallbacks for values that are present but wrong.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad padding, bucket, role or number  -> ``ConfigurationError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from uxone_config.schema import (
    ApprovalPolicy,
    DatabaseConfig,
    InventoryConfig,
    NotificationConfig,
    UXOneConfig,
)
from uxone_kernel.domain.identifiers import (
    MAX_PADDING,
    MIN_PADDING,
    BucketPeriod,
    IdentifierFamily,
)
from uxone_kernel.domain.org import Role, normalize_role
from uxone_kernel.exceptions import ConfigurationError, UnknownRoleError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _positive_int(value: Any, field_path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(field_path, f"must be a positive integer, got {value!r}")
    return value


def _non_negative_float(value: Any, field_path: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigurationError(field_path, f"must be a non-negative number, got {value!r}")
    return float(value)


def _roles(values: Any, field_path: str) -> tuple[Role, ...]:
    if not isinstance(values, list):
        raise ConfigurationError(field_path, "must be a list of role names")
    try:
        return tuple(normalize_role(v) for v in values)
    except UnknownRoleError as exc:
        raise ConfigurationError(field_path, str(exc)) from exc


def parse_identifier_family(name: str, data: dict[str, Any]) -> IdentifierFamily:
    """
    Parse one ``identifier_families`` entry.

    Raises:
        ConfigurationError: on missing prefix, unknown bucket or bad padding.
    """
    field_path = f"identifier_families.{name}"
    prefix = data.get("prefix")
    if not prefix or not isinstance(prefix, str):
        raise ConfigurationError(f"{field_path}.prefix", "is required")

    try:
        bucket = BucketPeriod(data.get("bucket", BucketPeriod.DAILY.value))
    except ValueError:
        raise ConfigurationError(
            f"{field_path}.bucket",
            f"must be one of {[b.value for b in BucketPeriod]}, got {data.get('bucket')!r}",
        ) from None

    padding = data.get("padding", 3)
    if (
        isinstance(padding, bool)
        or not isinstance(padding, int)
        or not MIN_PADDING <= padding <= MAX_PADDING
    ):
        raise ConfigurationError(
            f"{field_path}.padding",
            f"must be between {MIN_PADDING} and {MAX_PADDING}, got {padding!r}",
        )

    return IdentifierFamily(
        prefix=prefix,
        bucket=bucket,
        padding=padding,
        max_attempts=_positive_int(data.get("max_attempts", 5), f"{field_path}.max_attempts"),
    )


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    return DatabaseConfig(
        url=data.get("url", defaults.url),
        echo=bool(data.get("echo", defaults.echo)),
        pool_size=_positive_int(data.get("pool_size", defaults.pool_size), "database.pool_size"),
        max_overflow=int(data.get("max_overflow", defaults.max_overflow)),
    )


def parse_approval(data: dict[str, Any]) -> ApprovalPolicy:
    defaults = ApprovalPolicy()
    return ApprovalPolicy(
        override_roles=(
            _roles(data["override_roles"], "approval.override_roles")
            if "override_roles" in data else defaults.override_roles
        ),
        head_roles=(
            _roles(data["head_roles"], "approval.head_roles")
            if "head_roles" in data else defaults.head_roles
        ),
        max_decision_attempts=_positive_int(
            data.get("max_decision_attempts", defaults.max_decision_attempts),
            "approval.max_decision_attempts",
        ),
        retry_backoff_seconds=_non_negative_float(
            data.get("retry_backoff_seconds", defaults.retry_backoff_seconds),
            "approval.retry_backoff_seconds",
        ),
    )


def parse_notifications(data: dict[str, Any]) -> NotificationConfig:
    defaults = NotificationConfig()
    return NotificationConfig(
        outbox_enabled=bool(data.get("outbox_enabled", defaults.outbox_enabled)),
        webhook_url=data.get("webhook_url") or None,
        webhook_timeout_seconds=_non_negative_float(
            data.get("webhook_timeout_seconds", defaults.webhook_timeout_seconds),
            "notifications.webhook_timeout_seconds",
        ),
        async_dispatch=bool(data.get("async_dispatch", defaults.async_dispatch)),
    )


def parse_inventory(data: dict[str, Any]) -> InventoryConfig:
    defaults = InventoryConfig()
    return InventoryConfig(
        ttl_seconds=_non_negative_float(
            data.get("ttl_seconds", defaults.ttl_seconds), "inventory.ttl_seconds",
        ),
        default_page_size=_positive_int(
            data.get("default_page_size", defaults.default_page_size),
            "inventory.default_page_size",
        ),
    )


def parse_config(data: dict[str, Any]) -> UXOneConfig:
    """
    Parse a whole configuration document.

    Sections that are absent take their schema defaults.
    """
    families = {
        name: parse_identifier_family(name, entry or {})
        for name, entry in (data.get("identifier_families") or {}).items()
    }
    return UXOneConfig(
        database=parse_database(data.get("database") or {}),
        identifier_families=families,
        approval=parse_approval(data.get("approval") or {}),
        notifications=parse_notifications(data.get("notifications") or {}),
        inventory=parse_inventory(data.get("inventory") or {}),
    )
