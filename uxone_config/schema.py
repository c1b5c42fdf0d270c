"""
UXOne configuration schema.

Frozen dataclasses produced by ``uxone_config.loader`` from YAML.  Every
value here has already been validated; consumers never see raw dicts.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from uxone_kernel.domain.identifiers import IdentifierFamily
from uxone_kernel.domain.org import Role

# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite:///uxone.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10


# ---------------------------------------------------------------------------
# Approval workflow
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ApprovalPolicy:
    """Who may decide for a department other than their own, and retry limits."""

    override_roles: tuple[Role, ...] = (
        Role.ADMIN,
        Role.GENERAL_DIRECTOR,
        Role.GENERAL_MANAGER,
        Role.SENIOR_MANAGER,
    )
    head_roles: tuple[Role, ...] = (Role.SENIOR_MANAGER, Role.ADMIN)
    max_decision_attempts: int = 5
    retry_backoff_seconds: float = 0.05


# ---------------------------------------------------------------------------
# Notifications and ERP inventory
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NotificationConfig:
    outbox_enabled: bool = True
    webhook_url: str | None = None
    webhook_timeout_seconds: float = 5.0
    async_dispatch: bool = False


@dataclass(frozen=True)
class InventoryConfig:
    ttl_seconds: float = 300.0
    default_page_size: int = 50


@dataclass(frozen=True)
class UXOneConfig:
    """Root configuration object returned by ``get_active_config()``."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    identifier_families: dict[str, IdentifierFamily] = field(default_factory=dict)
    approval: ApprovalPolicy = field(default_factory=ApprovalPolicy)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    inventory: InventoryConfig = field(default_factory=InventoryConfig)

    def family(self, name: str) -> IdentifierFamily:
        """Look up an identifier family by its configured name."""
        try:
            return self.identifier_families[name]
        except KeyError:
            raise KeyError(f"No identifier family configured as {name!r}") from None
