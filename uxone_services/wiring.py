"""
uxone_services.wiring -- Build the service graph from configuration.

Responsibility:
    The composition point for production: loads the active configuration
    (or takes one already loaded), initialises the database engine from
    ``database`` and constructs every service with the values of its
    section, so that identifier families, approval policy, notification
    sinks and inventory caching all come from YAML.

Architecture position:
    Services layer, top.  Nothing in the kernel or in other services
    imports this module.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

import httpx
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from uxone_config import get_active_config
from uxone_config.schema import DatabaseConfig, UXOneConfig
from uxone_kernel.db.engine import get_session_factory, init_engine_from_url
from uxone_kernel.domain.clock import Clock, SystemClock
from uxone_kernel.logging_config import get_logger
from uxone_services.comments import CommentService
from uxone_services.decision_handler import DecisionHandler
from uxone_services.inventory_cache import InventoryCache, InventoryItem
from uxone_services.notifications import NotificationDispatcher, build_dispatcher
from uxone_services.numbering import NumberingService

logger = get_logger("services.wiring")


def init_database(database: DatabaseConfig) -> Engine:
    """Initialise the process-wide engine from the ``database`` section."""
    return init_engine_from_url(
        database.url,
        echo=database.echo,
        pool_size=database.pool_size,
        max_overflow=database.max_overflow,
    )


@dataclass(frozen=True)
class UXOneServices:
    config: UXOneConfig
    dispatcher: NotificationDispatcher
    decisions: DecisionHandler
    comments: CommentService
    numbering: NumberingService
    inventory: InventoryCache | None = None


def build_services(
    config: UXOneConfig | None = None,
    *,
    config_path: Path | str | None = None,
    session_factory: sessionmaker[Session] | None = None,
    clock: Clock | None = None,
    http_client: httpx.Client | None = None,
    inventory_fetcher: Callable[[], Sequence[InventoryItem]] | None = None,
) -> UXOneServices:
    """
    Construct all services from configuration.

    Without a ``session_factory`` the engine is initialised from
    ``config.database``.  The inventory cache is only built when an ERP
    fetcher is supplied.
    """
    config = config or get_active_config(config_path)
    clock = clock or SystemClock()
    if session_factory is None:
        init_database(config.database)
        session_factory = get_session_factory()

    dispatcher = build_dispatcher(
        config.notifications, session_factory, clock, http_client=http_client,
    )
    inventory = (
        InventoryCache.from_config(config.inventory, inventory_fetcher, clock)
        if inventory_fetcher is not None
        else None
    )
    logger.info(
        "services_built",
        extra={
            "sinks": [s.name for s in dispatcher.sinks],
            "identifier_families": sorted(config.identifier_families),
            "inventory_enabled": inventory is not None,
        },
    )
    return UXOneServices(
        config=config,
        dispatcher=dispatcher,
        decisions=DecisionHandler(
            session_factory=session_factory,
            policy=config.approval,
            dispatcher=dispatcher,
            clock=clock,
        ),
        comments=CommentService(
            session_factory,
            dispatcher,
            head_roles=config.approval.head_roles,
            clock=clock,
        ),
        numbering=NumberingService.from_config(config, session_factory, clock),
        inventory=inventory,
    )
