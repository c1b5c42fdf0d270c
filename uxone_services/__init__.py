"""
uxone_services -- Coordinators above the kernel.

Responsibility:
    Own transaction boundaries, retries, authority checks and post-commit
    side effects.  The kernel never imports from this package.
"""

from uxone_services.authority import can_decide, check_department_authority
from uxone_services.comments import CommentService
from uxone_services.decision_handler import DecisionHandler, DecisionRequest
from uxone_services.inventory_cache import InventoryCache, InventoryFilters
from uxone_services.notifications import (
    LoggingSink,
    NotificationDispatcher,
    OutboxSink,
    WebhookSink,
    build_dispatcher,
)
from uxone_services.numbering import NumberingService
from uxone_services.wiring import UXOneServices, build_services, init_database

__all__ = [
    "CommentService",
    "DecisionHandler",
    "DecisionRequest",
    "InventoryCache",
    "InventoryFilters",
    "LoggingSink",
    "NotificationDispatcher",
    "NumberingService",
    "OutboxSink",
    "UXOneServices",
    "WebhookSink",
    "build_dispatcher",
    "build_services",
    "can_decide",
    "check_department_authority",
    "init_database",
]
