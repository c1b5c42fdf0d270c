"""Pure domain layer: value objects and functions, zero I/O."""

from uxone_kernel.domain.approval import (
    AggregateStatus,
    DecisionRecord,
    DecisionStatus,
    WorkflowAggregate,
    WorkflowKind,
    append_decision,
    compute_aggregate_status,
    normalize_decision,
)
from uxone_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from uxone_kernel.domain.identifiers import (
    BucketPeriod,
    IdentifierFamily,
    format_identifier,
    parse_identifier,
)
from uxone_kernel.domain.notification import Notification, NotificationType
from uxone_kernel.domain.org import (
    Actor,
    Department,
    Role,
    normalize_department,
    normalize_role,
)

__all__ = [
    "Actor",
    "AggregateStatus",
    "BucketPeriod",
    "Clock",
    "DecisionRecord",
    "DecisionStatus",
    "Department",
    "DeterministicClock",
    "IdentifierFamily",
    "Notification",
    "NotificationType",
    "Role",
    "SystemClock",
    "WorkflowAggregate",
    "WorkflowKind",
    "append_decision",
    "compute_aggregate_status",
    "format_identifier",
    "normalize_decision",
    "normalize_department",
    "normalize_role",
    "parse_identifier",
]
