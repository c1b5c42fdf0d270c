"""
Approval domain types (``uxone_kernel.domain.approval``).

Responsibility
--------------
Pure value objects and functions for the multi-department approval
workflow: decision and aggregate status enums, append-only decision
records, the action normaliser and the aggregate status computation.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* ``status == APPROVED`` iff every required department's latest decision
  is APPROVED.
* ``status == REJECTED`` iff not approved and at least one required
  department's latest decision is REJECTED.
* ``status == PENDING`` otherwise, including an empty log.
* Decision logs are append-only: ``append_decision`` returns a new log and
  never drops or rewrites earlier records.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from uxone_kernel.domain.org import Department
from uxone_kernel.exceptions import InvalidDecisionError


class DecisionStatus(str, Enum):
    """The two decisions a department can record."""

    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AggregateStatus(str, Enum):
    """Overall status of a workflow aggregate."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class WorkflowKind(str, Enum):
    """Workflow-bearing entity types."""

    PROJECT = "project"
    DEMAND = "demand"


# Case-insensitive synonyms accepted from inbound requests.
_DECISION_SYNONYMS: dict[str, DecisionStatus] = {
    "approved": DecisionStatus.APPROVED,
    "approve": DecisionStatus.APPROVED,
    "disapproved": DecisionStatus.REJECTED,
    "rejected": DecisionStatus.REJECTED,
    "reject": DecisionStatus.REJECTED,
}


def normalize_decision(action: DecisionStatus | str) -> DecisionStatus:
    """
    Map an inbound action to the two-valued decision type.

    ``approved``/``APPROVED``/``approve`` -> APPROVED and
    ``disapproved``/``rejected``/``REJECTED``/``reject`` -> REJECTED.

    Raises:
        InvalidDecisionError: for anything else.
    """
    if isinstance(action, DecisionStatus):
        return action
    if not isinstance(action, str):
        raise InvalidDecisionError(action)
    decision = _DECISION_SYNONYMS.get(action.strip().lower())
    if decision is None:
        raise InvalidDecisionError(action)
    return decision


@dataclass(frozen=True)
class DecisionRecord:
    """One timestamped approve/reject entry for a department. Immutable."""

    status: DecisionStatus
    timestamp: datetime
    actor: UUID
    comment: str = ""

    def to_json(self) -> dict[str, Any]:
        """Serialise for the JSON ``approval_log`` column."""
        return {
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "actor": str(self.actor),
            "comment": self.comment,
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> DecisionRecord:
        return cls(
            status=DecisionStatus(data["status"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            actor=UUID(data["actor"]),
            comment=data.get("comment", ""),
        )


ApprovalLog = Mapping[Department, tuple[DecisionRecord, ...]]


@dataclass(frozen=True)
class WorkflowAggregate:
    """Immutable snapshot of a project or demand and its approval state."""

    id: UUID
    kind: WorkflowKind
    title: str
    owner_id: UUID
    departments: tuple[Department, ...]
    approval_log: ApprovalLog = field(default_factory=dict)
    status: AggregateStatus = AggregateStatus.PENDING
    released: bool = False
    released_at: datetime | None = None
    reference: str | None = None
    version: int = 1

    def latest_decision(self, department: Department) -> DecisionRecord | None:
        """Return the authoritative (latest) decision for a department."""
        records = self.approval_log.get(department, ())
        return records[-1] if records else None

    def decisions_for(self, department: Department) -> tuple[DecisionRecord, ...]:
        return tuple(self.approval_log.get(department, ()))


def append_decision(
    approval_log: ApprovalLog,
    department: Department,
    record: DecisionRecord,
) -> dict[Department, tuple[DecisionRecord, ...]]:
    """Return a new log with ``record`` appended to ``department``'s list."""
    new_log = {dept: tuple(records) for dept, records in approval_log.items()}
    new_log[department] = new_log.get(department, ()) + (record,)
    return new_log


def compute_aggregate_status(
    departments: Iterable[Department],
    approval_log: ApprovalLog,
) -> AggregateStatus:
    """
    Derive the aggregate status from the latest decision per department.

    Only required departments participate.  An empty ``departments`` set is
    vacuously APPROVED.
    """
    latest: list[DecisionStatus | None] = []
    for department in departments:
        records = approval_log.get(department, ())
        latest.append(records[-1].status if records else None)

    if all(status is DecisionStatus.APPROVED for status in latest):
        return AggregateStatus.APPROVED
    if any(status is DecisionStatus.REJECTED for status in latest):
        return AggregateStatus.REJECTED
    return AggregateStatus.PENDING


def log_to_json(approval_log: ApprovalLog) -> dict[str, list[dict[str, Any]]]:
    """Serialise a decision log for persistence, keyed by department code."""
    return {
        department.value: [record.to_json() for record in records]
        for department, records in approval_log.items()
    }


def log_from_json(
    data: Mapping[str, Iterable[Mapping[str, Any]]] | None,
) -> dict[Department, tuple[DecisionRecord, ...]]:
    """Inverse of :func:`log_to_json`."""
    if not data:
        return {}
    return {
        Department(code): tuple(DecisionRecord.from_json(r) for r in records)
        for code, records in data.items()
    }
