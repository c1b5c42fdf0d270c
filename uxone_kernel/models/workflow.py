"""
Module: uxone_kernel.models.workflow
Responsibility: ORM persistence for workflow aggregates (projects and
    demands) and their per-department decision logs.

Architecture position: Kernel > Models.  May import from db/base.py and
    the pure domain layer (for DTO conversion).

Invariants enforced:
    - status is one of PENDING/APPROVED/REJECTED (check constraint).
    - released implies status APPROVED (check constraint).
    - reference (human-readable identifier, e.g. a demand ID) is unique.
    - version increases by exactly one on every decision write; writes are
      compare-and-swap on the version read (see ApprovalService).

Failure modes:
    - IntegrityError on duplicate reference.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Index,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from uxone_kernel.db.base import TrackedBase, UUIDString
from uxone_kernel.domain.approval import (
    AggregateStatus,
    WorkflowAggregate,
    WorkflowKind,
    log_from_json,
)
from uxone_kernel.domain.org import Department


class WorkflowAggregateModel(TrackedBase):
    """Persistent project or demand with its approval state."""

    __tablename__ = "workflow_aggregates"

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')",
            name="ck_workflow_aggregates_valid_status",
        ),
        CheckConstraint(
            "kind IN ('project', 'demand')",
            name="ck_workflow_aggregates_valid_kind",
        ),
        CheckConstraint(
            "NOT released OR status = 'APPROVED'",
            name="ck_workflow_aggregates_released_is_approved",
        ),
        Index("ix_workflow_aggregates_kind_status", "kind", "status"),
        Index("ix_workflow_aggregates_owner", "owner_id"),
    )

    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    reference: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    departments: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    approval_log: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AggregateStatus.PENDING.value,
    )
    released: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    released_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    version: Mapped[int] = mapped_column(BigInteger, nullable=False, default=1)

    def __repr__(self) -> str:
        return (
            f"<WorkflowAggregate {self.kind} {self.reference or self.id} "
            f"status={self.status} v{self.version}>"
        )

    def to_dto(self) -> WorkflowAggregate:
        """Convert ORM model to frozen domain DTO."""
        return WorkflowAggregate(
            id=self.id,
            kind=WorkflowKind(self.kind),
            title=self.title,
            owner_id=self.owner_id,
            departments=tuple(Department(code) for code in self.departments),
            approval_log=log_from_json(self.approval_log),
            status=AggregateStatus(self.status),
            released=self.released,
            released_at=self.released_at,
            reference=self.reference,
            version=self.version,
        )
