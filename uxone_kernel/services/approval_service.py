"""
uxone_kernel.services.approval_service -- Multi-department approval workflow.

Responsibility:
    Creates workflow aggregates (projects and demands) and records
    department decisions against them.  Status computation is delegated to
    the pure functions in ``domain/approval.py``.

Architecture position:
    Kernel > Services.  May import from domain/, models/, db/.
    Flush-only: the caller owns the transaction.  Retrying a lost
    compare-and-swap is the caller's job (see
    ``uxone_services.decision_handler``).

Invariants enforced:
    - Decision logs are append-only.
    - Status is recomputed from the latest decision of every required
      department on every write.
    - APPROVED implies released; a released aggregate accepts no further
      decisions.
    - Log, status, released flag, release timestamp and version are written
      by ONE compare-and-swap UPDATE guarded by the version that was read,
      so two concurrent decisions can never overwrite each other.

Failure modes:
    - WorkflowNotFoundError if aggregate_id does not exist.
    - WorkflowFinalizedError if the aggregate is already released.
    - OptimisticLockError if another writer committed first.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from uxone_kernel.domain.approval import (
    AggregateStatus,
    DecisionRecord,
    DecisionStatus,
    WorkflowAggregate,
    WorkflowKind,
    append_decision,
    compute_aggregate_status,
    log_to_json,
)
from uxone_kernel.domain.clock import Clock
from uxone_kernel.domain.org import Department, normalize_department
from uxone_kernel.exceptions import (
    OptimisticLockError,
    WorkflowFinalizedError,
    WorkflowNotFoundError,
)
from uxone_kernel.logging_config import get_logger
from uxone_kernel.models.workflow import WorkflowAggregateModel
from uxone_kernel.services.base import BaseService

logger = get_logger("services.approval")


class ApprovalService(BaseService):
    """Creates aggregates and records department decisions."""

    def __init__(self, session: Session, clock: Clock | None = None) -> None:
        super().__init__(session, clock)

    def create_aggregate(
        self,
        kind: WorkflowKind | str,
        title: str,
        owner_id: UUID,
        departments: Iterable[Department | str],
        reference: str | None = None,
    ) -> WorkflowAggregate:
        """
        Create a workflow aggregate with an empty decision log.

        Departments are normalised and de-duplicated, keeping their order.
        The initial status is computed from the empty log: PENDING for any
        non-empty department set, APPROVED (and released) for an empty one.
        """
        required: list[Department] = []
        for value in departments:
            department = normalize_department(value)
            if department not in required:
                required.append(department)

        now = self.clock.now_utc()
        status = compute_aggregate_status(required, {})
        released = status is AggregateStatus.APPROVED

        model = WorkflowAggregateModel(
            kind=WorkflowKind(kind).value,
            reference=reference,
            title=title,
            owner_id=owner_id,
            departments=[d.value for d in required],
            approval_log={},
            status=status.value,
            released=released,
            released_at=now if released else None,
            version=1,
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "workflow_aggregate_created",
            extra={
                "aggregate_id": str(model.id),
                "kind": model.kind,
                "reference": reference,
                "departments": model.departments,
                "status": status.value,
            },
        )
        return model.to_dto()

    def get_aggregate(self, aggregate_id: UUID) -> WorkflowAggregate:
        return self._load(aggregate_id).to_dto()

    def record_decision(
        self,
        aggregate_id: UUID,
        department: Department,
        decision: DecisionStatus,
        actor: UUID,
        comment: str = "",
    ) -> WorkflowAggregate:
        """
        One read-recompute-write attempt for a department decision.

        Preconditions:
            - ``department`` and ``decision`` are already normalised and the
              caller has checked the actor's authority.

        Postconditions:
            - The decision is appended to ``department``'s log, status is
              recomputed, and ``version`` is incremented by one.
            - If the new status is APPROVED the aggregate is released.

        Raises:
            WorkflowNotFoundError, WorkflowFinalizedError,
            OptimisticLockError.
        """
        model = self._load(aggregate_id)
        if model.released:
            logger.warning(
                "decision_on_released_aggregate",
                extra={"aggregate_id": str(aggregate_id), "department": department.value},
            )
            raise WorkflowFinalizedError(str(aggregate_id))

        current = model.to_dto()
        now = self.clock.now_utc()
        record = DecisionRecord(
            status=decision,
            timestamp=now,
            actor=actor,
            comment=comment or "",
        )
        new_log = append_decision(current.approval_log, department, record)
        status = compute_aggregate_status(current.departments, new_log)
        released = status is AggregateStatus.APPROVED
        released_at = now if released else None
        new_version = current.version + 1

        result = self.session.execute(
            update(WorkflowAggregateModel)
            .where(WorkflowAggregateModel.id == aggregate_id)
            .where(WorkflowAggregateModel.version == current.version)
            .values(
                approval_log=log_to_json(new_log),
                status=status.value,
                released=released,
                released_at=released_at,
                version=new_version,
            )
            .execution_options(synchronize_session=False)
        )
        # The identity map copy is stale either way.
        self.session.expire(model)

        if result.rowcount != 1:
            logger.info(
                "decision_version_conflict",
                extra={
                    "aggregate_id": str(aggregate_id),
                    "department": department.value,
                    "expected_version": current.version,
                },
            )
            raise OptimisticLockError(
                "WorkflowAggregate", str(aggregate_id), current.version,
            )

        logger.info(
            "decision_recorded",
            extra={
                "aggregate_id": str(aggregate_id),
                "department": department.value,
                "decision": decision.value,
                "actor_id": str(actor),
                "status": status.value,
                "released": released,
                "version": new_version,
            },
        )
        return WorkflowAggregate(
            id=current.id,
            kind=current.kind,
            title=current.title,
            owner_id=current.owner_id,
            departments=current.departments,
            approval_log=new_log,
            status=status,
            released=released,
            released_at=released_at,
            reference=current.reference,
            version=new_version,
        )

    def _load(self, aggregate_id: UUID) -> WorkflowAggregateModel:
        model = self.session.get(
            WorkflowAggregateModel, aggregate_id, populate_existing=True,
        )
        if model is None:
            raise WorkflowNotFoundError(str(aggregate_id))
        return model
