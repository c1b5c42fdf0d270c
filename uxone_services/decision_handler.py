"""
uxone_services.decision_handler -- Approve/reject submissions end to end.

Responsibility:
    Turns an inbound decision (department, action, optional comment) from
    an authenticated actor into a committed state change and post-commit
    notifications:

        1. normalise the action and department (ValidationError on bad input);
        2. check department authority before touching mutable state;
        3. run one read-recompute-write attempt through ``ApprovalService``
           in its own transaction, retrying lost compare-and-swap races;
        4. after commit, dispatch notifications best-effort.

Architecture position:
    Services layer.  Owns transaction boundaries via ``session_scope``; the
    kernel ``ApprovalService`` is flush-only.

Failure modes:
    - InvalidDecisionError / UnknownDepartmentError / MissingFieldError.
    - DepartmentAuthorizationError.
    - WorkflowNotFoundError, WorkflowFinalizedError.
    - ConcurrentModificationError once ``max_decision_attempts`` attempts
      all lost their race.  Transient: the client should resubmit.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from uxone_config.schema import ApprovalPolicy
from uxone_kernel.db.engine import session_scope
from uxone_kernel.domain.approval import (
    DecisionStatus,
    WorkflowAggregate,
    normalize_decision,
)
from uxone_kernel.domain.clock import Clock, SystemClock
from uxone_kernel.domain.notification import build_decision_notifications
from uxone_kernel.domain.org import Actor, Department, normalize_department
from uxone_kernel.exceptions import (
    ConcurrentModificationError,
    MissingFieldError,
    OptimisticLockError,
)
from uxone_kernel.logging_config import LogContext, get_logger
from uxone_kernel.selectors.workflow_selector import WorkflowSelector
from uxone_kernel.services.approval_service import ApprovalService
from uxone_services.authority import check_department_authority
from uxone_services.notifications import LoggingSink, NotificationDispatcher

logger = get_logger("services.decision_handler")


@dataclass(frozen=True)
class DecisionRequest:
    """Inbound decision body: ``{department, action, comment?}``."""

    department: str
    action: str
    comment: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> DecisionRequest:
        """
        Parse a request body.

        Raises:
            MissingFieldError: if ``department`` or ``action`` is absent
                or blank.
        """
        values = {}
        for field_name in ("department", "action"):
            value = payload.get(field_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise MissingFieldError(field_name)
            values[field_name] = value
        comment = payload.get("comment")
        return cls(
            department=values["department"],
            action=values["action"],
            comment=comment if comment else None,
        )


class DecisionHandler:
    """
    Records department decisions with authority checks, retries and
    post-commit notifications.

    ``notify_heads`` enables the comment-driven variant where department
    heads are notified alongside the owner.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        policy: ApprovalPolicy | None = None,
        dispatcher: NotificationDispatcher | None = None,
        clock: Clock | None = None,
        notify_heads: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._session_factory = session_factory
        self._policy = policy or ApprovalPolicy()
        self._dispatcher = dispatcher or NotificationDispatcher([LoggingSink()])
        self._clock = clock or SystemClock()
        self._notify_heads = notify_heads
        self._sleep = sleep

    def handle(
        self,
        aggregate_id: UUID,
        payload: Mapping[str, Any],
        actor: Actor,
    ) -> WorkflowAggregate:
        """Parse an inbound body and record the decision it carries."""
        request = DecisionRequest.from_payload(payload)
        return self.record_decision(
            aggregate_id,
            request.department,
            request.action,
            actor,
            request.comment,
        )

    def record_decision(
        self,
        aggregate_id: UUID,
        department: Department | str,
        action: DecisionStatus | str,
        actor: Actor,
        comment: str | None = None,
    ) -> WorkflowAggregate:
        decision = normalize_decision(action)
        target = normalize_department(department)
        check_department_authority(actor, target, self._policy.override_roles)

        with LogContext.bind_workflow(aggregate_id, actor.user_id, target):
            aggregate = self._write_with_retry(
                aggregate_id, target, decision, actor, comment or "",
            )
            self._notify(aggregate, target, decision, actor, comment or "")
        return aggregate

    def _write_with_retry(
        self,
        aggregate_id: UUID,
        department: Department,
        decision: DecisionStatus,
        actor: Actor,
        comment: str,
    ) -> WorkflowAggregate:
        attempts = self._policy.max_decision_attempts
        for attempt in range(1, attempts + 1):
            try:
                with session_scope(self._session_factory) as session:
                    return ApprovalService(session, self._clock).record_decision(
                        aggregate_id, department, decision, actor.user_id, comment,
                    )
            except (OptimisticLockError, OperationalError) as exc:
                logger.info(
                    "decision_retry",
                    extra={
                        "attempt": attempt,
                        "max_attempts": attempts,
                        "reason": type(exc).__name__,
                    },
                )
                if attempt < attempts and self._policy.retry_backoff_seconds > 0:
                    self._sleep(self._policy.retry_backoff_seconds * (2 ** (attempt - 1)))

        logger.warning(
            "decision_retries_exhausted",
            extra={"attempts": attempts},
        )
        raise ConcurrentModificationError(str(aggregate_id), attempts)

    def _notify(
        self,
        aggregate: WorkflowAggregate,
        department: Department,
        decision: DecisionStatus,
        actor: Actor,
        comment: str,
    ) -> None:
        try:
            head_ids: list[UUID] = []
            if self._notify_heads:
                with session_scope(self._session_factory) as session:
                    head_ids = WorkflowSelector(session).department_heads(
                        aggregate.departments,
                        self._policy.head_roles,
                        exclude=[actor.user_id],
                    )
            notifications = build_decision_notifications(
                aggregate, department, decision, actor, comment, head_ids,
            )
            self._dispatcher.dispatch(notifications)
        except Exception:
            # The decision is committed; delivery problems must not surface.
            logger.error("notification_dispatch_failed", exc_info=True)
