"""
uxone_services.comments -- Comments and status updates on aggregates.

Persists the comment, commits, then notifies the department heads of the
aggregate's departments and its owner.  The author is never notified.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from uxone_kernel.db.engine import session_scope
from uxone_kernel.domain.clock import Clock, SystemClock
from uxone_kernel.domain.notification import build_comment_notifications
from uxone_kernel.domain.org import Actor, Role
from uxone_kernel.exceptions import (
    InvalidCommentKindError,
    MissingFieldError,
    WorkflowNotFoundError,
)
from uxone_kernel.logging_config import LogContext, get_logger
from uxone_kernel.models.comment import WorkflowCommentModel
from uxone_kernel.models.workflow import WorkflowAggregateModel
from uxone_kernel.selectors.workflow_selector import CommentDTO, WorkflowSelector
from uxone_services.notifications import LoggingSink, NotificationDispatcher

logger = get_logger("services.comments")

COMMENT_KINDS = frozenset({"comment", "update"})


class CommentService:
    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        dispatcher: NotificationDispatcher | None = None,
        head_roles: Iterable[Role] = (Role.SENIOR_MANAGER, Role.ADMIN),
        clock: Clock | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher or NotificationDispatcher([LoggingSink()])
        self._head_roles = tuple(head_roles)
        self._clock = clock or SystemClock()

    def add_comment(
        self,
        aggregate_id: UUID,
        actor: Actor,
        text: str,
        kind: str = "comment",
    ) -> CommentDTO:
        """
        Add a comment or update to an aggregate.

        Raises:
            InvalidCommentKindError: ``kind`` is not comment or update.
            MissingFieldError: ``text`` is blank.
            WorkflowNotFoundError: the aggregate does not exist.
        """
        if kind not in COMMENT_KINDS:
            raise InvalidCommentKindError(kind)
        if not text or not text.strip():
            raise MissingFieldError("content")

        with LogContext.bind_workflow(aggregate_id, actor.user_id):
            with session_scope(self._session_factory) as session:
                model = session.get(WorkflowAggregateModel, aggregate_id)
                if model is None:
                    raise WorkflowNotFoundError(str(aggregate_id))
                aggregate = model.to_dto()

                comment = WorkflowCommentModel(
                    aggregate_id=aggregate_id,
                    author_id=actor.user_id,
                    kind=kind,
                    content=text,
                    created_at=self._clock.now_utc(),
                )
                session.add(comment)
                session.flush()

                result = CommentDTO(
                    id=comment.id,
                    aggregate_id=aggregate_id,
                    author_id=actor.user_id,
                    kind=kind,
                    content=text,
                    created_at=comment.created_at,
                )

            logger.info("comment_added", extra={"comment_kind": kind})

            try:
                with session_scope(self._session_factory) as session:
                    head_ids = WorkflowSelector(session).department_heads(
                        aggregate.departments, self._head_roles, exclude=[actor.user_id],
                    )
                self._dispatcher.dispatch(
                    build_comment_notifications(aggregate, actor, text, kind, head_ids)
                )
            except Exception:
                logger.error("notification_dispatch_failed", exc_info=True)
        return result
