"""
Module: uxone_kernel.selectors.workflow_selector
Responsibility: Read queries around workflow aggregates -- lookup by id or
    reference, listings, comments, department heads and inbox notifications.
Architecture position: Kernel > Selectors.

All filters are bound parameters built with SQLAlchemy expressions; no SQL
text is ever assembled from request values.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from uxone_kernel.domain.approval import AggregateStatus, WorkflowAggregate, WorkflowKind
from uxone_kernel.domain.notification import Notification
from uxone_kernel.domain.org import Department, Role
from uxone_kernel.models.comment import WorkflowCommentModel
from uxone_kernel.models.notification import NotificationModel
from uxone_kernel.models.user import UserModel
from uxone_kernel.models.workflow import WorkflowAggregateModel
from uxone_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class CommentDTO:
    id: UUID
    aggregate_id: UUID
    author_id: UUID
    kind: str
    content: str
    created_at: datetime


class WorkflowSelector(BaseSelector):
    """Read-only access to aggregates, comments, users and notifications."""

    def get(self, aggregate_id: UUID) -> WorkflowAggregate | None:
        model = self.session.get(WorkflowAggregateModel, aggregate_id)
        return model.to_dto() if model else None

    def get_by_reference(self, reference: str) -> WorkflowAggregate | None:
        model = self.session.execute(
            select(WorkflowAggregateModel)
            .where(WorkflowAggregateModel.reference == reference)
        ).scalar_one_or_none()
        return model.to_dto() if model else None

    def reference_exists(self, reference: str) -> bool:
        return self.session.execute(
            select(WorkflowAggregateModel.id)
            .where(WorkflowAggregateModel.reference == reference)
        ).first() is not None

    def list_aggregates(
        self,
        kind: WorkflowKind | None = None,
        status: AggregateStatus | None = None,
        owner_id: UUID | None = None,
    ) -> list[WorkflowAggregate]:
        stmt = select(WorkflowAggregateModel)
        if kind is not None:
            stmt = stmt.where(WorkflowAggregateModel.kind == kind.value)
        if status is not None:
            stmt = stmt.where(WorkflowAggregateModel.status == status.value)
        if owner_id is not None:
            stmt = stmt.where(WorkflowAggregateModel.owner_id == owner_id)
        stmt = stmt.order_by(WorkflowAggregateModel.created_at)
        return [m.to_dto() for m in self.session.execute(stmt).scalars()]

    def comments(self, aggregate_id: UUID) -> list[CommentDTO]:
        rows = self.session.execute(
            select(WorkflowCommentModel)
            .where(WorkflowCommentModel.aggregate_id == aggregate_id)
            .order_by(WorkflowCommentModel.created_at)
        ).scalars()
        return [
            CommentDTO(
                id=row.id,
                aggregate_id=row.aggregate_id,
                author_id=row.author_id,
                kind=row.kind,
                content=row.content,
                created_at=row.created_at,
            )
            for row in rows
        ]

    def department_heads(
        self,
        departments: Iterable[Department],
        head_roles: Iterable[Role],
        exclude: Iterable[UUID] = (),
    ) -> list[UUID]:
        """
        Active users holding a head role in any of ``departments``.

        Returns user ids ordered by name, excluding ``exclude``.
        """
        department_codes = [d.value for d in departments]
        role_codes = [r.value for r in head_roles]
        if not department_codes or not role_codes:
            return []

        stmt = (
            select(UserModel.id)
            .where(UserModel.department.in_(department_codes))
            .where(UserModel.role.in_(role_codes))
            .where(UserModel.is_active.is_(True))
            .order_by(UserModel.name)
        )
        excluded = list(exclude)
        if excluded:
            stmt = stmt.where(UserModel.id.not_in(excluded))
        return list(self.session.execute(stmt).scalars())

    def notifications_for(
        self,
        user_id: UUID,
        unread_only: bool = False,
    ) -> list[Notification]:
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.recipient_user_id == user_id)
            .order_by(NotificationModel.created_at)
        )
        if unread_only:
            stmt = stmt.where(NotificationModel.read.is_(False))
        return [row.to_dto() for row in self.session.execute(stmt).scalars()]
