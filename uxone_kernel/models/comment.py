"""
Module: uxone_kernel.models.comment
Responsibility: Comments and status updates posted on a workflow aggregate.
    Append-only: comments are never edited through the workflow.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from uxone_kernel.db.base import Base, UUIDString


class WorkflowCommentModel(Base):
    """A comment or update on a project or demand."""

    __tablename__ = "workflow_comments"

    __table_args__ = (
        CheckConstraint(
            "kind IN ('comment', 'update')",
            name="ck_workflow_comments_valid_kind",
        ),
        Index("ix_workflow_comments_aggregate_created", "aggregate_id", "created_at"),
    )

    aggregate_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("workflow_aggregates.id"),
        nullable=False,
    )
    author_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )

    def __repr__(self) -> str:
        return f"<WorkflowComment {self.kind} on {self.aggregate_id}>"
