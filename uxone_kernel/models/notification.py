"""
Module: uxone_kernel.models.notification
Responsibility: Persistent notification outbox rows, one per recipient.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from uxone_kernel.db.base import Base, UUIDString
from uxone_kernel.domain.notification import Notification, NotificationType


class NotificationModel(Base):
    """A notification delivered to a user's inbox."""

    __tablename__ = "notifications"

    __table_args__ = (
        CheckConstraint(
            "type IN ('success', 'warning', 'info')",
            name="ck_notifications_valid_type",
        ),
        Index("ix_notifications_recipient_read", "recipient_user_id", "read"),
    )

    recipient_user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    link: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )

    @classmethod
    def from_dto(cls, dto: Notification, created_at: datetime) -> NotificationModel:
        return cls(
            recipient_user_id=dto.recipient_user_id,
            title=dto.title,
            message=dto.message,
            type=dto.type.value,
            link=dto.link,
            read=False,
            created_at=created_at,
        )

    def to_dto(self) -> Notification:
        return Notification(
            recipient_user_id=self.recipient_user_id,
            title=self.title,
            message=self.message,
            type=NotificationType(self.type),
            link=self.link,
        )
