"""
Notification value objects (``uxone_kernel.domain.notification``).

Pure builders for the records handed to the notification subsystem after a
decision or comment has been committed.  Building is separated from
delivery so the messages can be tested without any sink.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from uxone_kernel.domain.approval import (
    AggregateStatus,
    DecisionStatus,
    WorkflowAggregate,
    WorkflowKind,
)
from uxone_kernel.domain.org import Actor, Department

COMMENT_PREVIEW_LENGTH = 50


class NotificationType(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    """Outbound notification record for one recipient."""

    recipient_user_id: UUID
    title: str
    message: str
    type: NotificationType
    link: str

    def to_json(self) -> dict[str, str]:
        return {
            "recipientUserId": str(self.recipient_user_id),
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "link": self.link,
        }


def aggregate_link(aggregate: WorkflowAggregate) -> str:
    """UI path of an aggregate."""
    if aggregate.kind is WorkflowKind.DEMAND:
        return f"/lvm/demands/{aggregate.reference or aggregate.id}"
    return f"/lvm/projects/{aggregate.id}"


def _display_name(aggregate: WorkflowAggregate) -> str:
    return aggregate.reference or aggregate.title


def _actor_name(actor: Actor) -> str:
    return actor.name or str(actor.user_id)


def preview(text: str, limit: int = COMMENT_PREVIEW_LENGTH) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def build_decision_notifications(
    aggregate: WorkflowAggregate,
    department: Department,
    decision: DecisionStatus,
    actor: Actor,
    comment: str = "",
    head_ids: Iterable[UUID] = (),
) -> list[Notification]:
    """
    Notifications for a committed decision.

    The owner always receives one.  ``head_ids`` (department heads for
    comment-driven variants) each receive one, except the acting user.
    """
    verb = "approved" if decision is DecisionStatus.APPROVED else "rejected"
    name = _display_name(aggregate)
    link = aggregate_link(aggregate)

    if aggregate.status is AggregateStatus.APPROVED:
        owner_type = NotificationType.SUCCESS
        title = f"{aggregate.kind.value.capitalize()} {name} approved"
        message = f"All departments approved {name}; it is now released."
    else:
        owner_type = (
            NotificationType.WARNING
            if decision is DecisionStatus.REJECTED
            else NotificationType.INFO
        )
        title = f"{department.value} {verb} {name}"
        message = (
            f"{_actor_name(actor)} {verb} {name} for {department.label}. "
            f"Current status: {aggregate.status.value}."
        )
    if comment:
        message += f" Comment: {comment}"

    notifications = [
        Notification(
            recipient_user_id=aggregate.owner_id,
            title=title,
            message=message,
            type=owner_type,
            link=link,
        )
    ]

    seen = {aggregate.owner_id, actor.user_id}
    for head_id in head_ids:
        if head_id in seen:
            continue
        seen.add(head_id)
        notifications.append(
            Notification(
                recipient_user_id=head_id,
                title=f"{department.value} {verb} {name}",
                message=(
                    f"{_actor_name(actor)} {verb} {name} for "
                    f"{department.label}."
                ),
                type=(
                    NotificationType.WARNING
                    if decision is DecisionStatus.REJECTED
                    else NotificationType.INFO
                ),
                link=link,
            )
        )
    return notifications


def build_comment_notifications(
    aggregate: WorkflowAggregate,
    author: Actor,
    text: str,
    kind: str,
    head_ids: Iterable[UUID],
) -> list[Notification]:
    """
    Notifications for a new comment or update on an aggregate.

    Department heads get a typed notice with a preview of the text; the
    owner gets a plain info notice.  The author is never notified.
    """
    label = "Comment" if kind == "comment" else "Update"
    link = aggregate_link(aggregate)
    name = _display_name(aggregate)
    notifications: list[Notification] = []

    for head_id in head_ids:
        if head_id == author.user_id:
            continue
        notifications.append(
            Notification(
                recipient_user_id=head_id,
                title=f'New {label} on {aggregate.kind.value.capitalize()} "{name}"',
                message=f'{_actor_name(author)} added a {kind}: "{preview(text)}"',
                type=(
                    NotificationType.INFO
                    if kind == "comment"
                    else NotificationType.WARNING
                ),
                link=link,
            )
        )

    if aggregate.owner_id != author.user_id:
        notifications.append(
            Notification(
                recipient_user_id=aggregate.owner_id,
                title=f"New {label} on {name}",
                message=(
                    f'A new {kind} was added to {aggregate.kind.value} '
                    f'"{name}" by {_actor_name(author)}'
                ),
                type=NotificationType.INFO,
                link=link,
            )
        )
    return notifications
