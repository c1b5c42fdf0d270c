"""Notification builder tests (pure)."""

from uuid import uuid4

from uxone_kernel.domain.approval import (
    AggregateStatus,
    DecisionStatus,
    WorkflowAggregate,
    WorkflowKind,
)
from uxone_kernel.domain.notification import (
    NotificationType,
    aggregate_link,
    build_comment_notifications,
    build_decision_notifications,
    preview,
)
from uxone_kernel.domain.org import Actor, Department, Role


def _aggregate(status=AggregateStatus.PENDING, kind=WorkflowKind.PROJECT, reference=None):
    return WorkflowAggregate(
        id=uuid4(),
        kind=kind,
        title="Line 3 retrofit",
        owner_id=uuid4(),
        departments=(Department.LOG, Department.QA),
        status=status,
        reference=reference,
    )


def _actor(department=Department.LOG):
    return Actor(uuid4(), department, Role.SENIOR_MANAGER, "Minh")


class TestDecisionNotifications:

    def test_owner_always_notified(self):
        aggregate = _aggregate()
        result = build_decision_notifications(
            aggregate, Department.LOG, DecisionStatus.APPROVED, _actor(),
        )
        assert [n.recipient_user_id for n in result] == [aggregate.owner_id]
        assert result[0].type is NotificationType.INFO

    def test_rejection_is_a_warning(self):
        aggregate = _aggregate(status=AggregateStatus.REJECTED)
        result = build_decision_notifications(
            aggregate, Department.QA, DecisionStatus.REJECTED, _actor(Department.QA),
            comment="Wrong tolerance",
        )
        assert result[0].type is NotificationType.WARNING
        assert "Wrong tolerance" in result[0].message

    def test_final_approval_is_success(self):
        aggregate = _aggregate(status=AggregateStatus.APPROVED)
        result = build_decision_notifications(
            aggregate, Department.QA, DecisionStatus.APPROVED, _actor(Department.QA),
        )
        assert result[0].type is NotificationType.SUCCESS

    def test_heads_exclude_actor_and_owner(self):
        aggregate = _aggregate()
        actor = _actor()
        head = uuid4()
        result = build_decision_notifications(
            aggregate, Department.LOG, DecisionStatus.APPROVED, actor,
            head_ids=[head, actor.user_id, aggregate.owner_id, head],
        )
        assert [n.recipient_user_id for n in result] == [aggregate.owner_id, head]


class TestCommentNotifications:

    def test_heads_get_preview_and_owner_gets_info(self):
        aggregate = _aggregate()
        author = _actor()
        head = uuid4()
        text = "x" * 80
        result = build_comment_notifications(aggregate, author, text, "update", [head])

        head_notice, owner_notice = result
        assert head_notice.recipient_user_id == head
        assert head_notice.type is NotificationType.WARNING
        assert ("x" * 50 + "...") in head_notice.message
        assert owner_notice.recipient_user_id == aggregate.owner_id
        assert owner_notice.type is NotificationType.INFO

    def test_author_is_never_notified(self):
        aggregate = _aggregate()
        author = Actor(aggregate.owner_id, Department.LOG, Role.MANAGER)
        result = build_comment_notifications(
            aggregate, author, "hello", "comment", [author.user_id],
        )
        assert result == []


class TestLinks:

    def test_demand_link_uses_reference(self):
        aggregate = _aggregate(kind=WorkflowKind.DEMAND, reference="LR-20240101-001")
        assert aggregate_link(aggregate) == "/lvm/demands/LR-20240101-001"

    def test_project_link_uses_id(self):
        aggregate = _aggregate()
        assert aggregate_link(aggregate) == f"/lvm/projects/{aggregate.id}"

    def test_preview_keeps_short_text(self):
        assert preview("short") == "short"
