"""CommentService: persistence, validation and fan-out to heads and owner."""

from uuid import uuid4

import pytest

from uxone_kernel.db.engine import session_scope
from uxone_kernel.domain.approval import WorkflowKind
from uxone_kernel.domain.notification import NotificationType
from uxone_kernel.domain.org import Department, Role
from uxone_kernel.exceptions import (
    InvalidCommentKindError,
    MissingFieldError,
    WorkflowNotFoundError,
)
from uxone_kernel.selectors.workflow_selector import WorkflowSelector
from uxone_kernel.services.approval_service import ApprovalService
from uxone_services.comments import CommentService
from uxone_services.notifications import NotificationDispatcher, OutboxSink


@pytest.fixture
def project(session_factory, deterministic_clock, owner_id):
    with session_scope(session_factory) as s:
        return ApprovalService(s, deterministic_clock).create_aggregate(
            WorkflowKind.PROJECT, "Line 3 retrofit", owner_id, ["LOG", "QA"],
        )


@pytest.fixture
def comment_service(session_factory, deterministic_clock):
    dispatcher = NotificationDispatcher([OutboxSink(session_factory, deterministic_clock)])
    return CommentService(session_factory, dispatcher, clock=deterministic_clock)


class TestAddComment:

    def test_comment_is_persisted(self, comment_service, project, make_actor, session_factory):
        author = make_actor(Department.LOG, Role.STAFF)
        dto = comment_service.add_comment(project.id, author, "Pallets arrive Monday")

        assert dto.kind == "comment"
        assert dto.author_id == author.user_id
        with session_scope(session_factory) as s:
            stored = WorkflowSelector(s).comments(project.id)
        assert [c.content for c in stored] == ["Pallets arrive Monday"]
        assert stored[0].id == dto.id

    def test_heads_and_owner_notified(
        self, comment_service, project, create_user, session_factory, owner_id,
    ):
        log_head = create_user("Lan", Department.LOG, Role.SENIOR_MANAGER)
        qa_admin = create_user("Quang", Department.QA, Role.ADMIN)
        create_user("Retired", Department.QA, Role.SENIOR_MANAGER, is_active=False)
        create_user("Hoa", Department.HR, Role.SENIOR_MANAGER)
        author = create_user("Phuc", Department.LOG, Role.STAFF)

        comment_service.add_comment(project.id, author, "Supplier delayed", kind="update")

        with session_scope(session_factory) as s:
            selector = WorkflowSelector(s)
            head_inbox = selector.notifications_for(log_head.user_id)
            admin_inbox = selector.notifications_for(qa_admin.user_id)
            owner_inbox = selector.notifications_for(owner_id)
            author_inbox = selector.notifications_for(author.user_id)

        assert [n.type for n in head_inbox] == [NotificationType.WARNING]
        assert len(admin_inbox) == 1
        assert [n.type for n in owner_inbox] == [NotificationType.INFO]
        assert author_inbox == []

    def test_author_who_is_head_is_not_notified(
        self, comment_service, project, create_user, session_factory,
    ):
        head = create_user("Lan", Department.LOG, Role.SENIOR_MANAGER)
        comment_service.add_comment(project.id, head, "Noted")
        with session_scope(session_factory) as s:
            assert WorkflowSelector(s).notifications_for(head.user_id) == []

    def test_invalid_kind(self, comment_service, project, make_actor):
        with pytest.raises(InvalidCommentKindError):
            comment_service.add_comment(project.id, make_actor(), "hello", kind="memo")

    @pytest.mark.parametrize("text", ["", "   "])
    def test_blank_text(self, comment_service, project, make_actor, text):
        with pytest.raises(MissingFieldError):
            comment_service.add_comment(project.id, make_actor(), text)

    def test_unknown_aggregate(self, comment_service, make_actor):
        with pytest.raises(WorkflowNotFoundError):
            comment_service.add_comment(uuid4(), make_actor(), "hello")

    def test_comment_logged(self, comment_service, project, make_actor, captured_logs):
        comment_service.add_comment(project.id, make_actor(), "hello", kind="update")
        record = next(r for r in captured_logs() if r["message"] == "comment_added")
        assert record["comment_kind"] == "update"
        assert record["aggregate_id"] == str(project.id)
