"""WorkflowSelector read paths: listing, references, comments."""

from datetime import timedelta
from uuid import uuid4

import pytest

from uxone_kernel.domain.approval import AggregateStatus, DecisionStatus, WorkflowKind
from uxone_kernel.domain.org import Department
from uxone_kernel.models.comment import WorkflowCommentModel
from uxone_kernel.selectors.workflow_selector import WorkflowSelector
from uxone_kernel.services.approval_service import ApprovalService


@pytest.fixture
def approval_service(session, deterministic_clock):
    return ApprovalService(session, deterministic_clock)


@pytest.fixture
def selector(session):
    return WorkflowSelector(session)


@pytest.fixture
def seeded(approval_service, owner_id):
    """Two projects and a demand; the second project is approved."""
    other_owner = uuid4()
    retrofit = approval_service.create_aggregate(
        WorkflowKind.PROJECT, "Line 3 retrofit", owner_id, ["LOG", "QA"],
    )
    audit = approval_service.create_aggregate(
        WorkflowKind.PROJECT, "Supplier audit", other_owner, ["QA"],
    )
    gloves = approval_service.create_aggregate(
        WorkflowKind.DEMAND, "Gloves", owner_id, ["LOG"], reference="LR-20240101-001",
    )
    approval_service.record_decision(audit.id, Department.QA, DecisionStatus.APPROVED, uuid4())
    return {"retrofit": retrofit, "audit": audit, "gloves": gloves, "other_owner": other_owner}


def _titles(aggregates):
    return sorted(a.title for a in aggregates)


class TestListAggregates:

    def test_unfiltered(self, selector, seeded):
        assert _titles(selector.list_aggregates()) == ["Gloves", "Line 3 retrofit", "Supplier audit"]

    def test_by_kind(self, selector, seeded):
        assert _titles(selector.list_aggregates(kind=WorkflowKind.PROJECT)) == [
            "Line 3 retrofit", "Supplier audit",
        ]

    def test_by_status(self, selector, seeded):
        approved = selector.list_aggregates(status=AggregateStatus.APPROVED)
        assert [a.id for a in approved] == [seeded["audit"].id]
        assert approved[0].released is True

    def test_by_owner_and_kind(self, selector, seeded, owner_id):
        result = selector.list_aggregates(kind=WorkflowKind.DEMAND, owner_id=owner_id)
        assert [a.reference for a in result] == ["LR-20240101-001"]
        assert selector.list_aggregates(
            kind=WorkflowKind.DEMAND, owner_id=seeded["other_owner"],
        ) == []


class TestReferences:

    def test_get_by_reference(self, selector, seeded):
        assert selector.get_by_reference("LR-20240101-001").id == seeded["gloves"].id
        assert selector.get_by_reference("LR-20240101-999") is None

    def test_reference_exists(self, selector, seeded):
        assert selector.reference_exists("LR-20240101-001")
        assert not selector.reference_exists("LR-20240102-001")

    def test_get_unknown(self, selector):
        assert selector.get(uuid4()) is None


class TestComments:

    def test_ordered_by_creation_and_scoped_to_aggregate(
        self, session, selector, seeded, deterministic_clock,
    ):
        author = uuid4()
        start = deterministic_clock.now_utc()
        session.add_all([
            WorkflowCommentModel(
                aggregate_id=seeded["retrofit"].id, author_id=author, kind="update",
                content="second", created_at=start + timedelta(minutes=5),
            ),
            WorkflowCommentModel(
                aggregate_id=seeded["retrofit"].id, author_id=author, kind="comment",
                content="first", created_at=start,
            ),
            WorkflowCommentModel(
                aggregate_id=seeded["audit"].id, author_id=author, kind="comment",
                content="elsewhere", created_at=start,
            ),
        ])
        session.flush()

        comments = selector.comments(seeded["retrofit"].id)
        assert [(c.kind, c.content) for c in comments] == [("comment", "first"), ("update", "second")]
        assert all(c.aggregate_id == seeded["retrofit"].id for c in comments)

    def test_no_comments(self, selector, seeded):
        assert selector.comments(seeded["gloves"].id) == []
