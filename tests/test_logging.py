"""
Structured logging: JSON payloads of workflow values and the request context.

Covers:
- domain values (departments, decisions, UUIDs, dates, collections) in ``extra``
- the workflow context bound around decisions and comments
- structured fields of UXOne exceptions
"""

import json
import logging
from datetime import date, datetime, timezone
from io import StringIO
from uuid import uuid4

import pytest

from uxone_kernel.domain.approval import DecisionStatus
from uxone_kernel.domain.org import Department, Role
from uxone_kernel.exceptions import DepartmentAuthorizationError, OptimisticLockError
from uxone_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)
from uxone_services.authority import check_department_authority


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def log_stream():
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    configure_logging(handler=handler, level="DEBUG")
    return stream


def _records(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


# ---------------------------------------------------------------------------
# Payload encoding
# ---------------------------------------------------------------------------


class TestPayloadEncoding:

    def test_record_shape(self, log_stream):
        get_logger("services.numbering").info("identifier_issued")

        record = _records(log_stream)[0]
        assert record["logger"] == "uxone_kernel.services.numbering"
        assert record["level"] == "INFO"
        assert datetime.fromisoformat(record["ts"]).tzinfo is not None

    def test_domain_values(self, log_stream):
        aggregate_id = uuid4()
        get_logger("test").info(
            "decision_recorded",
            extra={
                "aggregate_ref": aggregate_id,
                "decision": DecisionStatus.REJECTED,
                "role": Role.SENIOR_MANAGER,
                "decided_on": date(2024, 1, 1),
                "decided_at": datetime(2024, 1, 1, 12, tzinfo=timezone.utc),
            },
        )

        record = _records(log_stream)[0]
        assert record["aggregate_ref"] == str(aggregate_id)
        assert record["decision"] == "REJECTED"
        assert record["role"] == Role.SENIOR_MANAGER.value
        assert record["decided_on"] == "2024-01-01"
        assert record["decided_at"] == "2024-01-01T12:00:00+00:00"

    def test_department_collections(self, log_stream):
        get_logger("test").info(
            "aggregate_created",
            extra={
                "departments": (Department.LOG, Department.QA),
                "pending": frozenset({Department.QA, Department.LOG}),
            },
        )

        record = _records(log_stream)[0]
        assert record["departments"] == ["LOG", "QA"]
        assert record["pending"] == ["LOG", "QA"]

    def test_unencodable_value_falls_back_to_str(self, log_stream):
        get_logger("test").info("odd", extra={"payload": object()})
        assert _records(log_stream)[0]["payload"].startswith("<object object")

    def test_level_names_accepted(self, log_stream):
        get_logger("test").debug("verbose")
        assert [r["message"] for r in _records(log_stream)] == ["verbose"]

    def test_unknown_level_name(self):
        with pytest.raises(ValueError):
            configure_logging(level="CHATTY")


# ---------------------------------------------------------------------------
# Workflow context
# ---------------------------------------------------------------------------


class TestWorkflowContext:

    def test_bind_workflow_normalises_values(self, log_stream):
        aggregate_id, actor_id = uuid4(), uuid4()
        with LogContext.bind_workflow(aggregate_id, actor_id, Department.PC):
            get_logger("test").info("inside")
        get_logger("test").info("outside")

        inside, outside = _records(log_stream)
        assert inside["aggregate_id"] == str(aggregate_id)
        assert inside["actor_id"] == str(actor_id)
        assert inside["department"] == "PC"
        assert "aggregate_id" not in outside
        assert "department" not in outside

    def test_nested_binding_restores_outer_aggregate(self):
        outer, inner = uuid4(), uuid4()
        with LogContext.bind_workflow(outer, department=Department.LOG):
            with LogContext.bind_workflow(inner):
                assert LogContext.get_all() == {
                    "aggregate_id": str(inner), "department": "LOG",
                }
            assert LogContext.get_all()["aggregate_id"] == str(outer)
        assert LogContext.get_all() == {}

    def test_context_wins_over_extra(self, log_stream):
        LogContext.set(department=Department.QA)
        get_logger("test").info("test_msg", extra={"department": "LOG"})
        assert _records(log_stream)[0]["department"] == "QA"

    def test_set_rejects_unknown_fields(self):
        with pytest.raises(TypeError):
            LogContext.set(tenant="acme")

    def test_bind_ignores_unknown_fields(self):
        with LogContext.bind(tenant="acme", department="LOG"):
            assert LogContext.get_all() == {"department": "LOG"}

    def test_field_names(self):
        assert LogContext.FIELD_NAMES == (
            "correlation_id", "request_id", "actor_id", "aggregate_id", "department",
        )


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TestExceptionFields:

    def test_authority_denial(self, log_stream, make_actor):
        actor = make_actor(Department.QA, Role.MANAGER)
        with pytest.raises(DepartmentAuthorizationError) as exc_info:
            check_department_authority(actor, Department.LOG, override_roles=())
        get_logger("test").error(
            "decision_rejected",
            exc_info=(type(exc_info.value), exc_info.value, exc_info.tb),
        )

        denied, rejected = _records(log_stream)
        assert denied["message"] == "department_authority_denied"
        assert denied["actor_department"] == "QA"
        assert rejected["exc_code"] == "DEPARTMENT_NOT_AUTHORIZED"
        assert rejected["exc_department"] == "LOG"
        assert rejected["exc_actor_department"] == "QA"
        assert "Traceback" in rejected["traceback"]

    def test_optimistic_lock(self, log_stream):
        aggregate_id = str(uuid4())
        try:
            raise OptimisticLockError("WorkflowAggregate", aggregate_id, 3)
        except OptimisticLockError:
            get_logger("test").warning("decision_conflict", exc_info=True)

        record = _records(log_stream)[0]
        assert record["exc_type"] == "OptimisticLockError"
        assert record["exc_code"] == "OPTIMISTIC_LOCK_CONFLICT"
        assert record["exc_entity_id"] == aggregate_id
        assert record["exc_expected_version"] == 3

    def test_plain_exception_has_no_code(self, log_stream):
        try:
            raise ConnectionError("ERP unreachable")
        except ConnectionError:
            get_logger("test").error("inventory_fetch_failed", exc_info=True)

        record = _records(log_stream)[0]
        assert record["exc_type"] == "ConnectionError"
        assert "exc_code" not in record
