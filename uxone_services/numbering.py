"""
uxone_services.numbering -- Human-readable numbers for business documents.

Responsibility:
    Creates demands (``LR-YYYYMMDD-NNN``) and projects, and issues document
    numbers (``PREFIX-YYYY-NNN``) and helpdesk ticket numbers
    (``TIPA-HD-YYYYMMDD-NNN`` for email, ``TKT-NNNNNN`` for manual tickets).
    All numbers come from ``IdentifierGenerator``; nothing here derives a
    number from the highest existing one.

Architecture position:
    Services layer.  Identifier families come from the ``identifier_families``
    section of the loaded configuration; use ``from_config`` at composition
    points.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from uxone_config.schema import UXOneConfig
from uxone_kernel.db.engine import session_scope
from uxone_kernel.domain.approval import WorkflowAggregate, WorkflowKind
from uxone_kernel.domain.clock import Clock, SystemClock
from uxone_kernel.domain.identifiers import IdentifierFamily
from uxone_kernel.domain.org import Department
from uxone_kernel.exceptions import ConfigurationError, ValidationError
from uxone_kernel.logging_config import get_logger
from uxone_kernel.selectors.workflow_selector import WorkflowSelector
from uxone_kernel.services.approval_service import ApprovalService
from uxone_kernel.services.sequence_service import IdentifierGenerator

logger = get_logger("services.numbering")

DEMAND_FAMILY = "demand"
DOCUMENT_FAMILY = "document"
TICKET_FAMILIES = {
    "email": "ticket_email",
    "manual": "ticket_manual",
}


class NumberingService:
    """Issues identifiers and creates the aggregates that carry them."""

    def __init__(
        self,
        families: Mapping[str, IdentifierFamily],
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        generator: IdentifierGenerator | None = None,
    ) -> None:
        self._families = dict(families)
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._generator = generator or IdentifierGenerator(session_factory, self._clock)

    @classmethod
    def from_config(
        cls,
        config: UXOneConfig,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ) -> NumberingService:
        return cls(config.identifier_families, session_factory, clock)

    def _family(self, name: str) -> IdentifierFamily:
        try:
            return self._families[name]
        except KeyError:
            raise ConfigurationError(
                f"identifier_families.{name}", "is not configured",
            ) from None

    def create_demand(
        self,
        title: str,
        owner_id: UUID,
        departments: Iterable[Department | str],
    ) -> WorkflowAggregate:
        """Create a demand with a fresh ``LR-YYYYMMDD-NNN`` reference."""
        reference = self._generator.next_identifier(
            self._family(DEMAND_FAMILY), exists=self._reference_exists,
        )
        with session_scope(self._session_factory) as session:
            demand = ApprovalService(session, self._clock).create_aggregate(
                WorkflowKind.DEMAND, title, owner_id, departments, reference=reference,
            )
        logger.info(
            "demand_created",
            extra={"aggregate_id": str(demand.id), "reference": reference},
        )
        return demand

    def create_project(
        self,
        title: str,
        owner_id: UUID,
        departments: Iterable[Department | str],
    ) -> WorkflowAggregate:
        with session_scope(self._session_factory) as session:
            return ApprovalService(session, self._clock).create_aggregate(
                WorkflowKind.PROJECT, title, owner_id, departments,
            )

    def next_document_number(self, template_prefix: str | None = None) -> str:
        """``PREFIX-YYYY-NNN`` for a document template (yearly counter)."""
        family = self._family(DOCUMENT_FAMILY)
        if template_prefix:
            family = replace(family, prefix=template_prefix)
        return self._generator.next_identifier(family)

    def next_ticket_number(self, channel: str = "email") -> str:
        """
        Helpdesk ticket number for the ``email`` or ``manual`` channel.

        Raises:
            ValidationError: unknown channel.
        """
        family_name = TICKET_FAMILIES.get(channel)
        if family_name is None:
            raise ValidationError(f"Unknown ticket channel: {channel!r}")
        return self._generator.next_identifier(self._family(family_name))

    def _reference_exists(self, reference: str) -> bool:
        with session_scope(self._session_factory) as session:
            return WorkflowSelector(session).reference_exists(reference)
