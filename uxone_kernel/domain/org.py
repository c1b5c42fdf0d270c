"""
Organisation vocabulary (``uxone_kernel.domain.org``).

Responsibility
--------------
Closed sets of department codes and role names, with a single canonical
normaliser for each.  Free-form strings from requests, the user table or
configuration are turned into ``Department`` / ``Role`` members here and
nowhere else, so synonyms such as ``"SENIOR MANAGER"`` and
``"senior_manager"`` always compare equal.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from uxone_kernel.exceptions import UnknownDepartmentError, UnknownRoleError


class Department(str, Enum):
    """Department codes that can be required to approve a workflow."""

    IS = "IS"
    QC = "QC"
    QA = "QA"
    HR = "HR"
    FIN = "FIN"
    LOG = "LOG"
    PROC = "PROC"
    PC = "PC"
    PM = "PM"
    FM = "FM"
    CS = "CS"
    RD = "RD"
    MKT = "MKT"
    SALES = "SALES"
    OPS = "OPS"
    ADMIN = "ADMIN"
    LVM_EXPAT = "LVM-EXPAT"

    @property
    def label(self) -> str:
        return DEPARTMENT_LABELS[self]


DEPARTMENT_LABELS: dict[Department, str] = {
    Department.IS: "Information Systems",
    Department.QC: "Quality Control",
    Department.QA: "Quality Assurance",
    Department.HR: "Human Resources",
    Department.FIN: "Finance",
    Department.LOG: "Logistics",
    Department.PROC: "Procurement",
    Department.PC: "Production Planning",
    Department.PM: "Production Maintenance",
    Department.FM: "Facility Management",
    Department.CS: "Customer Service",
    Department.RD: "Research & Development",
    Department.MKT: "Marketing",
    Department.SALES: "Sales",
    Department.OPS: "Operations",
    Department.ADMIN: "Administration",
    Department.LVM_EXPAT: "LVM Expats",
}


class Role(str, Enum):
    """User roles, highest authority first."""

    ADMIN = "ADMIN"
    GENERAL_DIRECTOR = "GENERAL_DIRECTOR"
    GENERAL_MANAGER = "GENERAL_MANAGER"
    ASSISTANT_GENERAL_MANAGER = "ASSISTANT_GENERAL_MANAGER"
    SENIOR_MANAGER = "SENIOR_MANAGER"
    ASSISTANT_SENIOR_MANAGER = "ASSISTANT_SENIOR_MANAGER"
    MANAGER = "MANAGER"
    ASSISTANT_MANAGER = "ASSISTANT_MANAGER"
    SUPERVISOR = "SUPERVISOR"
    LINE_LEADER = "LINE_LEADER"
    CHIEF_SPECIALIST = "CHIEF_SPECIALIST"
    SENIOR_SPECIALIST = "SENIOR_SPECIALIST"
    SPECIALIST = "SPECIALIST"
    SENIOR_ENGINEER = "SENIOR_ENGINEER"
    ENGINEER = "ENGINEER"
    TECHNICIAN = "TECHNICIAN"
    SENIOR_STAFF = "SENIOR_STAFF"
    STAFF = "STAFF"
    OPERATOR = "OPERATOR"
    INTERN = "INTERN"

    @property
    def level(self) -> int:
        return ROLE_LEVELS[self]


ROLE_LEVELS: dict[Role, int] = {
    Role.ADMIN: 11,
    Role.GENERAL_DIRECTOR: 10,
    Role.GENERAL_MANAGER: 9,
    Role.ASSISTANT_GENERAL_MANAGER: 8,
    Role.SENIOR_MANAGER: 7,
    Role.ASSISTANT_SENIOR_MANAGER: 6,
    Role.MANAGER: 5,
    Role.ASSISTANT_MANAGER: 4,
    Role.SUPERVISOR: 3,
    Role.LINE_LEADER: 3,
    Role.CHIEF_SPECIALIST: 3,
    Role.SENIOR_SPECIALIST: 2,
    Role.SPECIALIST: 2,
    Role.SENIOR_ENGINEER: 2,
    Role.ENGINEER: 2,
    Role.TECHNICIAN: 1,
    Role.SENIOR_STAFF: 1,
    Role.STAFF: 1,
    Role.OPERATOR: 1,
    Role.INTERN: 0,
}

# Numbered variants ("MANAGER_2") share the authority of their base role.
_ROLE_VARIANT_SUFFIX = re.compile(r"_\d+$")

_DEPARTMENT_SYNONYMS: dict[str, Department] = {
    "LOGISTICS": Department.LOG,
    "PROCUREMENT": Department.PROC,
    "PURCHASING": Department.PROC,
    "PRODUCTION_PLANNING": Department.PC,
    "QUALITY_ASSURANCE": Department.QA,
    "QUALITY_CONTROL": Department.QC,
    "HUMAN_RESOURCES": Department.HR,
    "FINANCE": Department.FIN,
    "INFORMATION_SYSTEMS": Department.IS,
    "IT": Department.IS,
    "PRODUCTION_MAINTENANCE": Department.PM,
    "FACILITY_MANAGEMENT": Department.FM,
    "CUSTOMER_SERVICE": Department.CS,
    "RESEARCH_&_DEVELOPMENT": Department.RD,
    "R&D": Department.RD,
    "MARKETING": Department.MKT,
    "OPERATIONS": Department.OPS,
    "ADMINISTRATION": Department.ADMIN,
    "LVM_EXPAT": Department.LVM_EXPAT,
    "LVM_EXPATS": Department.LVM_EXPAT,
}


def _fold(value: str) -> str:
    """Upper-case and collapse spaces/hyphens into underscores."""
    return re.sub(r"[\s\-]+", "_", value.strip()).upper()


def normalize_department(value: Department | str) -> Department:
    """
    Map a department code, label or synonym to its ``Department`` member.

    Raises:
        UnknownDepartmentError: if the value matches nothing.
    """
    if isinstance(value, Department):
        return value
    if not isinstance(value, str) or not value.strip():
        raise UnknownDepartmentError(value)

    raw = value.strip().upper()
    try:
        return Department(raw)
    except ValueError:
        pass

    folded = _fold(value)
    if folded in _DEPARTMENT_SYNONYMS:
        return _DEPARTMENT_SYNONYMS[folded]
    for member, label in DEPARTMENT_LABELS.items():
        if _fold(label) == folded:
            return member
    raise UnknownDepartmentError(value)


def normalize_role(value: Role | str) -> Role:
    """
    Map a role name in any spelling to its ``Role`` member.

    ``"Senior Manager"``, ``"SENIOR MANAGER"``, ``"senior-manager"`` and
    ``"SENIOR_MANAGER_2"`` all normalise to ``Role.SENIOR_MANAGER``.

    Raises:
        UnknownRoleError: if the value matches nothing.
    """
    if isinstance(value, Role):
        return value
    if not isinstance(value, str) or not value.strip():
        raise UnknownRoleError(value)

    folded = _ROLE_VARIANT_SUFFIX.sub("", _fold(value))
    try:
        return Role(folded)
    except ValueError:
        raise UnknownRoleError(value) from None


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an operation."""

    user_id: UUID
    department: Department | None
    role: Role
    name: str = ""

    @classmethod
    def of(
        cls,
        user_id: UUID,
        department: Department | str | None,
        role: Role | str,
        name: str = "",
    ) -> Actor:
        """Build an actor from raw strings, normalising department and role."""
        return cls(
            user_id=user_id,
            department=(
                normalize_department(department) if department else None
            ),
            role=normalize_role(role),
            name=name,
        )
