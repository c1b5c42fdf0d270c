"""
uxone_services.authority -- Department authority at the decision boundary.

Responsibility:
    Decide whether an actor may record a decision for a department.  A
    user decides for their own department; users holding one of the
    configured override roles decide for any department.

Architecture position:
    Services layer.  The override allowlist comes from
    ``uxone_config.ApprovalPolicy``; the kernel stays actor-agnostic.
"""

from __future__ import annotations

from collections.abc import Iterable

from uxone_kernel.domain.org import Actor, Department, Role
from uxone_kernel.exceptions import DepartmentAuthorizationError
from uxone_kernel.logging_config import get_logger

logger = get_logger("services.authority")


def can_decide(
    actor: Actor,
    department: Department,
    override_roles: Iterable[Role],
) -> bool:
    """True iff ``actor`` may decide for ``department``."""
    if actor.department is department:
        return True
    return actor.role in set(override_roles)


def check_department_authority(
    actor: Actor,
    department: Department,
    override_roles: Iterable[Role],
) -> None:
    """
    Raise unless ``actor`` may decide for ``department``.

    Raises:
        DepartmentAuthorizationError: actor is outside the department and
            holds no override role.
    """
    if can_decide(actor, department, override_roles):
        return
    logger.warning(
        "department_authority_denied",
        extra={
            "actor_id": str(actor.user_id),
            "actor_department": actor.department.value if actor.department else None,
            "actor_role": actor.role.value,
            "department": department.value,
        },
    )
    raise DepartmentAuthorizationError(
        str(actor.user_id),
        actor.department.value if actor.department else "none",
        department.value,
    )
