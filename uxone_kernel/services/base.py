"""
BaseService -- abstract base for kernel services.

Responsibility:
    Common constructor and session-handling contract for every write
    service in the kernel layer.  Services use ``session.flush()`` and
    never ``session.commit()``; the caller (a ``uxone_services``
    coordinator or a test) owns the transaction.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
"""

from abc import ABC

from sqlalchemy.orm import Session

from uxone_kernel.domain.clock import Clock, SystemClock


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Read-only queries belong in ``uxone_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
