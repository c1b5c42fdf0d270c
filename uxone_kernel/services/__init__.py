"""Kernel services. Flush-only; callers own the transaction."""

from uxone_kernel.services.approval_service import ApprovalService
from uxone_kernel.services.base import BaseService
from uxone_kernel.services.sequence_service import IdentifierGenerator, SequenceService

__all__ = [
    "ApprovalService",
    "BaseService",
    "IdentifierGenerator",
    "SequenceService",
]
