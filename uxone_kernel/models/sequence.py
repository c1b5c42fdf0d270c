"""
Module: uxone_kernel.models.sequence
Responsibility: ORM persistence for bucket-scoped sequence counters.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - UNIQUE(sequence_name, bucket_key): at most one counter row per bucket.
    - current_value never decreases; rows are never deleted (they are the
      historical record of every allocation).
"""

from sqlalchemy import BigInteger, CheckConstraint, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from uxone_kernel.db.base import Base


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row is the counter of one identifier family (``sequence_name``)
    within one time bucket (``bucket_key``, e.g. ``20240101`` or ``2024``).
    """

    __tablename__ = "sequence_counters"

    __table_args__ = (
        UniqueConstraint(
            "sequence_name", "bucket_key",
            name="uq_sequence_counters_name_bucket",
        ),
        CheckConstraint(
            "current_value >= 0",
            name="ck_sequence_counters_non_negative",
        ),
    )

    sequence_name: Mapped[str] = mapped_column(String(50), nullable=False)
    bucket_key: Mapped[str] = mapped_column(String(16), nullable=False)
    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    def __repr__(self) -> str:
        return (
            f"<SequenceCounter {self.sequence_name}/{self.bucket_key} "
            f"value={self.current_value}>"
        )
