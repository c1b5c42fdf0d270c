"""
SequenceService -- gap-free counter allocation per (family, time bucket).

Responsibility:
    Allocates strictly increasing integers for an identifier family within
    a time bucket, and turns them into human-readable identifiers such as
    ``LR-20240101-001``.  The counter table is the sole source of truth.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    ``SequenceService`` is flush-only and runs in the caller's transaction.
    ``IdentifierGenerator`` owns its own short transactions so that an
    allocation is committed (and therefore exclusive) before the identifier
    is handed out.

Invariants enforced:
    - Uniqueness: no two successful calls for the same family and bucket
      return the same identifier, regardless of concurrency.
    - Monotonicity: within a bucket, committed values strictly increase.
    - Bucket isolation: each bucket has its own counter row.
    - The increment is a single atomic UPDATE ... RETURNING.  The
      aggregate-max-plus-one anti-pattern is never used and no in-process
      lock is taken.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and retry of the UPDATE).
    - OperationalError: lock timeout, deadlock or serialization failure;
      ``IdentifierGenerator`` retries with exponential backoff.
    - SequenceExhaustedError: ``max_attempts`` allocations all failed or
      collided.
"""

import time
from collections.abc import Callable

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from uxone_kernel.db.engine import get_session_factory, session_scope
from uxone_kernel.domain.clock import Clock, SystemClock
from uxone_kernel.domain.identifiers import IdentifierFamily, format_identifier
from uxone_kernel.exceptions import SequenceExhaustedError
from uxone_kernel.logging_config import get_logger
from uxone_kernel.models.sequence import SequenceCounter
from uxone_kernel.services.base import BaseService

logger = get_logger("services.sequence")


class SequenceService(BaseService):
    """
    Service for allocating bucket-scoped sequence numbers.

    Contract:
        Accepts a sequence name and bucket key and returns the next value.
        The increment becomes visible when the caller's transaction commits;
        a rollback returns the value.

    Non-goals:
        - Does NOT call ``session.commit()``.

    Usage:
        with session_scope() as session:
            value = SequenceService(session).next_value("LR", "20240101")
    """

    def next_value(self, sequence_name: str, bucket_key: str) -> int:
        """
        Allocate the next value for ``(sequence_name, bucket_key)``.

        Preconditions:
            - The caller is within an active database transaction.

        Postconditions:
            - Returns an integer > 0, strictly greater than any value
              previously committed for this sequence and bucket.

        Returns:
            The allocated value (1 for a fresh bucket).
        """
        value = self._increment(sequence_name, bucket_key)
        if value is None:
            # First use of this bucket. Another caller may be creating the
            # same row; the savepoint keeps the rest of the transaction intact.
            savepoint = self.session.begin_nested()
            try:
                self.session.add(SequenceCounter(
                    sequence_name=sequence_name,
                    bucket_key=bucket_key,
                    current_value=1,
                ))
                self.session.flush()
                savepoint.commit()
                value = 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name, "bucket_key": bucket_key},
                )
                savepoint.rollback()
                value = self._increment(sequence_name, bucket_key)
                if value is None:
                    raise

        assert value > 0, "sequence value must be strictly positive"
        logger.debug(
            "sequence_allocated",
            extra={
                "sequence_name": sequence_name,
                "bucket_key": bucket_key,
                "value": value,
            },
        )
        return value

    def current_value(self, sequence_name: str, bucket_key: str) -> int | None:
        """
        Current value of a counter without incrementing it.

        Returns:
            Current value, or None if the bucket has never been used.
        """
        return self.session.execute(
            select(SequenceCounter.current_value)
            .where(SequenceCounter.sequence_name == sequence_name)
            .where(SequenceCounter.bucket_key == bucket_key)
        ).scalar_one_or_none()

    def _increment(self, sequence_name: str, bucket_key: str) -> int | None:
        return self.session.execute(
            update(SequenceCounter)
            .where(SequenceCounter.sequence_name == sequence_name)
            .where(SequenceCounter.bucket_key == bucket_key)
            .values(current_value=SequenceCounter.current_value + 1)
            .returning(SequenceCounter.current_value)
            .execution_options(synchronize_session=False)
        ).scalar_one_or_none()


class IdentifierGenerator:
    """
    Produces unique ``PREFIX-BUCKET-NNN`` identifiers.

    Each attempt allocates a counter value in its own committed transaction,
    formats it, and asks the optional ``exists`` callback whether the
    identifier is already taken in its owning table (rows imported or
    created before the counter existed).  Collisions and transient storage
    failures are retried; after ``family.max_attempts`` attempts
    ``SequenceExhaustedError`` is raised.  A duplicate or malformed
    identifier is never returned.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        backoff_seconds: float = 0.02,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep

    def next_identifier(
        self,
        family: IdentifierFamily,
        exists: Callable[[str], bool] | None = None,
    ) -> str:
        session_factory = self._session_factory or get_session_factory()
        bucket_key = family.bucket_key(self._clock)

        for attempt in range(1, family.max_attempts + 1):
            try:
                with session_scope(session_factory) as session:
                    value = SequenceService(session, self._clock).next_value(
                        family.prefix, bucket_key,
                    )
            except OperationalError as exc:
                logger.warning(
                    "sequence_allocation_transient_failure",
                    extra={
                        "prefix": family.prefix,
                        "bucket_key": bucket_key,
                        "attempt": attempt,
                        "error": str(exc.orig) if exc.orig is not None else str(exc),
                    },
                )
                self._backoff(attempt, family.max_attempts)
                continue

            identifier = format_identifier(family, bucket_key, value)
            if exists is not None and exists(identifier):
                logger.warning(
                    "identifier_collision",
                    extra={"identifier": identifier, "attempt": attempt},
                )
                continue

            logger.info(
                "identifier_generated",
                extra={"identifier": identifier, "attempt": attempt},
            )
            return identifier

        logger.error(
            "identifier_generation_exhausted",
            extra={
                "prefix": family.prefix,
                "bucket_key": bucket_key,
                "attempts": family.max_attempts,
            },
        )
        raise SequenceExhaustedError(family.prefix, bucket_key, family.max_attempts)

    def _backoff(self, attempt: int, max_attempts: int) -> None:
        if attempt < max_attempts and self._backoff_seconds > 0:
            self._sleep(self._backoff_seconds * (2 ** (attempt - 1)))
