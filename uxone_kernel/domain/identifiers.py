"""
Human-readable identifier formats (``uxone_kernel.domain.identifiers``).

Responsibility
--------------
Describes identifier families (prefix, time bucket, padding) and the pure
functions that derive bucket keys from a clock and format/parse
``PREFIX-BUCKET-NNN`` identifiers.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Allocation of
the counter itself lives in ``services/sequence_service.py``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum

from uxone_kernel.domain.clock import Clock
from uxone_kernel.exceptions import InvalidIdentifierError

MIN_PADDING = 1
MAX_PADDING = 8


class BucketPeriod(str, Enum):
    """Time scope that partitions a sequence counter."""

    DAILY = "daily"
    YEARLY = "yearly"
    GLOBAL = "global"


def daily_bucket(clock: Clock) -> str:
    """Current UTC calendar day as ``YYYYMMDD``."""
    return clock.now_utc().strftime("%Y%m%d")


def yearly_bucket(clock: Clock) -> str:
    """Current UTC year as ``YYYY``."""
    return clock.now_utc().strftime("%Y")


# Counter key of families that never restart (rendered without a bucket).
GLOBAL_BUCKET_KEY = "global"


def global_bucket(clock: Clock) -> str:
    return GLOBAL_BUCKET_KEY


_BUCKET_FUNCTIONS = {
    BucketPeriod.DAILY: daily_bucket,
    BucketPeriod.YEARLY: yearly_bucket,
    BucketPeriod.GLOBAL: global_bucket,
}

_BUCKET_PATTERNS = {
    BucketPeriod.DAILY: r"\d{8}",
    BucketPeriod.YEARLY: r"\d{4}",
}


@dataclass(frozen=True)
class IdentifierFamily:
    """
    A family of identifiers sharing one prefix and one counter per bucket.

    ``padding`` is the minimum width of the counter; counters that outgrow
    it are rendered with more digits, never truncated.
    """

    prefix: str
    bucket: BucketPeriod = BucketPeriod.DAILY
    padding: int = 3
    max_attempts: int = 5

    def __post_init__(self) -> None:
        if not self.prefix:
            raise ValueError("IdentifierFamily requires a prefix")
        if not MIN_PADDING <= self.padding <= MAX_PADDING:
            raise ValueError(
                f"padding must be between {MIN_PADDING} and {MAX_PADDING}, "
                f"got {self.padding}"
            )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def bucket_key(self, clock: Clock) -> str:
        return _BUCKET_FUNCTIONS[self.bucket](clock)

    def pattern(self) -> re.Pattern[str]:
        counter = rf"(\d{{{self.padding},}})"
        if self.bucket is BucketPeriod.GLOBAL:
            return re.compile(rf"^{re.escape(self.prefix)}-{counter}$")
        return re.compile(
            rf"^{re.escape(self.prefix)}-({_BUCKET_PATTERNS[self.bucket]})-{counter}$"
        )


@dataclass(frozen=True)
class ParsedIdentifier:
    prefix: str
    bucket_key: str
    counter: int


def format_identifier(family: IdentifierFamily, bucket_key: str, counter: int) -> str:
    """
    Render ``PREFIX-BUCKET-NNN`` with the family's zero padding.

    Global families have no bucket segment: ``PREFIX-NNN``.
    """
    if counter < 1:
        raise ValueError(f"counter must be positive, got {counter}")
    number = f"{counter:0{family.padding}d}"
    if family.bucket is BucketPeriod.GLOBAL:
        return f"{family.prefix}-{number}"
    return f"{family.prefix}-{bucket_key}-{number}"


def parse_identifier(identifier: str, family: IdentifierFamily) -> ParsedIdentifier:
    """
    Split an identifier into its parts.

    Raises:
        InvalidIdentifierError: if it does not belong to ``family``.
    """
    match = family.pattern().match(identifier or "")
    if match is None:
        raise InvalidIdentifierError(identifier, family.prefix)
    if family.bucket is BucketPeriod.GLOBAL:
        return ParsedIdentifier(family.prefix, GLOBAL_BUCKET_KEY, int(match.group(1)))
    return ParsedIdentifier(
        prefix=family.prefix,
        bucket_key=match.group(1),
        counter=int(match.group(2)),
    )


def is_valid_identifier(identifier: str, family: IdentifierFamily) -> bool:
    return family.pattern().match(identifier or "") is not None


def bucket_date(identifier: str, family: IdentifierFamily) -> date:
    """Calendar day encoded in a daily identifier (e.g. a demand ID)."""
    if family.bucket is not BucketPeriod.DAILY:
        raise ValueError(f"{family.prefix} identifiers are not day-scoped")
    bucket_key = parse_identifier(identifier, family).bucket_key
    try:
        return date(int(bucket_key[:4]), int(bucket_key[4:6]), int(bucket_key[6:]))
    except ValueError:
        raise InvalidIdentifierError(identifier, family.prefix) from None
