"""
uxone_services.inventory_cache -- Read-through cache over the ERP inventory.

Responsibility:
    Holds the full inventory list fetched from the ERP for ``ttl_seconds``
    and answers filtered, paginated queries from it.  The cache is an
    explicit component with an injected fetcher and clock; there is no
    module-level state.

Failure modes:
    - Fetcher exceptions propagate; the previously cached items and their
      timestamp are left untouched.
"""

from __future__ import annotations

import math
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from uxone_config.schema import InventoryConfig
from uxone_kernel.domain.clock import Clock, SystemClock
from uxone_kernel.logging_config import get_logger

logger = get_logger("services.inventory_cache")

InventoryItem = Mapping[str, Any]

# ERP column names
ITEM_NUMBER = "IMITM"
DESCRIPTION = "IMLITM"
BUYER = "IMBUY"
BUSINESS_UNIT = "LIMCU"
GL_CLASS = "IMGLPT"
STOCK_STATUS = "StockStatus"
AVAILABLE_STOCK = "AvailableStock"
STANDARD_PACK = "IMSSQ"

STATUS_IN_STOCK = "OK"
STATUS_LOW = "LOW"
STATUS_OUT = "OUT"

ALL = "all"


@dataclass(frozen=True)
class InventoryFilters:
    """Query filters.  ``None`` or ``"all"`` disables a filter."""

    search: str | None = None
    status: str | None = None
    business_unit: str | None = None
    gl_class: str | None = None


@dataclass(frozen=True)
class InventorySummary:
    total_items: int = 0
    in_stock: int = 0
    low_stock: int = 0
    out_of_stock: int = 0
    total_value: float = 0.0


@dataclass(frozen=True)
class InventoryPage:
    items: list[InventoryItem]
    page: int
    page_size: int
    total_items: int
    total_pages: int
    summary: InventorySummary
    cached_at: datetime | None = None
    total_cached_items: int = 0
    filters: InventoryFilters = field(default_factory=InventoryFilters)


def _text(item: InventoryItem, key: str) -> str:
    value = item.get(key)
    return "" if value is None else str(value).strip()


def _enabled(value: str | None) -> bool:
    return bool(value) and value != ALL


def apply_filters(
    items: Sequence[InventoryItem],
    filters: InventoryFilters,
) -> list[InventoryItem]:
    result = list(items)
    if filters.search:
        needle = filters.search.lower()
        result = [
            item for item in result
            if any(needle in _text(item, key).lower() for key in (ITEM_NUMBER, DESCRIPTION, BUYER))
        ]
    if _enabled(filters.status):
        result = [item for item in result if item.get(STOCK_STATUS) == filters.status]
    if _enabled(filters.business_unit):
        result = [item for item in result if _text(item, BUSINESS_UNIT) == filters.business_unit]
    if _enabled(filters.gl_class):
        result = [item for item in result if _text(item, GL_CLASS) == filters.gl_class]
    return result


def summarize(items: Sequence[InventoryItem]) -> InventorySummary:
    return InventorySummary(
        total_items=len(items),
        in_stock=sum(1 for i in items if i.get(STOCK_STATUS) == STATUS_IN_STOCK),
        low_stock=sum(1 for i in items if i.get(STOCK_STATUS) == STATUS_LOW),
        out_of_stock=sum(1 for i in items if i.get(STOCK_STATUS) == STATUS_OUT),
        total_value=float(sum(
            (i.get(AVAILABLE_STOCK) or 0) * (i.get(STANDARD_PACK) or 1) for i in items
        )),
    )


class InventoryCache:
    """TTL read-through cache around an ERP inventory fetcher."""

    def __init__(
        self,
        fetcher: Callable[[], Sequence[InventoryItem]],
        clock: Clock | None = None,
        ttl_seconds: float = 300.0,
        default_page_size: int = 50,
    ) -> None:
        self._fetcher = fetcher
        self._clock = clock or SystemClock()
        self._ttl_seconds = ttl_seconds
        self._default_page_size = default_page_size
        self._items: list[InventoryItem] = []
        self._cached_at: datetime | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: InventoryConfig,
        fetcher: Callable[[], Sequence[InventoryItem]],
        clock: Clock | None = None,
    ) -> InventoryCache:
        return cls(
            fetcher,
            clock,
            ttl_seconds=config.ttl_seconds,
            default_page_size=config.default_page_size,
        )

    @property
    def cached_at(self) -> datetime | None:
        return self._cached_at

    def _is_fresh(self, now: datetime) -> bool:
        if self._cached_at is None or not self._items:
            return False
        return (now - self._cached_at).total_seconds() < self._ttl_seconds

    def get_items(self) -> list[InventoryItem]:
        with self._lock:
            now = self._clock.now_utc()
            if self._is_fresh(now):
                logger.debug("inventory_cache_hit", extra={"count": len(self._items)})
                return list(self._items)

            logger.info("inventory_cache_refresh")
            items = list(self._fetcher())
            self._items = items
            self._cached_at = now
            logger.info("inventory_cache_stored", extra={"count": len(items)})
            return list(items)

    def invalidate(self) -> None:
        with self._lock:
            self._items = []
            self._cached_at = None
        logger.info("inventory_cache_cleared")

    def query(
        self,
        filters: InventoryFilters | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> InventoryPage:
        if page_size is None:
            page_size = self._default_page_size
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        filters = filters or InventoryFilters()

        items = self.get_items()
        filtered = apply_filters(items, filters)
        start = (page - 1) * page_size
        return InventoryPage(
            items=filtered[start:start + page_size],
            page=page,
            page_size=page_size,
            total_items=len(filtered),
            total_pages=math.ceil(len(filtered) / page_size),
            summary=summarize(filtered),
            cached_at=self._cached_at,
            total_cached_items=len(items),
            filters=filters,
        )
