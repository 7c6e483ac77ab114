from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DateCapacity:
    date: str  # YYYY-MM-DD
    committed: int
    allowed: int
    remaining: int  # allowed - committed, as reported by the backend
    order_count: int = 0


@dataclass(frozen=True)
class AvailabilityFeed:
    sku: str
    entries: tuple[DateCapacity, ...] = ()
    success: bool = True
    message: str | None = None
    total_bookings: int = 0


@dataclass(frozen=True)
class AvailabilityResult:
    remaining: int
    allowed: int
    has_recorded_booking: bool


@dataclass(frozen=True)
class DateAvailabilityInfo:
    date: str
    remaining: int
    allowed: int
