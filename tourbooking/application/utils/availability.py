from __future__ import annotations

from datetime import date

from tourbooking.domain.entities.availability import AvailabilityFeed, AvailabilityResult


def calendar_day(value: str) -> str:
    """
    Reduce a date or date-time string to its calendar day (YYYY-MM-DD).
    No timezone arithmetic: '2024-07-01 00:00:00' and '2024-07-01T23:30:00+05:00'
    both map to '2024-07-01'. Unparseable input is returned stripped.
    """
    text = (value or "").strip()
    head = text[:10]
    try:
        return date.fromisoformat(head).isoformat()
    except ValueError:
        return text


def resolve_availability(
    feed: AvailabilityFeed | None,
    requested_date: str,
    default_allowed: int,
) -> AvailabilityResult:
    """
    Seats remaining for one calendar day of a product.

    A missing or unsuccessful feed fails open to `default_allowed`. A day absent
    from the feed has no bookings yet and gets the product-wide cap, taken from
    any entry (all entries of one product share it). Entries that are present
    are returned verbatim; remaining is never recomputed.
    """
    if feed is None or not feed.success:
        return AvailabilityResult(remaining=default_allowed, allowed=default_allowed, has_recorded_booking=False)

    allowed_cap = feed.entries[0].allowed if feed.entries else default_allowed

    wanted = calendar_day(requested_date)
    for entry in feed.entries:
        if calendar_day(entry.date) == wanted:
            return AvailabilityResult(remaining=entry.remaining, allowed=entry.allowed, has_recorded_booking=True)

    return AvailabilityResult(remaining=allowed_cap, allowed=allowed_cap, has_recorded_booking=False)
