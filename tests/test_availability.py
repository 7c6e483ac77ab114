"""
Tests for per-date seat resolution from the sparse capacity feed.
"""

from __future__ import annotations

from tourbooking.application.utils.availability import calendar_day, resolve_availability
from tourbooking.domain.entities.availability import AvailabilityFeed, DateCapacity


def _feed(*entries: DateCapacity, success: bool = True) -> AvailabilityFeed:
    return AvailabilityFeed(sku="island-highlights", entries=entries, success=success)


def test_booked_date_returns_feed_entry_verbatim():
    """A date present in the feed is returned as reported, never recomputed."""
    feed = _feed(
        DateCapacity(date="2024-07-01", committed=10, allowed=12, remaining=2),
        DateCapacity(date="2024-07-03", committed=3, allowed=12, remaining=9),
    )

    result = resolve_availability(feed, "2024-07-01", default_allowed=20)

    assert result.remaining == 2
    assert result.allowed == 12
    assert result.has_recorded_booking is True


def test_unbooked_date_gets_product_wide_cap():
    """A day absent from the feed is fully available at the cap shared by the feed entries."""
    feed = _feed(DateCapacity(date="2024-07-01", committed=10, allowed=15, remaining=5))

    result = resolve_availability(feed, "2024-07-02", default_allowed=12)

    assert result.remaining == 15
    assert result.allowed == 15
    assert result.has_recorded_booking is False


def test_empty_feed_uses_configured_default():
    result = resolve_availability(_feed(), "2024-07-02", default_allowed=12)

    assert result.remaining == 12
    assert result.allowed == 12


def test_missing_or_failed_feed_fails_open():
    """No feed, or an unsuccessful one, never blocks a booking."""
    failed = _feed(DateCapacity(date="2024-07-01", committed=12, allowed=12, remaining=0), success=False)

    assert resolve_availability(None, "2024-07-01", default_allowed=12).remaining == 12
    assert resolve_availability(failed, "2024-07-01", default_allowed=12).remaining == 12


def test_date_time_forms_match_same_calendar_day():
    """Requested and feed dates are compared by calendar day only."""
    feed = _feed(DateCapacity(date="2024-07-01 00:00:00", committed=11, allowed=12, remaining=1))

    assert resolve_availability(feed, "2024-07-01", default_allowed=12).remaining == 1
    assert resolve_availability(feed, "2024-07-01T23:30:00+05:00", default_allowed=12).remaining == 1


def test_calendar_day_strips_time_and_keeps_unparseable_text():
    assert calendar_day("2024-07-01 00:00:00") == "2024-07-01"
    assert calendar_day(" 2024-07-01 ") == "2024-07-01"
    assert calendar_day("next friday") == "next friday"
    assert calendar_day("") == ""
