# events/datetime_utils.py
"""
Centralized datetime handling for EventHub.

All datetime operations should use these utilities so the clock can be
patched in one place (tests patch `events.datetime_utils.now`).
"""
from datetime import datetime, timedelta
from typing import Optional
from django.utils import timezone
from django.utils.dateparse import parse_datetime


def now() -> datetime:
    """
    Get current datetime (timezone-aware, USE_TZ=True).

    This is the single source of truth for "now" in EventHub.
    """
    return timezone.now()


def is_event_ongoing(event, current: Optional[datetime] = None) -> bool:
    """Check if event is currently happening."""
    if not event.start_time or not event.end_time:
        return False
    current = current or now()
    return event.start_time <= current <= event.end_time


def is_event_past(event, current: Optional[datetime] = None) -> bool:
    """Check if event has ended."""
    if not event.end_time:
        return False
    return event.end_time < (current or now())


def has_started(event, current: Optional[datetime] = None) -> bool:
    if not event.start_time:
        return False
    return event.start_time < (current or now())


def is_deadline_passed(event, current: Optional[datetime] = None) -> bool:
    """A missing deadline never passes."""
    if not event.registration_deadline:
        return False
    return event.registration_deadline <= (current or now())


def parse_iso(iso_string) -> Optional[datetime]:
    """
    Parse ISO 8601 datetime string (date-only strings become midnight).

    Naive values are interpreted in the current timezone.
    Returns None if parsing fails.
    """
    if not iso_string:
        return None
    if isinstance(iso_string, datetime):
        value = iso_string
    else:
        try:
            value = parse_datetime(str(iso_string).strip())
        except ValueError:
            return None
        if value is None:
            try:
                value = datetime.fromisoformat(str(iso_string).strip().replace('Z', '+00:00'))
            except ValueError:
                return None
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value


def trending_window_start(hours: int, current: Optional[datetime] = None) -> datetime:
    return (current or now()) - timedelta(hours=hours)
