# events/lifecycle.py
"""
Event lifecycle computer.

The lifecycle (draft → published → ongoing → completed, latched `closed`)
is derived from the approval status, the close flag and the clock. It is
never set directly except through `is_closed`.
"""
from datetime import datetime
from typing import Optional
import logging

from . import datetime_utils
from .models import Event

logger = logging.getLogger('eventhub.events')


def compute_lifecycle(event: Event, now: Optional[datetime] = None) -> str:
    """Pure function of (status, is_closed, lifecycle_status, start, end, now)."""
    now = now or datetime_utils.now()

    if event.is_closed:
        return Event.LIFECYCLE_CLOSED
    if event.status == Event.STATUS_DRAFT or event.lifecycle_status == Event.LIFECYCLE_DRAFT:
        return Event.LIFECYCLE_DRAFT
    if datetime_utils.is_event_past(event, now):
        return Event.LIFECYCLE_COMPLETED
    if datetime_utils.is_event_ongoing(event, now):
        return Event.LIFECYCLE_ONGOING
    return Event.LIFECYCLE_PUBLISHED


def resolve_lifecycle(event: Event, now: Optional[datetime] = None) -> str:
    """
    Computed lifecycle with the no-regression rule applied:
    a non-draft lifecycle never falls back to draft.
    """
    computed = compute_lifecycle(event, now)
    if computed == Event.LIFECYCLE_DRAFT and event.lifecycle_status != Event.LIFECYCLE_DRAFT:
        return event.lifecycle_status
    return computed


def sync_lifecycle(event: Event, now: Optional[datetime] = None) -> Event:
    """
    Bring the persisted lifecycle_status in line with the computed one.

    Writes only when the value actually changes.
    """
    resolved = resolve_lifecycle(event, now)
    if resolved == event.lifecycle_status:
        return event

    old = event.lifecycle_status
    event.lifecycle_status = resolved
    if event.pk:
        Event.objects.filter(pk=event.pk).update(lifecycle_status=resolved)

    logger.info(f"Lifecycle sync: event={event.pk}, from={old}, to={resolved}")
    return event
