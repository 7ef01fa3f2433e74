# events/services/stats.py
"""
Read-only aggregates for dashboards. Everything is recomputed per call.
"""
from django.contrib.auth import get_user_model
from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce

from events import datetime_utils
from events.models import Event, EventRegistration

RECENT_ACTIVITY_LIMIT = 5


def _counts_by(qs, field):
    rows = qs.values(field).annotate(count=Count("id")).order_by(field)
    return {row[field]: row["count"] for row in rows}


def _payment_breakdown(qs):
    rows = (
        qs.values("payment_status")
        .annotate(count=Count("id"), total_amount=Coalesce(Sum("amount_paid"), 0))
        .order_by("payment_status")
    )
    return [
        {
            "payment_status": row["payment_status"],
            "count": row["count"],
            "total_amount": row["total_amount"],
        }
        for row in rows
    ]


def get_event_registration_stats(event):
    """
    Per-event counters shown next to the registration list.
    `cancelled` counts rejected registrations.
    """
    return EventRegistration.objects.filter(event=event).aggregate(
        total=Count("id"),
        confirmed=Count("id", filter=Q(status=EventRegistration.STATUS_CONFIRMED)),
        pending=Count("id", filter=Q(status=EventRegistration.STATUS_PENDING)),
        cancelled=Count("id", filter=Q(status=EventRegistration.STATUS_REJECTED)),
        checked_in=Count("id", filter=Q(checked_in=True)),
        payment_pending=Count("id", filter=Q(payment_status=EventRegistration.PAYMENT_PENDING)),
        payment_completed=Count("id", filter=Q(payment_status=EventRegistration.PAYMENT_PAID)),
    )


def get_registration_stats():
    qs = EventRegistration.objects.all()
    totals = qs.aggregate(
        total=Count("id"),
        confirmed=Count("id", filter=Q(status=EventRegistration.STATUS_CONFIRMED)),
        pending=Count("id", filter=Q(status=EventRegistration.STATUS_PENDING)),
        cancelled=Count("id", filter=Q(status=EventRegistration.STATUS_REJECTED)),
        checked_in=Count("id", filter=Q(checked_in=True)),
    )
    totals["payments"] = _payment_breakdown(qs)
    return totals


def get_system_stats(now=None):
    """
    Admin dashboard: users, events, registrations, payments and the most
    recent users/events.
    """
    now = now or datetime_utils.now()
    User = get_user_model()

    users = User.objects.all()
    events = Event.objects.all()
    registrations = EventRegistration.objects.all()

    recent_users = list(
        users.order_by("-date_joined", "-id")
        .values("id", "username", "first_name", "last_name", "email", "role", "date_joined")[:RECENT_ACTIVITY_LIMIT]
    )
    recent_events = list(
        events.order_by("-created_at", "-id")
        .values("id", "title", "start_time", "status", "organizer_id", "organizer_name", "created_at")[:RECENT_ACTIVITY_LIMIT]
    )

    return {
        "users": {
            "total": users.count(),
            "active": users.filter(is_active=True).count(),
            "by_role": _counts_by(users, "role"),
        },
        "events": {
            "total": events.count(),
            "by_status": _counts_by(events, "status"),
            "upcoming": events.filter(status=Event.STATUS_APPROVED, start_time__gte=now).count(),
        },
        "registrations": {
            "total": registrations.count(),
            "by_status": _counts_by(registrations, "status"),
            "checked_in": registrations.filter(checked_in=True).count(),
        },
        "payments": _payment_breakdown(registrations),
        "recent_activity": {
            "users": recent_users,
            "events": recent_events,
        },
    }


def get_organizer_stats(user, now=None):
    """
    Aggregate stats for an organizer's own events.
    """
    now = now or datetime_utils.now()
    qs = Event.objects.filter(organizer=user)
    registrations = EventRegistration.objects.filter(event__in=qs)

    revenue = registrations.filter(payment_status=EventRegistration.PAYMENT_PAID).aggregate(
        total=Coalesce(Sum("amount_paid"), 0)
    )["total"]

    return {
        "total_events": qs.count(),
        "events_by_status": _counts_by(qs, "status"),
        "upcoming_events": qs.filter(start_time__gte=now).count(),
        "past_events": qs.filter(end_time__lt=now).count(),
        "total_registrations": registrations.count(),
        "active_registrations": registrations.filter(status__in=EventRegistration.ACTIVE_STATUSES).count(),
        "checked_in": registrations.filter(checked_in=True).count(),
        "revenue": revenue,
    }
