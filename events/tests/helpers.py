from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from events.models import Event, MerchandiseVariant


User = get_user_model()


class FixedClock:
    """Callable clock pinned to a moment; `advance` moves it forward."""

    def __init__(self, moment=None):
        self.moment = moment or timezone.now()

    def __call__(self):
        return self.moment

    def advance(self, **kwargs):
        self.moment = self.moment + timedelta(**kwargs)
        return self.moment


class RecordingMailer:
    """Stands in for TicketMailer and keeps every call."""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send_ticket(self, **kwargs):
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append(kwargs)
        return True


def make_user(username, role="participant", participant_type=None, **extra):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="pass1234",
        role=role,
        participant_type=participant_type,
        **extra,
    )


def make_event(organizer, now=None, **fields):
    """Approved, published event starting tomorrow unless overridden."""
    now = now or timezone.now()
    defaults = {
        "organizer": organizer,
        "organizer_name": organizer.display_name,
        "title": "Hack Night",
        "description": "Build things",
        "start_time": now + timedelta(days=1),
        "end_time": now + timedelta(days=1, hours=4),
        "capacity": 10,
        "status": Event.STATUS_APPROVED,
        "lifecycle_status": Event.LIFECYCLE_PUBLISHED,
    }
    defaults.update(fields)
    return Event.objects.create(**defaults)


def make_merch_event(organizer, now=None, variants=None, **fields):
    fields.setdefault("event_type", Event.TYPE_MERCHANDISE)
    fields.setdefault("title", "Club Hoodie")
    fields.setdefault("merchandise_item_name", "Hoodie")
    fields.setdefault("registration_fee", 500)
    event = make_event(organizer, now=now, **fields)
    for variant in variants or []:
        MerchandiseVariant.objects.create(event=event, **variant)
    return event
