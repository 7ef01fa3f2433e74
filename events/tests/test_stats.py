from datetime import timedelta

from django.test import TestCase

from events.models import Event
from events.services import (
    RegistrationService,
    get_organizer_stats,
    get_registration_stats,
    get_system_stats,
)

from .helpers import FixedClock, RecordingMailer, make_event, make_user


class StatsTests(TestCase):
    def setUp(self):
        self.clock = FixedClock()
        self.registrations = RegistrationService(mailer=RecordingMailer(), clock=self.clock)

        self.admin = make_user("admin", role="admin")
        self.organizer = make_user("org", role="organizer")
        self.alice = make_user("alice")
        self.bob = make_user("bob")

        now = self.clock()
        self.free_event = make_event(self.organizer, now=now, title="Free")
        self.paid_event = make_event(self.organizer, now=now, title="Paid", registration_fee=200)
        make_event(
            make_user("org2", role="organizer"),
            now=now,
            title="Elsewhere",
            status=Event.STATUS_PENDING,
            start_time=now - timedelta(days=3),
            end_time=now - timedelta(days=2),
        )

        free = self.registrations.register(self.alice, {"event_id": self.free_event.id})
        self.registrations.check_in(self.organizer, free.id)
        paid = self.registrations.register(self.alice, {"event_id": self.paid_event.id})
        self.registrations.update_payment_status(self.organizer, paid.id, {"payment_status": "paid"})
        cancelled = self.registrations.register(self.bob, {"event_id": self.paid_event.id})
        self.registrations.cancel_registration(self.bob, cancelled.id)

    def test_system_stats(self):
        stats = get_system_stats(now=self.clock())

        self.assertEqual(stats["users"]["total"], 5)
        self.assertEqual(stats["users"]["by_role"], {"admin": 1, "organizer": 2, "participant": 2})
        self.assertEqual(stats["events"]["total"], 3)
        self.assertEqual(stats["events"]["by_status"], {"approved": 2, "pending": 1})
        self.assertEqual(stats["events"]["upcoming"], 2)
        self.assertEqual(stats["registrations"]["total"], 3)
        self.assertEqual(stats["registrations"]["by_status"], {"confirmed": 2, "rejected": 1})
        self.assertEqual(stats["registrations"]["checked_in"], 1)

        payments = {row["payment_status"]: row for row in stats["payments"]}
        self.assertEqual(payments["paid"]["count"], 1)
        self.assertEqual(payments["paid"]["total_amount"], 200)
        self.assertEqual(payments["free"]["count"], 1)
        self.assertEqual(len(stats["recent_activity"]["users"]), 5)
        self.assertEqual(stats["recent_activity"]["events"][0]["title"], "Elsewhere")

    def test_registration_stats(self):
        stats = get_registration_stats()
        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["confirmed"], 2)
        self.assertEqual(stats["cancelled"], 1)
        self.assertEqual(stats["checked_in"], 1)

    def test_organizer_stats(self):
        stats = get_organizer_stats(self.organizer, now=self.clock())
        self.assertEqual(stats["total_events"], 2)
        self.assertEqual(stats["upcoming_events"], 2)
        self.assertEqual(stats["past_events"], 0)
        self.assertEqual(stats["total_registrations"], 3)
        self.assertEqual(stats["active_registrations"], 2)
        self.assertEqual(stats["revenue"], 200)
