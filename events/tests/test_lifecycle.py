from datetime import timedelta

from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from events.lifecycle import compute_lifecycle, resolve_lifecycle, sync_lifecycle
from events.models import Event

from .helpers import make_event, make_user


class ComputeLifecycleTests(SimpleTestCase):
    def setUp(self):
        self.now = timezone.now()

    def event(self, **fields):
        defaults = {
            "status": Event.STATUS_APPROVED,
            "lifecycle_status": Event.LIFECYCLE_PUBLISHED,
            "start_time": self.now + timedelta(hours=2),
            "end_time": self.now + timedelta(hours=4),
        }
        defaults.update(fields)
        return Event(**defaults)

    def test_future_event_is_published(self):
        self.assertEqual(compute_lifecycle(self.event(), self.now), Event.LIFECYCLE_PUBLISHED)

    def test_running_event_is_ongoing(self):
        event = self.event(start_time=self.now - timedelta(hours=1))
        self.assertEqual(compute_lifecycle(event, self.now), Event.LIFECYCLE_ONGOING)

    def test_start_and_end_bounds_are_ongoing(self):
        event = self.event(start_time=self.now, end_time=self.now)
        self.assertEqual(compute_lifecycle(event, self.now), Event.LIFECYCLE_ONGOING)

    def test_ended_event_is_completed(self):
        event = self.event(
            start_time=self.now - timedelta(hours=4),
            end_time=self.now - timedelta(seconds=1),
        )
        self.assertEqual(compute_lifecycle(event, self.now), Event.LIFECYCLE_COMPLETED)

    def test_closed_flag_wins_over_everything(self):
        event = self.event(is_closed=True, status=Event.STATUS_DRAFT)
        self.assertEqual(compute_lifecycle(event, self.now), Event.LIFECYCLE_CLOSED)

    def test_draft_status_stays_draft(self):
        event = self.event(status=Event.STATUS_DRAFT)
        self.assertEqual(compute_lifecycle(event, self.now), Event.LIFECYCLE_DRAFT)

    def test_non_draft_never_regresses_to_draft(self):
        # Approval status went back to draft but the event was already public
        event = self.event(status=Event.STATUS_DRAFT, lifecycle_status=Event.LIFECYCLE_PUBLISHED)
        self.assertEqual(resolve_lifecycle(event, self.now), Event.LIFECYCLE_PUBLISHED)


class SyncLifecycleTests(TestCase):
    def setUp(self):
        self.now = timezone.now()
        self.organizer = make_user("org", role="organizer")

    def test_sync_persists_change(self):
        event = make_event(
            self.organizer,
            now=self.now,
            start_time=self.now - timedelta(hours=1),
            end_time=self.now + timedelta(hours=1),
        )
        sync_lifecycle(event, self.now)

        event.refresh_from_db()
        self.assertEqual(event.lifecycle_status, Event.LIFECYCLE_ONGOING)

    def test_sync_is_noop_when_unchanged(self):
        event = make_event(self.organizer, now=self.now)
        with self.assertNumQueries(0):
            sync_lifecycle(event, self.now)
        self.assertEqual(event.lifecycle_status, Event.LIFECYCLE_PUBLISHED)
