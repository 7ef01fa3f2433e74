from django.contrib.auth.models import AnonymousUser
from django.test import TestCase

from core.exceptions import Forbidden, Unauthorized
from events import policies
from events.models import EventRegistration

from .helpers import make_event, make_user


class PolicyTableTests(TestCase):
    def setUp(self):
        self.admin = make_user("admin", role="admin")
        self.organizer = make_user("org", role="organizer")
        self.other_organizer = make_user("org2", role="organizer")
        self.participant = make_user("alice")
        self.stranger = make_user("bob")

        self.event = make_event(self.organizer)
        self.registration = EventRegistration.objects.create(
            event=self.event,
            user=self.participant,
            ticket_id="EVT-1-AAAAAAAAA",
            participant_name="alice",
            email="alice@example.com",
        )

    def test_only_organizers_and_admins_create_events(self):
        self.assertTrue(policies.can(self.organizer, policies.EVENT_CREATE))
        self.assertTrue(policies.can(self.admin, policies.EVENT_CREATE))
        self.assertFalse(policies.can(self.participant, policies.EVENT_CREATE))

    def test_event_update_is_organizer_of_that_event(self):
        self.assertTrue(policies.can(self.organizer, policies.EVENT_UPDATE, self.event))
        self.assertFalse(policies.can(self.other_organizer, policies.EVENT_UPDATE, self.event))
        self.assertTrue(policies.can(self.admin, policies.EVENT_UPDATE, self.event))

    def test_approval_is_admin_only(self):
        self.assertFalse(policies.can(self.organizer, policies.EVENT_APPROVE, self.event))
        self.assertTrue(policies.can(self.admin, policies.EVENT_APPROVE, self.event))

    def test_registration_relations(self):
        self.assertTrue(policies.can(self.participant, policies.REGISTRATION_VIEW, self.registration))
        self.assertTrue(policies.can(self.organizer, policies.REGISTRATION_VIEW, self.registration))
        self.assertFalse(policies.can(self.stranger, policies.REGISTRATION_VIEW, self.registration))

        self.assertTrue(policies.can(self.participant, policies.REGISTRATION_CANCEL, self.registration))
        self.assertFalse(policies.can(self.organizer, policies.REGISTRATION_CANCEL, self.registration))

        self.assertTrue(policies.can(self.organizer, policies.REGISTRATION_CHECK_IN, self.registration))
        self.assertFalse(policies.can(self.participant, policies.REGISTRATION_CHECK_IN, self.registration))

    def test_unknown_action_is_denied(self):
        self.assertFalse(policies.can(self.admin, "event.teleport", self.event))

    def test_require_raises_matching_kinds(self):
        with self.assertRaises(Unauthorized):
            policies.require(AnonymousUser(), policies.EVENT_CREATE)
        with self.assertRaises(Unauthorized):
            policies.require(None, policies.EVENT_CREATE)
        with self.assertRaises(Forbidden):
            policies.require(self.participant, policies.STATS_SYSTEM)
