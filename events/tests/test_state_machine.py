from django.test import SimpleTestCase

from core.exceptions import Conflict, Forbidden
from events import state_machine
from events.models import Event, EventRegistration


class ApprovalTransitionTests(SimpleTestCase):
    def test_pending_can_be_approved_or_rejected(self):
        event = Event(status=Event.STATUS_PENDING)
        self.assertTrue(state_machine.can_transition(event, Event.STATUS_APPROVED)[0])
        self.assertTrue(state_machine.can_transition(event, Event.STATUS_REJECTED)[0])

    def test_rejected_cannot_jump_to_approved(self):
        event = Event(status=Event.STATUS_REJECTED)
        ok, reason = state_machine.can_transition(event, Event.STATUS_APPROVED)
        self.assertFalse(ok)
        self.assertIn("rejected", reason)

    def test_unknown_status_is_refused(self):
        ok, reason = state_machine.can_transition(Event(status=Event.STATUS_DRAFT), "archived")
        self.assertFalse(ok)
        self.assertIn("Invalid status", reason)

    def test_transition_mutates_instance_only(self):
        event = Event(status=Event.STATUS_DRAFT)
        ok, _ = state_machine.transition(event, Event.STATUS_PENDING)
        self.assertTrue(ok)
        self.assertEqual(event.status, Event.STATUS_PENDING)


class PaymentTransitionTests(SimpleTestCase):
    def check(self, current, new):
        return state_machine.can_transition_payment(EventRegistration(payment_status=current), new)[0]

    def test_allowed_moves(self):
        self.assertTrue(self.check("pending", "paid"))
        self.assertTrue(self.check("pending", "failed"))
        self.assertTrue(self.check("failed", "pending"))
        self.assertTrue(self.check("paid", "refunded"))
        self.assertTrue(self.check("refunded", "free"))

    def test_refused_moves(self):
        self.assertFalse(self.check("paid", "pending"))
        self.assertFalse(self.check("refunded", "paid"))
        self.assertFalse(self.check("free", "paid"))
        self.assertFalse(self.check("pending", "bogus"))


class PatchGuardTests(SimpleTestCase):
    def event(self, lifecycle):
        return Event(pk=1, status=Event.STATUS_APPROVED, lifecycle_status=lifecycle)

    def test_draft_event_is_fully_editable(self):
        state_machine.check_patch_allowed(
            self.event(Event.LIFECYCLE_DRAFT), ["title", "venue", "custom_fields"], False, False
        )

    def test_published_event_allows_only_whitelist(self):
        event = self.event(Event.LIFECYCLE_PUBLISHED)
        state_machine.check_patch_allowed(event, ["description", "capacity"], False, False)

        with self.assertRaises(Forbidden) as ctx:
            state_machine.check_patch_allowed(event, ["title"], False, False)
        self.assertEqual(ctx.exception.reason, "FieldLocked")

    def test_ongoing_event_allows_closing_only(self):
        event = self.event(Event.LIFECYCLE_ONGOING)
        state_machine.check_patch_allowed(event, ["is_closed"], False, False)
        with self.assertRaises(Forbidden):
            state_machine.check_patch_allowed(event, ["description"], False, False)

    def test_admin_bypasses_lifecycle_lock(self):
        state_machine.check_patch_allowed(self.event(Event.LIFECYCLE_COMPLETED), ["title"], True, False)

    def test_custom_fields_locked_after_first_registration_even_for_admin(self):
        with self.assertRaises(Conflict) as ctx:
            state_machine.check_patch_allowed(self.event(Event.LIFECYCLE_DRAFT), ["custom_fields"], True, True)
        self.assertEqual(ctx.exception.message, state_machine.FORM_LOCKED_MESSAGE)

    def test_organizer_and_counter_never_patchable(self):
        for field in ("organizer", "registered"):
            with self.assertRaises(Forbidden):
                state_machine.check_patch_allowed(self.event(Event.LIFECYCLE_DRAFT), [field], True, False)
