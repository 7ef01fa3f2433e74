from datetime import timedelta
from unittest import mock

from django.core import mail
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from events.models import Event, EventRegistration
from events.state_machine import FORM_LOCKED_MESSAGE

from .helpers import make_event, make_user


class ApiTestCase(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = make_user("admin", role="admin")
        self.organizer = make_user("org", role="organizer")
        self.alice = make_user("alice", participant_type="iiit")
        self.event = make_event(self.organizer)

    def auth(self, user):
        self.client.force_authenticate(user=user)


class EnvelopeTests(ApiTestCase):
    def test_health_is_public(self):
        resp = self.client.get("/api/health/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.json()["success"])
        self.assertEqual(resp.json()["data"]["status"], "ok")

    def test_anonymous_gets_unauthorized(self):
        resp = self.client.get("/api/registrations/mine/")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["kind"], "Unauthorized")

    def test_validation_errors_are_invalid(self):
        self.auth(self.alice)
        resp = self.client.post("/api/registrations/", {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        body = resp.json()
        self.assertEqual(body["kind"], "Invalid")
        self.assertIn("event_id", body["errors"])

    def test_unknown_event_is_not_found(self):
        self.auth(self.alice)
        resp = self.client.get("/api/events/999/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.json()["kind"], "NotFound")


class PublicBrowsingTests(ApiTestCase):
    def test_anonymous_listing_shows_approved_events_of_every_eligibility(self):
        iiit_only = make_event(self.organizer, title="Campus Quiz", eligibility=Event.ELIGIBILITY_IIIT)
        outside_only = make_event(self.organizer, title="Open Meetup", eligibility=Event.ELIGIBILITY_NON_IIIT)
        make_event(self.organizer, title="Awaiting Review", status=Event.STATUS_PENDING)

        resp = self.client.get("/api/events/")

        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        ids = {item["id"] for item in resp.json()["data"]}
        self.assertEqual(ids, {self.event.id, iiit_only.id, outside_only.id})

    def test_anonymous_detail(self):
        pending = make_event(self.organizer, title="Awaiting Review", status=Event.STATUS_PENDING)

        resp = self.client.get(f"/api/events/{self.event.id}/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        self.assertEqual(resp.json()["data"]["title"], "Hack Night")

        resp = self.client.get(f"/api/events/{pending.id}/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_anonymous_writes_need_login(self):
        resp = self.client.post("/api/events/", {"title": "Nope"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

        resp = self.client.delete(f"/api/events/{self.event.id}/")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertTrue(Event.objects.filter(pk=self.event.id).exists())


class RegistrationApiTests(ApiTestCase):
    def test_register_free_event_sends_ticket(self):
        self.auth(self.alice)
        resp = self.client.post("/api/registrations/", {"event_id": self.event.id}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.content)
        body = resp.json()
        self.assertEqual(body["message"], "Registration confirmed")
        self.assertEqual(body["data"]["status"], "confirmed")
        self.assertEqual(body["data"]["payment_status"], "free")
        self.assertTrue(body["data"]["has_ticket"])

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Your Ticket: Hack Night")
        self.assertIn(body["data"]["ticket_id"], mail.outbox[0].body)

    def test_duplicate_is_conflict(self):
        self.auth(self.alice)
        self.client.post("/api/registrations/", {"event_id": self.event.id}, format="json")
        resp = self.client.post("/api/registrations/", {"event_id": self.event.id}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["reason"], "AlreadyRegistered")

    def test_paid_flow_through_endpoints(self):
        paid = make_event(self.organizer, title="Paid Talk", registration_fee=100)

        self.auth(self.alice)
        resp = self.client.post("/api/registrations/", {"event_id": paid.id}, format="json")
        self.assertEqual(resp.json()["message"], "Registration pending payment")
        registration_id = resp.json()["data"]["id"]

        resp = self.client.put(
            f"/api/registrations/{registration_id}/payment-proof/",
            {"payment_screenshot": "proofs/alice.png"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

        resp = self.client.put(
            f"/api/registrations/{registration_id}/payment/", {"payment_status": "Paid"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.auth(self.organizer)
        resp = self.client.put(
            f"/api/registrations/{registration_id}/payment/",
            {"payment_status": "Paid", "transaction_id": "TX9"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        self.assertEqual(resp.json()["data"]["status"], "confirmed")
        self.assertEqual(resp.json()["data"]["amount_paid"], 100)
        self.assertEqual(len(mail.outbox), 1)

        resp = self.client.post(
            "/api/registrations/checkin/",
            {"ticket": resp.json()["data"]["ticket_id"], "event_id": paid.id},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        self.assertTrue(resp.json()["data"]["checked_in"])

    def test_event_registrations_with_stats(self):
        self.auth(self.alice)
        self.client.post("/api/registrations/", {"event_id": self.event.id}, format="json")

        resp = self.client.get(f"/api/registrations/event/{self.event.id}/")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.auth(self.organizer)
        resp = self.client.get(f"/api/registrations/event/{self.event.id}/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["count"], 1)
        self.assertEqual(resp.json()["stats"]["confirmed"], 1)

    def test_cancel_then_status(self):
        self.auth(self.alice)
        registration_id = self.client.post(
            "/api/registrations/", {"event_id": self.event.id}, format="json"
        ).json()["data"]["id"]

        resp = self.client.put(f"/api/registrations/{registration_id}/cancel/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["data"]["status"], "rejected")

        resp = self.client.put(f"/api/registrations/{registration_id}/cancel/")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.json()["reason"], "AlreadyCancelled")

        self.auth(self.organizer)
        resp = self.client.put(
            f"/api/registrations/{registration_id}/status/", {"status": "Approved"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        self.assertEqual(resp.json()["data"]["status"], "confirmed")

    def test_my_registrations(self):
        self.auth(self.alice)
        self.client.post("/api/registrations/", {"event_id": self.event.id}, format="json")
        resp = self.client.get("/api/registrations/mine/")
        self.assertEqual(resp.json()["count"], 1)
        self.assertEqual(resp.json()["data"][0]["event_title"], "Hack Night")


class EventApiTests(ApiTestCase):
    def test_create_event(self):
        start = timezone.now() + timedelta(days=5)
        payload = {
            "title": "  Robotics Meetup ",
            "description": "<p>Bots</p><script>alert(1)</script>",
            "start_time": start.isoformat(),
            "end_time": (start + timedelta(hours=2)).isoformat(),
            "eligibility": "IIIT + External",
            "event_type": "Workshop",
        }

        self.auth(self.alice)
        resp = self.client.post("/api/events/", payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.auth(self.organizer)
        resp = self.client.post("/api/events/", payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.content)
        data = resp.json()["data"]
        self.assertEqual(data["title"], "Robotics Meetup")
        self.assertEqual(data["description"], "<p>Bots</p>alert(1)")
        self.assertEqual(data["eligibility"], "all")
        self.assertEqual(data["event_type"], "workshop")
        self.assertEqual(data["status"], "draft")
        self.assertEqual(data["organizer"], self.organizer.id)
        self.assertEqual(data["organizer_detail"]["username"], "org")

    def test_list_is_paginated(self):
        self.auth(self.alice)
        resp = self.client.get("/api/events/", {"search": "hack", "limit": 5})
        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        body = resp.json()
        self.assertEqual(body["count"], 1)
        self.assertEqual(body["pagination"]["limit"], 5)
        self.assertFalse(body["pagination"]["has_next"])

    def test_trending_flag(self):
        self.auth(self.alice)
        resp = self.client.get("/api/events/", {"trending": "true"})
        self.assertTrue(resp.json()["trending"])

    def test_form_lock_is_conflict(self):
        self.auth(self.alice)
        self.client.post("/api/registrations/", {"event_id": self.event.id}, format="json")

        self.auth(self.organizer)
        resp = self.client.patch(f"/api/events/{self.event.id}/", {"custom_fields": []}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["message"], FORM_LOCKED_MESSAGE)

    def test_approval_announces_on_discord(self):
        pending = make_event(self.organizer, title="Pending Event", status=Event.STATUS_PENDING)

        self.auth(self.organizer)
        resp = self.client.put(f"/api/events/{pending.id}/approve/", {"status": "approved"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.auth(self.admin)
        with mock.patch("events.tasks.post_event_to_discord", return_value=True) as post:
            resp = self.client.put(f"/api/events/{pending.id}/approve/", {"status": "Approved"}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_200_OK, resp.content)
        self.assertEqual(resp.json()["intents"], ["event.approved"])
        self.assertEqual(resp.json()["data"]["status"], "approved")
        post.assert_called_once()
        self.assertEqual(post.call_args.args[0].pk, pending.pk)

    def test_delete(self):
        self.auth(self.organizer)
        resp = self.client.delete(f"/api/events/{self.event.id}/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(Event.objects.filter(pk=self.event.id).exists())


class StatsApiTests(ApiTestCase):
    def test_admin_dashboard_is_admin_only(self):
        self.auth(self.alice)
        self.assertEqual(self.client.get("/api/admin/stats/").status_code, status.HTTP_403_FORBIDDEN)

        self.auth(self.admin)
        resp = self.client.get("/api/admin/stats/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["data"]["events"]["total"], 1)

        resp = self.client.get("/api/admin/registrations/stats/")
        self.assertEqual(resp.json()["data"]["total"], 0)

    def test_organizer_and_event_stats(self):
        EventRegistration.objects.create(
            event=self.event,
            user=self.alice,
            ticket_id="EVT-1-AAAAAAAAA",
            participant_name="alice",
            email="alice@example.com",
        )

        self.auth(self.organizer)
        resp = self.client.get("/api/organizer/stats/")
        self.assertEqual(resp.json()["data"]["total_events"], 1)
        self.assertEqual(resp.json()["data"]["total_registrations"], 1)

        resp = self.client.get(f"/api/events/{self.event.id}/stats/")
        self.assertEqual(resp.json()["data"]["pending"], 1)
