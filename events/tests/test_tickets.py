import json
import re

from django.core import mail
from django.test import TestCase

from events.emails import TicketMailer
from events.models import EventRegistration
from events.tickets import (
    DATA_URL_PREFIX,
    build_ticket_payload,
    generate_ticket_id,
    issue_ticket,
    png_from_data_url,
    render_qr_data_url,
    serialize_ticket_payload,
    ticket_id_from_scan,
)

from .helpers import FixedClock, RecordingMailer, make_event, make_user


TICKET_ID_RE = re.compile(r"^EVT-\d+-[A-Z0-9]{9}$")


class TicketIdTests(TestCase):
    def test_format_and_clock_prefix(self):
        clock = FixedClock()
        ticket_id = generate_ticket_id(clock)
        self.assertRegex(ticket_id, TICKET_ID_RE)
        self.assertEqual(ticket_id.split("-")[1], str(int(clock.moment.timestamp() * 1000)))

    def test_ids_differ(self):
        self.assertNotEqual(generate_ticket_id(), generate_ticket_id())

    def test_scan_accepts_payload_or_raw_id(self):
        self.assertEqual(ticket_id_from_scan('{"ticketId":"EVT-1-ABC"}'), "EVT-1-ABC")
        self.assertEqual(ticket_id_from_scan("  EVT-1-ABC "), "EVT-1-ABC")
        self.assertEqual(ticket_id_from_scan("{broken"), "")


class IssueTicketTests(TestCase):
    def setUp(self):
        self.organizer = make_user("org", role="organizer")
        self.participant = make_user("alice", first_name="Alice", last_name="Liddell")
        self.event = make_event(self.organizer)
        self.registration = EventRegistration.objects.create(
            event=self.event,
            user=self.participant,
            ticket_id="EVT-1700000000000-ABCDEFGH1",
            participant_name="Alice Liddell",
            email="alice@example.com",
            status=EventRegistration.STATUS_CONFIRMED,
            payment_status=EventRegistration.PAYMENT_FREE,
        )

    def test_payload_key_order(self):
        payload = build_ticket_payload(self.registration, self.event)
        self.assertEqual(
            list(payload.keys()),
            ["ticketId", "registrationId", "eventId", "eventTitle", "participantName", "participantEmail"],
        )
        encoded = serialize_ticket_payload(payload)
        self.assertTrue(encoded.startswith('{"ticketId":"EVT-1700000000000-ABCDEFGH1","registrationId":'))
        self.assertNotIn('": ', encoded)
        self.assertNotIn(", \"", encoded)

    def test_issue_writes_qr_and_mails_once(self):
        mailer = RecordingMailer()
        issue_ticket(self.registration, self.event, mailer=mailer)
        issue_ticket(self.registration, self.event, mailer=mailer)

        self.registration.refresh_from_db()
        self.assertTrue(self.registration.ticket_qr.startswith(DATA_URL_PREFIX))
        self.assertIsNotNone(self.registration.ticket_issued_at)
        self.assertEqual(len(mailer.sent), 1)
        self.assertEqual(mailer.sent[0]["ticket_id"], self.registration.ticket_id)

    def test_stale_copy_does_not_reissue(self):
        mailer = RecordingMailer()
        stale = EventRegistration.objects.get(pk=self.registration.pk)
        issue_ticket(self.registration, self.event, mailer=mailer)
        first_qr = EventRegistration.objects.get(pk=self.registration.pk).ticket_qr

        issue_ticket(stale, self.event, mailer=mailer)

        self.assertEqual(len(mailer.sent), 1)
        self.assertEqual(stale.ticket_qr, first_qr)

    def test_mail_failure_keeps_ticket(self):
        issue_ticket(self.registration, self.event, mailer=RecordingMailer(fail=True))
        self.registration.refresh_from_db()
        self.assertTrue(self.registration.has_ticket)


class TicketMailerTests(TestCase):
    def test_mail_has_inline_qr(self):
        data_url = render_qr_data_url(json.dumps({"ticketId": "EVT-1-X"}))
        sent = TicketMailer().send_ticket(
            to="alice@example.com",
            event_title="Hack Night",
            ticket_id="EVT-1-X",
            qr_data_url=data_url,
            participant_name="Alice",
        )

        self.assertTrue(sent)
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.subject, "Your Ticket: Hack Night")
        self.assertIn("Ticket ID: EVT-1-X", message.body)
        html, mimetype = message.alternatives[0]
        self.assertEqual(mimetype, "text/html")
        self.assertIn("cid:ticket-qr", html)

        image = message.attachments[0]
        self.assertEqual(image["Content-ID"], "<ticket-qr>")
        self.assertEqual(image.get_payload(decode=True), png_from_data_url(data_url))

    def test_missing_recipient_skips(self):
        self.assertFalse(TicketMailer().send_ticket(to="", event_title="x", ticket_id="t", qr_data_url=""))
        self.assertEqual(len(mail.outbox), 0)
