from datetime import datetime
from unittest import mock

import requests
from django.test import TestCase, override_settings
from django.utils import timezone

from events.intents import Intent, EVENT_APPROVED
from events.notifier import DiscordNotifier, build_event_message
from events.tasks import dispatch_intents, post_event_to_discord_task

from .helpers import make_event, make_user


@override_settings(FRONTEND_URL="https://eventhub.example/")
class EventMessageTests(TestCase):
    def setUp(self):
        organizer = make_user("org", role="organizer")
        start = timezone.make_aware(datetime(2025, 3, 14, 10, 0))
        self.event = make_event(
            organizer,
            title="Hack Night",
            description="x" * 300,
            start_time=start,
            end_time=start,
            registration_deadline=start,
            registration_fee=150,
            venue="Main Hall",
            eligibility="iiit",
        )

    def test_message_lines(self):
        message = build_event_message(self.event)
        lines = message.splitlines()

        self.assertEqual(lines[0], "**Hack Night**")
        self.assertEqual(lines[1], "x" * 180)
        self.assertIn("Type: Event", lines)
        self.assertIn("Fee: ₹150", lines)
        self.assertIn("Dates: 03/14/2025 - 03/14/2025", lines)
        self.assertIn("Venue: Main Hall", lines)
        self.assertEqual(lines[-1], f"More: https://eventhub.example/event/{self.event.pk}")

    def test_free_event_label(self):
        self.event.registration_fee = 0
        self.assertIn("Fee: Free", build_event_message(self.event))


class DiscordNotifierTests(TestCase):
    def setUp(self):
        self.event = make_event(make_user("org", role="organizer"))

    def test_no_webhook_skips(self):
        session = mock.Mock()
        self.assertFalse(DiscordNotifier(webhook_url="", session=session).post_event(self.event))
        session.post.assert_not_called()

    def test_posts_content(self):
        session = mock.Mock()
        notifier = DiscordNotifier(webhook_url="https://discord.test/hook", session=session)

        self.assertTrue(notifier.post_event(self.event))
        url = session.post.call_args.args[0]
        kwargs = session.post.call_args.kwargs
        self.assertEqual(url, "https://discord.test/hook")
        self.assertTrue(kwargs["json"]["content"].startswith("**Hack Night**"))
        self.assertEqual(kwargs["timeout"], 10)

    def test_failure_is_swallowed(self):
        session = mock.Mock()
        session.post.side_effect = requests.ConnectionError("down")
        notifier = DiscordNotifier(webhook_url="https://discord.test/hook", session=session)
        self.assertFalse(notifier.post_event(self.event))

    @override_settings(DISCORD_WEBHOOK_URL="https://discord.test/hook")
    def test_task_posts_through_requests(self):
        with mock.patch("events.notifier.requests.post") as post:
            post.return_value.raise_for_status.return_value = None
            self.assertTrue(post_event_to_discord_task(self.event.id))
        post.assert_called_once()

    def test_task_with_missing_event(self):
        self.assertFalse(post_event_to_discord_task(999))

    def test_dispatch_only_queues_approval(self):
        with mock.patch("events.tasks.post_event_to_discord_task") as task:
            dispatch_intents([Intent(EVENT_APPROVED, self.event.id), Intent("registration.created", 1)])
        task.delay.assert_called_once_with(self.event.id)
