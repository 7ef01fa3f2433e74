# events/notifier.py
import logging

import requests
from django.conf import settings

from .emails import build_event_url

logger = logging.getLogger('eventhub.events')

DISCORD_TIMEOUT_SECONDS = 10
DESCRIPTION_PREVIEW_LENGTH = 180


def _date_label(value, fallback="TBD"):
    if not value:
        return fallback
    return value.strftime("%m/%d/%Y")


def build_event_message(event) -> str:
    """Plain-text announcement (Discord markdown) for an approved event."""
    fee = f"₹{event.registration_fee}" if event.registration_fee else "Free"
    start = _date_label(event.start_time)
    end = _date_label(event.end_time, fallback=start)
    deadline = _date_label(event.registration_deadline)
    event_url = build_event_url(event)

    if event.venue:
        where = f"Venue: {event.venue}"
    elif event.location:
        where = f"Location: {event.location}"
    else:
        where = None

    lines = [
        f"**{event.title}**",
        event.description[:DESCRIPTION_PREVIEW_LENGTH] if event.description else None,
        f"Type: {event.get_event_type_display()}",
        f"Eligibility: {event.get_eligibility_display()}",
        f"Fee: {fee}",
        f"Dates: {start} - {end}",
        f"Registration Deadline: {deadline}",
        where,
        f"More: {event_url}" if event_url else None,
    ]
    return "\n".join(line for line in lines if line)


class DiscordNotifier:
    """
    Best-effort webhook poster. No webhook configured means nothing is sent.
    """

    def __init__(self, webhook_url=None, session=None):
        self.webhook_url = webhook_url if webhook_url is not None else getattr(settings, "DISCORD_WEBHOOK_URL", "")
        self.session = session or requests

    def post_event(self, event) -> bool:
        if not self.webhook_url:
            return False

        content = build_event_message(event)
        try:
            response = self.session.post(
                self.webhook_url,
                json={"content": content},
                timeout=DISCORD_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning(f"Discord post failed: event={event.pk}, error={exc}")
            return False

        logger.info(f"Discord post sent: event={event.pk}")
        return True


def post_event_to_discord(event) -> bool:
    return DiscordNotifier().post_event(event)
