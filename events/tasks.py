# events/tasks.py
import logging

from celery import shared_task

from .intents import EVENT_APPROVED
from .models import Event
from .notifier import post_event_to_discord

logger = logging.getLogger('eventhub.events')


@shared_task
def post_event_to_discord_task(event_id: int):
    """
    Async wrapper for the approval announcement.
    """
    try:
        event = Event.objects.get(id=event_id)
    except Event.DoesNotExist:
        return False

    try:
        return post_event_to_discord(event)
    except Exception as exc:
        # Avoid crashing worker if the webhook fails
        logger.warning(f"Discord task failed: event={event_id}, error={exc}")
        return False


def dispatch_intents(intents):
    """Execute service intents that have a background counterpart."""
    for intent in intents or []:
        if intent.name == EVENT_APPROVED:
            post_event_to_discord_task.delay(intent.subject_id)
