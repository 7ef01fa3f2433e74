"""
Side-effect intents returned by the services.

A service commits state and returns what should happen next; the API layer
decides how to execute it (e.g. queue a Celery task). Names follow the
`<subject>.<verb>` convention.
"""
from dataclasses import dataclass


EVENT_APPROVED = "event.approved"


@dataclass(frozen=True)
class Intent:
    name: str
    subject_id: int


def event_approved(event) -> Intent:
    return Intent(EVENT_APPROVED, event.pk)
