# events/policies.py
"""
Centralized EventHub policy layer.

Authorization is one table: action -> the roles/relations that may perform
it. `can(actor, action, subject)` is a pure predicate over that table; the
services call `require(...)` which raises the matching error kind.

Grants:
    role:<name>       the actor's global role (participant/organizer/admin)
    owner             the actor is the registration's user
    event_organizer   the actor organizes the subject event (or the event of
                      the subject registration)
"""
from typing import Optional, Set
import logging

from core.exceptions import Forbidden, Unauthorized
from .models import Event, EventRegistration

logger = logging.getLogger('eventhub.events')


ADMIN = "role:admin"
ORGANIZER_ROLE = "role:organizer"
OWNER = "owner"
EVENT_ORGANIZER = "event_organizer"

# Event
EVENT_CREATE = "event.create"
EVENT_UPDATE = "event.update"
EVENT_DELETE = "event.delete"
EVENT_APPROVE = "event.approve"
EVENT_PUBLISH = "event.publish"
EVENT_VIEW_REGISTRATIONS = "event.view_registrations"
EVENT_VIEW_STATS = "event.view_stats"

# Registration
REGISTRATION_VIEW = "registration.view"
REGISTRATION_CANCEL = "registration.cancel"
REGISTRATION_UPDATE_STATUS = "registration.update_status"
REGISTRATION_UPDATE_PAYMENT = "registration.update_payment"
REGISTRATION_SUBMIT_PROOF = "registration.submit_payment_proof"
REGISTRATION_CHECK_IN = "registration.check_in"

# Dashboards
STATS_SYSTEM = "stats.system"
STATS_ORGANIZER = "stats.organizer"


POLICY_TABLE = {
    EVENT_CREATE: frozenset({ORGANIZER_ROLE, ADMIN}),
    EVENT_UPDATE: frozenset({EVENT_ORGANIZER, ADMIN}),
    EVENT_DELETE: frozenset({EVENT_ORGANIZER, ADMIN}),
    EVENT_APPROVE: frozenset({ADMIN}),
    EVENT_PUBLISH: frozenset({EVENT_ORGANIZER, ADMIN}),
    EVENT_VIEW_REGISTRATIONS: frozenset({EVENT_ORGANIZER, ADMIN}),
    EVENT_VIEW_STATS: frozenset({EVENT_ORGANIZER, ADMIN}),

    REGISTRATION_VIEW: frozenset({OWNER, EVENT_ORGANIZER, ADMIN}),
    REGISTRATION_CANCEL: frozenset({OWNER}),
    REGISTRATION_UPDATE_STATUS: frozenset({OWNER, EVENT_ORGANIZER, ADMIN}),
    REGISTRATION_UPDATE_PAYMENT: frozenset({EVENT_ORGANIZER, ADMIN}),
    REGISTRATION_SUBMIT_PROOF: frozenset({OWNER}),
    REGISTRATION_CHECK_IN: frozenset({EVENT_ORGANIZER, ADMIN}),

    STATS_SYSTEM: frozenset({ADMIN}),
    STATS_ORGANIZER: frozenset({ORGANIZER_ROLE, ADMIN}),
}

DENIAL_MESSAGES = {
    EVENT_CREATE: "Only organizers and admins can create events",
    EVENT_UPDATE: "You do not have permission to edit this event",
    EVENT_DELETE: "You do not have permission to delete this event",
    EVENT_APPROVE: "Only admins can approve or reject events",
    EVENT_PUBLISH: "You do not have permission to publish this event",
    EVENT_VIEW_REGISTRATIONS: "You do not have permission to view registrations for this event",
    EVENT_VIEW_STATS: "You do not have permission to view stats for this event",
    REGISTRATION_VIEW: "You do not have permission to view this registration",
    REGISTRATION_CANCEL: "You can only cancel your own registration",
    REGISTRATION_UPDATE_STATUS: "You do not have permission to update this registration",
    REGISTRATION_UPDATE_PAYMENT: "Only the event organizer or an admin can update payments",
    REGISTRATION_SUBMIT_PROOF: "You can only submit payment proof for your own registration",
    REGISTRATION_CHECK_IN: "Only the event organizer or an admin can check in participants",
    STATS_SYSTEM: "Admin access required",
    STATS_ORGANIZER: "Organizer access required",
}


def is_authenticated(actor) -> bool:
    return bool(actor is not None and getattr(actor, "is_authenticated", False))


def grants_for(actor, subject=None) -> Set[str]:
    """All roles/relations the actor holds relative to the subject."""
    if not is_authenticated(actor):
        return set()

    grants = {f"role:{actor.role}"}
    if actor.is_admin:
        grants.add(ADMIN)

    if isinstance(subject, Event):
        if subject.organizer_id == actor.id:
            grants.add(EVENT_ORGANIZER)
    elif isinstance(subject, EventRegistration):
        if subject.user_id == actor.id:
            grants.add(OWNER)
        if subject.event.organizer_id == actor.id:
            grants.add(EVENT_ORGANIZER)

    return grants


def can(actor, action: str, subject: Optional[object] = None) -> bool:
    """Pure predicate: (actor, action, subject) -> allowed."""
    allowed = POLICY_TABLE.get(action)
    if not allowed:
        return False
    return bool(grants_for(actor, subject) & allowed)


def require(actor, action: str, subject: Optional[object] = None) -> None:
    if not is_authenticated(actor):
        raise Unauthorized()
    if not can(actor, action, subject):
        logger.warning(
            f"Policy denied: action={action}, actor={getattr(actor, 'id', None)}, "
            f"subject={type(subject).__name__}:{getattr(subject, 'pk', None)}"
        )
        raise Forbidden(DENIAL_MESSAGES.get(action))
