# events/state_machine.py
"""
State machines for EventHub.

Approval (admin-owned):
    draft → pending → approved
      │        └────→ rejected → pending (resubmit)
      └→ approved (admin shortcut)

Payment (per registration):
    pending → paid | failed | refunded | free
    failed  → pending | paid | free
    paid    → refunded | free
    refunded → free

Plus the editability guard applied to event patches.

Any transition not in the tables is rejected.
"""
from typing import Iterable, Tuple
import logging

from core.exceptions import Conflict, Forbidden, Invalid
from .models import Event, EventRegistration

logger = logging.getLogger('eventhub.events')


# Valid approval transitions: from_status -> list of allowed to_statuses
VALID_TRANSITIONS = {
    Event.STATUS_DRAFT: [Event.STATUS_PENDING, Event.STATUS_APPROVED, Event.STATUS_REJECTED],
    Event.STATUS_PENDING: [Event.STATUS_APPROVED, Event.STATUS_REJECTED, Event.STATUS_DRAFT],
    Event.STATUS_APPROVED: [Event.STATUS_REJECTED, Event.STATUS_PENDING],  # Can unpublish
    Event.STATUS_REJECTED: [Event.STATUS_PENDING, Event.STATUS_DRAFT],  # Can resubmit
}

PAYMENT_TRANSITIONS = {
    EventRegistration.PAYMENT_PENDING: [
        EventRegistration.PAYMENT_PAID,
        EventRegistration.PAYMENT_FAILED,
        EventRegistration.PAYMENT_REFUNDED,
        EventRegistration.PAYMENT_FREE,
    ],
    EventRegistration.PAYMENT_FAILED: [
        EventRegistration.PAYMENT_PENDING,
        EventRegistration.PAYMENT_PAID,
        EventRegistration.PAYMENT_FREE,
    ],
    EventRegistration.PAYMENT_PAID: [
        EventRegistration.PAYMENT_REFUNDED,
        EventRegistration.PAYMENT_FREE,
    ],
    EventRegistration.PAYMENT_REFUNDED: [EventRegistration.PAYMENT_FREE],
    EventRegistration.PAYMENT_FREE: [],
}

# Fields a non-admin may touch once the event left draft
PUBLISHED_EDITABLE_FIELDS = frozenset({
    "description", "registration_deadline", "capacity", "max_participants", "is_closed",
})
RUNNING_EDITABLE_FIELDS = frozenset({"lifecycle_status", "is_closed"})

EDITABLE_FIELDS_BY_LIFECYCLE = {
    Event.LIFECYCLE_PUBLISHED: PUBLISHED_EDITABLE_FIELDS,
    Event.LIFECYCLE_ONGOING: RUNNING_EDITABLE_FIELDS,
    Event.LIFECYCLE_COMPLETED: RUNNING_EDITABLE_FIELDS,
    Event.LIFECYCLE_CLOSED: RUNNING_EDITABLE_FIELDS,
}

FORBIDDEN_PATCH_FIELDS = frozenset({"organizer", "organizer_id", "registered"})

FORM_LOCKED_MESSAGE = "Registration form is locked after first registration"


def can_transition(event: Event, new_status: str) -> Tuple[bool, str]:
    """
    Check if an event can transition to a new approval status.

    Returns (can_transition: bool, reason: str)
    """
    current_status = event.status

    if new_status == current_status:
        return True, "Same status"

    if new_status not in dict(Event.STATUS_CHOICES):
        return False, f"Invalid status: {new_status}"

    allowed = VALID_TRANSITIONS.get(current_status, [])

    if new_status not in allowed:
        return False, f"Cannot transition from '{current_status}' to '{new_status}'"

    return True, ""


def transition(event: Event, new_status: str, actor=None) -> Tuple[bool, str]:
    """
    Attempt to transition an event to a new approval status. The caller
    saves the event together with its other changes.

    Returns (success: bool, message: str)
    """
    can, reason = can_transition(event, new_status)

    if not can:
        logger.warning(
            f"Invalid state transition attempted: event={event.id}, "
            f"from={event.status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}. "
            f"Reason: {reason}"
        )
        return False, reason

    old_status = event.status
    event.status = new_status

    logger.info(
        f"Event state transition: event={event.id}, "
        f"from={old_status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}"
    )

    return True, f"Transitioned from '{old_status}' to '{new_status}'"


def can_transition_payment(registration: EventRegistration, new_status: str) -> Tuple[bool, str]:
    """Same shape as `can_transition`, over the payment table."""
    current = registration.payment_status

    if new_status == current:
        return True, "Same status"

    if new_status not in dict(EventRegistration.PAYMENT_CHOICES):
        return False, f"Invalid payment status: {new_status}"

    if new_status not in PAYMENT_TRANSITIONS.get(current, []):
        return False, f"Cannot transition payment from '{current}' to '{new_status}'"

    return True, ""


def editable_fields(lifecycle_status: str):
    """None means unrestricted."""
    return EDITABLE_FIELDS_BY_LIFECYCLE.get(lifecycle_status)


def check_patch_allowed(event: Event, fields: Iterable[str], is_admin: bool, has_registrations: bool) -> None:
    """
    Editability guard for event patches.

    Raises Forbidden for protected or lifecycle-locked fields and
    Conflict when the registration form is already frozen.
    """
    fields = set(fields)

    protected = fields & FORBIDDEN_PATCH_FIELDS
    if protected:
        raise Forbidden(f"Field '{sorted(protected)[0]}' cannot be changed", reason="FieldLocked")

    if "custom_fields" in fields and has_registrations:
        raise Conflict(FORM_LOCKED_MESSAGE, reason="FormLocked")

    if is_admin:
        return

    allowed = editable_fields(event.lifecycle_status)
    if allowed is None:
        return

    locked = sorted(fields - allowed)
    if locked:
        logger.warning(
            f"Locked field edit refused: event={event.id}, lifecycle={event.lifecycle_status}, fields={locked}"
        )
        raise Forbidden(
            f"Cannot edit {', '.join(locked)} while the event is {event.lifecycle_status}",
            reason="FieldLocked",
        )
