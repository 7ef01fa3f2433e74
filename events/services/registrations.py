# events/services/registrations.py
"""
Registration engine.

Owns `Event.registered`, merchandise stock and ticket ids. Every guarded
mutation is a conditional UPDATE inside one transaction with the insert:

    registered < capacity   -> registered + 1     (else Rejected: Full)
    stock >= quantity       -> stock - quantity   (else Rejected: OutOfStock)
    ticket id unused        -> insert             (else mint again)

Ticket issuance and mail happen after the commit.
"""
from typing import List, Tuple
import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F, Sum
from django.db.models.functions import Coalesce

from core.exceptions import Conflict, Forbidden, Internal, Invalid, NotFound, Rejected, Unauthorized
from events import datetime_utils, policies, state_machine
from events.emails import TicketMailer
from events.lifecycle import sync_lifecycle
from events.models import Event, EventRegistration, MerchandiseVariant
from events.sanitizers import ValidationError, validate_custom_responses
from events.tickets import generate_ticket_id, issue_ticket, ticket_id_from_scan

from .stats import get_event_registration_stats

logger = logging.getLogger('eventhub.events')


def match_variant(variants, sku=None, size=None, color=None):
    """
    SKU wins when given; otherwise the first variant whose (size, color)
    matches. Comparison is case-insensitive.
    """
    def same(a, b):
        return (a or "").strip().lower() == (b or "").strip().lower()

    if sku:
        for variant in variants:
            if variant.sku and same(variant.sku, sku):
                return variant
        return None

    if not size and not color:
        return None

    for variant in variants:
        if same(variant.size, size) and same(variant.color, color):
            return variant
    return None


class RegistrationService:
    """
    Registration lifecycle operations.

    `mailer` must provide `send_ticket(...)`; `clock` returns an aware
    datetime. Both are replaceable in tests.
    """

    def __init__(self, mailer=None, clock=None):
        self.mailer = mailer if mailer is not None else TicketMailer()
        self.clock = clock or datetime_utils.now

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _get(self, registration_id, for_update=False) -> EventRegistration:
        qs = EventRegistration.objects.select_related("event", "user")
        if for_update:
            qs = qs.select_for_update()
        try:
            return qs.get(pk=registration_id)
        except (EventRegistration.DoesNotExist, ValueError, TypeError):
            raise NotFound("Registration not found")

    def get_registration(self, actor, registration_id) -> EventRegistration:
        registration = self._get(registration_id)
        policies.require(actor, policies.REGISTRATION_VIEW, registration)
        return registration

    def list_my_registrations(self, actor) -> List[EventRegistration]:
        if not policies.is_authenticated(actor):
            raise Unauthorized()
        return list(
            EventRegistration.objects.filter(user=actor)
            .select_related("event", "user")
            .order_by("-registered_at", "-id")
        )

    def list_event_registrations(self, actor, event_id) -> Tuple[List[EventRegistration], dict]:
        try:
            event = Event.objects.get(pk=event_id)
        except (Event.DoesNotExist, ValueError, TypeError):
            raise NotFound("Event not found")
        policies.require(actor, policies.EVENT_VIEW_REGISTRATIONS, event)

        registrations = list(
            EventRegistration.objects.filter(event=event)
            .select_related("event", "user")
            .order_by("-registered_at", "-id")
        )
        return registrations, get_event_registration_stats(event)

    def list_organizer_registrations(self, actor) -> List[EventRegistration]:
        policies.require(actor, policies.STATS_ORGANIZER)
        return list(
            EventRegistration.objects.filter(event__organizer=actor)
            .select_related("event", "user")
            .order_by("-registered_at", "-id")
        )

    # ------------------------------------------------------------------
    # Register
    # ------------------------------------------------------------------

    def register(self, actor, data) -> EventRegistration:
        """
        Create a registration. Preconditions are checked in a fixed order,
        each failing with its own error kind.
        """
        if not policies.is_authenticated(actor):
            raise Unauthorized()

        now = self.clock()
        team_name = (data.get("team_name") or "").strip()
        team_members = data.get("team_members") or []
        merchandise = data.get("merchandise") or {}

        with transaction.atomic():
            try:
                event = Event.objects.select_for_update().get(pk=data.get("event_id"))
            except (Event.DoesNotExist, ValueError, TypeError):
                raise NotFound("Event not found")
            sync_lifecycle(event, now)

            if event.status != Event.STATUS_APPROVED:
                raise Rejected("Event is not open for registration", reason="NotApproved")

            if datetime_utils.is_deadline_passed(event, now):
                raise Rejected("Registration deadline has passed", reason="DeadlinePassed")

            if event.lifecycle_status in (Event.LIFECYCLE_COMPLETED, Event.LIFECYCLE_CLOSED):
                raise Rejected("Registration is closed for this event", reason="RegistrationClosed")

            if not self._is_eligible(event, actor):
                raise Forbidden(
                    f"This event is only open to {event.get_eligibility_display()} participants",
                    reason="NotEligible",
                )

            if not event.is_merchandise and self._has_active_registration(event, actor):
                raise Conflict("You are already registered for this event", reason="AlreadyRegistered")

            active = EventRegistration.objects.filter(
                event=event, status__in=EventRegistration.ACTIVE_STATUSES
            ).count()
            if active >= event.capacity:
                raise Rejected("Event is full", reason="Full")

            self._check_team(event, team_name, team_members)

            fields = {}
            variant = None
            quantity = None
            if event.is_merchandise:
                variant, quantity, unit_price = self._check_merchandise(event, actor, merchandise)
                payment_amount = unit_price * quantity
                fields.update(
                    variant=variant,
                    variant_sku=variant.sku if variant else None,
                    size=variant.size if variant else merchandise.get("size"),
                    color=variant.color if variant else merchandise.get("color"),
                    quantity=quantity,
                    unit_price=unit_price,
                    total_price=payment_amount,
                )
            else:
                payment_amount = event.registration_fee

            try:
                responses = validate_custom_responses(event.custom_fields, data.get("custom_field_responses"))
            except ValidationError as exc:
                raise Invalid(exc.message, reason=exc.code)

            if payment_amount == 0:
                payment_status = EventRegistration.PAYMENT_FREE
                status = EventRegistration.STATUS_CONFIRMED
            else:
                payment_status = EventRegistration.PAYMENT_PENDING
                status = EventRegistration.STATUS_PENDING

            snapshot = {
                "name": actor.display_name,
                "email": actor.email,
                "phone": data.get("phone") or actor.phone,
            }
            if event.allow_teams and team_name:
                fields.update(
                    is_team=True,
                    team_name=team_name,
                    team_leader=data.get("team_leader") or snapshot,
                    team_members=list(team_members),
                )

            # Guarded commits; any failure rolls back the whole block
            bumped = (
                Event.objects
                .filter(pk=event.pk, registered__lt=F("capacity"))
                .update(registered=F("registered") + 1)
            )
            if not bumped:
                raise Rejected("Event is full", reason="Full")

            if event.is_merchandise:
                self._take_stock(event, variant, quantity)

            registration = self._insert(
                event=event,
                user=actor,
                participant_name=snapshot["name"],
                email=snapshot["email"],
                phone=snapshot["phone"],
                status=status,
                payment_status=payment_status,
                payment_amount=payment_amount,
                custom_field_responses=responses,
                **fields,
            )

        event.refresh_from_db(fields=["registered", "merchandise_stock"])
        logger.info(
            f"Registration created: registration={registration.id}, event={event.id}, user={actor.id}, "
            f"status={status}, payment={payment_status}, amount={payment_amount}"
        )

        if payment_status in EventRegistration.SETTLED_PAYMENTS:
            issue_ticket(registration, event, mailer=self.mailer, clock=self.clock)
        return registration

    @staticmethod
    def _is_eligible(event: Event, actor) -> bool:
        # Non-IIIT events admit anyone who is not IIIT, staff included
        if event.eligibility == Event.ELIGIBILITY_IIIT:
            return actor.participant_type == Event.ELIGIBILITY_IIIT
        if event.eligibility == Event.ELIGIBILITY_NON_IIIT:
            return actor.participant_type != Event.ELIGIBILITY_IIIT
        return True

    @staticmethod
    def _has_active_registration(event: Event, user, exclude_pk=None) -> bool:
        qs = (
            EventRegistration.objects
            .filter(event=event, user=user)
            .exclude(status=EventRegistration.STATUS_REJECTED)
        )
        if exclude_pk is not None:
            qs = qs.exclude(pk=exclude_pk)
        return qs.exists()

    def _check_team(self, event: Event, team_name: str, team_members) -> None:
        has_team_fields = bool(team_name) or bool(team_members)

        if event.is_merchandise:
            if has_team_fields:
                raise Invalid("Merchandise purchases are individual only", reason="MerchandiseIndividualOnly")
            return

        if not event.allow_teams:
            if has_team_fields:
                raise Invalid("This event does not accept team registrations", reason="TeamMismatch")
            return

        # Mixed events also take individual registrations
        if event.participant_type == Event.PARTICIPATION_BOTH and not has_team_fields:
            return

        if not team_name:
            raise Invalid("Team name is required", reason="TeamMismatch")

        # Members exclude the leader
        count = len(team_members)
        if count < event.min_team_size - 1:
            raise Invalid(f"Team requires minimum {event.min_team_size} members", reason="TeamMismatch")
        if count > event.max_team_size - 1:
            raise Invalid(f"Team cannot exceed {event.max_team_size} members", reason="TeamMismatch")

    def _check_merchandise(self, event: Event, actor, merchandise) -> Tuple[object, int, int]:
        try:
            quantity = max(1, int(merchandise.get("quantity") or 1))
        except (TypeError, ValueError):
            raise Invalid("Quantity must be a whole number", reason="InvalidQuantity")

        limit = event.purchase_limit or getattr(settings, "DEFAULT_PURCHASE_LIMIT", 1)
        bought = (
            EventRegistration.objects
            .filter(event=event, user=actor)
            .aggregate(total=Coalesce(Sum("quantity"), 0))["total"]
        )
        if bought + quantity > limit:
            raise Rejected(
                f"Purchase limit is {limit} per participant ({bought} already bought)",
                reason="PurchaseLimit",
            )

        variants = list(event.variants.all())
        if variants:
            variant = match_variant(
                variants,
                sku=merchandise.get("variant_sku"),
                size=merchandise.get("size"),
                color=merchandise.get("color"),
            )
            if variant is None:
                raise NotFound("Selected variant not found", reason="Variant")
            if variant.stock < quantity:
                raise Rejected("Selected variant is out of stock", reason="OutOfStock")
            unit_price = variant.price if variant.price is not None else event.registration_fee
            return variant, quantity, unit_price

        if (event.merchandise_stock or 0) < quantity:
            raise Rejected("Item is out of stock", reason="OutOfStock")
        return None, quantity, event.registration_fee

    def _take_stock(self, event: Event, variant, quantity: int) -> None:
        if variant is not None:
            taken = (
                MerchandiseVariant.objects
                .filter(pk=variant.pk, stock__gte=quantity)
                .update(stock=F("stock") - quantity)
            )
        else:
            taken = (
                Event.objects
                .filter(pk=event.pk, merchandise_stock__gte=quantity)
                .update(merchandise_stock=F("merchandise_stock") - quantity)
            )
        if not taken:
            raise Rejected("Item is out of stock", reason="OutOfStock")

    def _insert(self, **fields) -> EventRegistration:
        attempts = getattr(settings, "TICKET_ID_MAX_ATTEMPTS", 5)
        for attempt in range(1, attempts + 1):
            ticket_id = generate_ticket_id(self.clock)
            try:
                with transaction.atomic():
                    return EventRegistration.objects.create(ticket_id=ticket_id, **fields)
            except IntegrityError:
                logger.warning(f"Ticket id collision: ticket={ticket_id}, attempt={attempt}")
        raise Internal("Could not allocate a unique ticket id")

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def cancel_registration(self, actor, registration_id) -> EventRegistration:
        now = self.clock()
        with transaction.atomic():
            registration = self._get(registration_id, for_update=True)
            policies.require(actor, policies.REGISTRATION_CANCEL, registration)

            if registration.status == EventRegistration.STATUS_REJECTED:
                raise Invalid("Registration is already cancelled", reason="AlreadyCancelled")
            if datetime_utils.has_started(registration.event, now):
                raise Forbidden("Cannot cancel after the event has started", reason="EventPast")

            previous = registration.status
            registration.status = EventRegistration.STATUS_REJECTED
            registration.save(update_fields=["status", "updated_at"])
            self._release_seat(registration.event_id)

        logger.info(f"Registration cancelled: registration={registration.id}, from={previous}, user={actor.id}")
        return registration

    def update_registration_status(self, actor, registration_id, new_status) -> EventRegistration:
        if new_status not in dict(EventRegistration.STATUS_CHOICES):
            raise Invalid(f"Invalid status: {new_status}", reason="InvalidStatus")
        # approved is kept as an input alias of confirmed
        if new_status == EventRegistration.STATUS_APPROVED:
            new_status = EventRegistration.STATUS_CONFIRMED

        with transaction.atomic():
            registration = self._get(registration_id, for_update=True)
            policies.require(actor, policies.REGISTRATION_UPDATE_STATUS, registration)

            is_manager = policies.can(actor, policies.REGISTRATION_CHECK_IN, registration)
            if not is_manager and new_status != EventRegistration.STATUS_REJECTED:
                raise Forbidden("Participants can only cancel their registration")

            previous = registration.status
            if previous == new_status:
                return registration

            settled = registration.payment_status in EventRegistration.SETTLED_PAYMENTS
            if new_status == EventRegistration.STATUS_CONFIRMED and not settled:
                raise Invalid("Payment must be completed before confirmation", reason="PaymentPending")
            if new_status == EventRegistration.STATUS_PENDING and settled:
                raise Invalid("A settled registration cannot go back to pending", reason="InvalidTransition")

            if previous != EventRegistration.STATUS_REJECTED and new_status == EventRegistration.STATUS_REJECTED:
                self._release_seat(registration.event_id)
            elif previous == EventRegistration.STATUS_REJECTED:
                event = registration.event
                if not event.is_merchandise and self._has_active_registration(
                    event, registration.user, exclude_pk=registration.pk
                ):
                    raise Conflict(
                        "Participant already holds another registration for this event",
                        reason="AlreadyRegistered",
                    )
                restored = (
                    Event.objects
                    .filter(pk=registration.event_id, registered__lt=F("capacity"))
                    .update(registered=F("registered") + 1)
                )
                if not restored:
                    raise Rejected("Event is full", reason="Full")

            registration.status = new_status
            registration.save(update_fields=["status", "updated_at"])

        logger.info(
            f"Registration status change: registration={registration.id}, from={previous}, "
            f"to={new_status}, actor={actor.id}"
        )
        return registration

    @staticmethod
    def _release_seat(event_id) -> None:
        Event.objects.filter(pk=event_id, registered__gt=0).update(registered=F("registered") - 1)

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    def update_payment_status(self, actor, registration_id, data) -> EventRegistration:
        new_status = data.get("payment_status")

        with transaction.atomic():
            registration = self._get(registration_id, for_update=True)
            policies.require(actor, policies.REGISTRATION_UPDATE_PAYMENT, registration)

            ok, message = state_machine.can_transition_payment(registration, new_status)
            if not ok:
                logger.warning(
                    f"Invalid payment transition: registration={registration.id}, "
                    f"from={registration.payment_status}, to={new_status}"
                )
                raise Invalid(message, reason="InvalidTransition")

            previous = registration.payment_status
            for field in ("payment_method", "transaction_id"):
                if data.get(field):
                    setattr(registration, field, data[field])
            if data.get("amount_paid") is not None:
                registration.amount_paid = data["amount_paid"]

            if new_status == EventRegistration.PAYMENT_FREE:
                registration.payment_amount = 0
            if new_status == EventRegistration.PAYMENT_PAID and not registration.amount_paid:
                registration.amount_paid = registration.payment_amount
            if (
                new_status in EventRegistration.SETTLED_PAYMENTS
                and registration.status == EventRegistration.STATUS_PENDING
            ):
                registration.status = EventRegistration.STATUS_CONFIRMED

            registration.payment_status = new_status
            registration.save()

        logger.info(
            f"Payment status change: registration={registration.id}, from={previous}, "
            f"to={new_status}, actor={actor.id}"
        )

        should_issue = (
            new_status in EventRegistration.SETTLED_PAYMENTS
            and registration.status in (EventRegistration.STATUS_CONFIRMED, EventRegistration.STATUS_APPROVED)
            and not registration.ticket_qr
        )
        if should_issue:
            issue_ticket(registration, registration.event, mailer=self.mailer, clock=self.clock)
        return registration

    def submit_payment_proof(self, actor, registration_id, screenshot) -> EventRegistration:
        with transaction.atomic():
            registration = self._get(registration_id, for_update=True)
            policies.require(actor, policies.REGISTRATION_SUBMIT_PROOF, registration)

            registration.payment_screenshot = screenshot
            # A failed payment goes back to review once new proof arrives
            if registration.payment_status == EventRegistration.PAYMENT_FAILED:
                registration.payment_status = EventRegistration.PAYMENT_PENDING
            registration.save(update_fields=["payment_screenshot", "payment_status", "updated_at"])

        logger.info(f"Payment proof submitted: registration={registration.id}, user={actor.id}")
        return registration

    # ------------------------------------------------------------------
    # Check-in
    # ------------------------------------------------------------------

    def check_in(self, actor, registration_id) -> EventRegistration:
        registration = self._get(registration_id)
        policies.require(actor, policies.REGISTRATION_CHECK_IN, registration)

        checkable = (EventRegistration.STATUS_CONFIRMED, EventRegistration.STATUS_APPROVED)
        if registration.status not in checkable:
            raise Invalid("Only confirmed registrations can be checked in", reason="NotConfirmed")
        if registration.checked_in:
            raise Invalid("Participant already checked in", reason="AlreadyCheckedIn")

        checked_at = self.clock()
        updated = (
            EventRegistration.objects
            .filter(pk=registration.pk, checked_in=False, status__in=checkable)
            .update(checked_in=True, check_in_time=checked_at)
        )
        if not updated:
            raise Invalid("Participant already checked in", reason="AlreadyCheckedIn")

        registration.checked_in = True
        registration.check_in_time = checked_at
        logger.info(f"Check-in: registration={registration.id}, event={registration.event_id}, actor={actor.id}")
        return registration

    def check_in_by_ticket(self, actor, scanned, event_id=None) -> EventRegistration:
        """Resolve a scanned QR payload (or typed ticket id) and check it in."""
        ticket_id = ticket_id_from_scan(scanned)
        if not ticket_id:
            raise Invalid("Unreadable ticket", reason="InvalidTicket")

        try:
            registration = EventRegistration.objects.select_related("event").get(ticket_id=ticket_id)
        except EventRegistration.DoesNotExist:
            raise NotFound("Ticket not found")

        if event_id is not None and registration.event_id != event_id:
            raise Invalid("Ticket belongs to a different event", reason="TicketEventMismatch")

        return self.check_in(actor, registration.pk)
