# events/services/events.py
"""
Event service: create / update / delete / approve / publish / list.

Every read and write runs the lifecycle sync so the persisted
`lifecycle_status` never lags behind the clock.
"""
from typing import List, Tuple
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q

from core.exceptions import Invalid, NotFound
from events import datetime_utils, intents, policies, state_machine
from events.lifecycle import sync_lifecycle
from events.models import Event, MerchandiseVariant
from events.sanitizers import fuzzy_pattern

from .stats import get_event_registration_stats

logger = logging.getLogger('eventhub.events')

SORTABLE_FIELDS = {
    "start_time": "start_time",
    "date": "start_time",
    "end_time": "end_time",
    "created_at": "created_at",
    "title": "title",
    "registration_fee": "registration_fee",
    "capacity": "capacity",
    "registered": "registered",
    "registration_deadline": "registration_deadline",
}
DEFAULT_SORT = ["start_time"]
MAX_PAGE_SIZE = 100

# Scalar columns a create/patch may carry
EVENT_FIELDS = (
    "title", "description", "venue", "location", "image_url", "tags",
    "start_time", "end_time", "time", "registration_deadline",
    "event_type", "category", "eligibility",
    "capacity", "participant_type", "allow_teams", "min_team_size", "max_team_size",
    "registration_fee", "custom_fields", "organizer_name", "club_id", "is_closed",
)

# Patches touching only these keep the approval status
CLOSE_ONLY_FIELDS = frozenset({"is_closed", "lifecycle_status"})


def validate_schedule(start, end, deadline):
    if start and end and end < start:
        raise Invalid("End time must be after start time", reason="InvalidSchedule")
    if deadline and start and deadline > start:
        raise Invalid("Registration deadline must be on or before the start time", reason="InvalidDeadline")


def validate_team_bounds(event: Event):
    if not event.allow_teams:
        return
    if event.min_team_size < 2 or event.min_team_size > event.max_team_size:
        raise Invalid("Team size must satisfy 2 <= minimum <= maximum", reason="InvalidTeamSize")


def validate_merchandise(event: Event, merchandise):
    if not event.is_merchandise:
        return
    merchandise = merchandise or {}
    variants = merchandise.get("variants") or []
    if merchandise.get("stock") is None and not variants:
        raise Invalid("Merchandise events need a stock or at least one variant", reason="MerchandiseRequired")
    skus = [v.get("sku") for v in variants if v.get("sku")]
    if len(skus) != len(set(skus)):
        raise Invalid("Variant SKUs must be unique", reason="DuplicateSku")


def apply_merchandise(event: Event, merchandise):
    """Write the merchandise block; variants are replaced wholesale."""
    if merchandise is None:
        return
    event.merchandise_item_name = merchandise.get("item_name") or event.merchandise_item_name
    event.merchandise_description = merchandise.get("description", event.merchandise_description)
    if "purchase_limit" in merchandise:
        event.purchase_limit = merchandise.get("purchase_limit")
    if "stock" in merchandise:
        event.merchandise_stock = merchandise.get("stock")
    event.save()

    if "variants" in merchandise:
        event.variants.all().delete()
        MerchandiseVariant.objects.bulk_create([
            MerchandiseVariant(
                event=event,
                sku=v.get("sku") or None,
                size=v.get("size") or None,
                color=v.get("color") or None,
                price=v.get("price"),
                stock=v.get("stock") or 0,
            )
            for v in merchandise["variants"]
        ])


class EventService:
    """
    Event metadata and approval operations.

    `clock` defaults to datetime_utils.now and can be replaced in tests.
    """

    def __init__(self, clock=None):
        self.clock = clock or datetime_utils.now

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _get(self, event_id, for_update=False) -> Event:
        qs = Event.objects.select_related("organizer")
        if for_update:
            qs = qs.select_for_update()
        try:
            return qs.get(pk=event_id)
        except (Event.DoesNotExist, ValueError, TypeError):
            raise NotFound("Event not found")

    def get_event(self, actor, event_id) -> Event:
        event = self._get(event_id)
        # Unapproved events are only visible to their managers
        if event.status != Event.STATUS_APPROVED and not policies.can(actor, policies.EVENT_UPDATE, event):
            raise NotFound("Event not found")
        return sync_lifecycle(event, self.clock())

    def get_event_stats(self, actor, event_id) -> dict:
        event = self._get(event_id)
        policies.require(actor, policies.EVENT_VIEW_STATS, event)
        return get_event_registration_stats(event)

    def list_my_events(self, actor) -> List[Event]:
        policies.require(actor, policies.EVENT_CREATE)
        now = self.clock()
        events = list(
            Event.objects.filter(organizer=actor)
            .select_related("organizer")
            .prefetch_related("variants")
            .order_by("-created_at", "-id")
        )
        for event in events:
            sync_lifecycle(event, now)
        return events

    def list_events(self, actor, query=None) -> Tuple[List[Event], int, int, int]:
        """
        Returns (events, total, page, limit).

        Query keys: category, status, eligibility, organizer, club_ids,
        date_from, date_to, allow_teams, type, search, sort, page, limit,
        trending.
        """
        query = query or {}
        now = self.clock()
        is_admin = bool(actor is not None and getattr(actor, "is_authenticated", False) and actor.is_admin)
        actor_id = getattr(actor, "id", None)

        qs = Event.objects.select_related("organizer").prefetch_related("variants")

        # Approval status
        status = query.get("status")
        organizer = query.get("organizer")
        if is_admin:
            if status:
                qs = qs.filter(status=status)
        elif status and status != Event.STATUS_APPROVED and actor_id is not None and organizer == actor_id:
            qs = qs.filter(status=status)
        else:
            qs = qs.filter(status=Event.STATUS_APPROVED)

        # Eligibility
        if query.get("eligibility"):
            qs = qs.filter(eligibility=query["eligibility"])
        if actor is not None and getattr(actor, "is_participant", False):
            visible = [Event.ELIGIBILITY_ALL]
            if actor.participant_type:
                visible.append(actor.participant_type)
            qs = qs.filter(eligibility__in=visible)

        if query.get("category"):
            qs = qs.filter(category=query["category"])
        if organizer is not None:
            qs = qs.filter(organizer_id=organizer)
        if query.get("club_ids"):
            qs = qs.filter(club_id__in=query["club_ids"])
        if query.get("date_from"):
            qs = qs.filter(start_time__gte=query["date_from"])
        if query.get("date_to"):
            qs = qs.filter(start_time__lte=query["date_to"])
        if query.get("allow_teams") is not None:
            qs = qs.filter(allow_teams=query["allow_teams"])
        if query.get("type"):
            qs = qs.filter(event_type=query["type"])

        search = (query.get("search") or "").strip()
        if search:
            condition = (
                Q(title__icontains=search)
                | Q(organizer_name__icontains=search)
                | Q(description__icontains=search)
                | Q(venue__icontains=search)
            )
            pattern = fuzzy_pattern(search)
            if pattern:
                condition |= Q(title__iregex=pattern) | Q(organizer_name__iregex=pattern)
            qs = qs.filter(condition)

        if query.get("trending"):
            window = datetime_utils.trending_window_start(
                getattr(settings, "TRENDING_WINDOW_HOURS", 24), now
            )
            limit = getattr(settings, "TRENDING_LIMIT", 5)
            events = list(
                qs.annotate(
                    recent_registrations=Count(
                        "registrations", filter=Q(registrations__registered_at__gte=window)
                    )
                ).order_by("-recent_registrations", "start_time", "id")[:limit]
            )
            for event in events:
                sync_lifecycle(event, now)
            return events, len(events), 1, limit

        qs = qs.order_by(*self._ordering(query.get("sort")))

        page = max(1, int(query.get("page") or 1))
        limit = int(query.get("limit") or getattr(settings, "EVENT_LIST_PAGE_SIZE", 10))
        limit = min(max(1, limit), MAX_PAGE_SIZE)

        total = qs.count()
        offset = (page - 1) * limit
        events = list(qs[offset:offset + limit])
        for event in events:
            sync_lifecycle(event, now)
        return events, total, page, limit

    @staticmethod
    def _ordering(sort) -> List[str]:
        if not sort:
            return DEFAULT_SORT + ["id"]
        keys = sort if isinstance(sort, (list, tuple)) else str(sort).split(",")
        ordering = []
        for key in keys:
            key = key.strip()
            descending = key.startswith("-")
            field = SORTABLE_FIELDS.get(key.lstrip("-"))
            if field:
                ordering.append(f"-{field}" if descending else field)
        return (ordering or DEFAULT_SORT) + ["id"]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_event(self, actor, data) -> Event:
        policies.require(actor, policies.EVENT_CREATE)
        data = dict(data)

        publish_now = bool(data.pop("publish_now", False))
        merchandise = data.pop("merchandise", None)
        if "max_participants" in data:
            max_participants = data.pop("max_participants")
            data.setdefault("capacity", max_participants)

        validate_schedule(data.get("start_time"), data.get("end_time"), data.get("registration_deadline"))

        event = Event(organizer=actor)
        for field in EVENT_FIELDS:
            if field in data and data[field] is not None:
                setattr(event, field, data[field])

        if "capacity" not in data or data["capacity"] is None:
            event.capacity = getattr(settings, "DEFAULT_EVENT_CAPACITY", 100)
        if event.capacity < 1:
            raise Invalid("Capacity must be at least 1", reason="InvalidCapacity")

        if event.participant_type in (Event.PARTICIPATION_TEAM, Event.PARTICIPATION_BOTH):
            event.allow_teams = True
        validate_team_bounds(event)
        validate_merchandise(event, merchandise)

        if not event.organizer_name:
            event.organizer_name = actor.display_name

        if publish_now:
            event.status = Event.STATUS_PENDING
            event.lifecycle_status = Event.LIFECYCLE_PUBLISHED
        else:
            event.status = Event.STATUS_DRAFT
            event.lifecycle_status = Event.LIFECYCLE_DRAFT

        with transaction.atomic():
            event.save()
            if event.is_merchandise:
                apply_merchandise(event, merchandise)

        logger.info(
            f"Event created: event={event.id}, organizer={actor.id}, status={event.status}, type={event.event_type}"
        )
        return sync_lifecycle(event, self.clock())

    def update_event(self, actor, event_id, patch) -> Event:
        patch = dict(patch)
        now = self.clock()

        with transaction.atomic():
            event = self._get(event_id, for_update=True)
            policies.require(actor, policies.EVENT_UPDATE, event)
            sync_lifecycle(event, now)

            has_registrations = event.registrations.exists()
            state_machine.check_patch_allowed(event, patch.keys(), actor.is_admin, has_registrations)

            merchandise = patch.pop("merchandise", None)
            if "max_participants" in patch:
                max_participants = patch.pop("max_participants")
                patch.setdefault("capacity", max_participants)

            requested_lifecycle = patch.pop("lifecycle_status", None)
            if requested_lifecycle == Event.LIFECYCLE_CLOSED:
                patch["is_closed"] = True

            for field in EVENT_FIELDS:
                if field in patch:
                    setattr(event, field, patch[field])

            validate_schedule(event.start_time, event.end_time, event.registration_deadline)
            if event.capacity is None or event.capacity < 1:
                raise Invalid("Capacity must be at least 1", reason="InvalidCapacity")
            if event.capacity < event.registered:
                raise Invalid(
                    f"Capacity cannot be lower than current registrations ({event.registered})",
                    reason="InvalidCapacity",
                )
            if event.participant_type in (Event.PARTICIPATION_TEAM, Event.PARTICIPATION_BOTH):
                event.allow_teams = True
            validate_team_bounds(event)
            if merchandise is not None:
                validate_merchandise(event, merchandise)

            touched = set(patch.keys()) | ({"merchandise"} if merchandise is not None else set())
            if (
                not actor.is_admin
                and event.status == Event.STATUS_APPROVED
                and not touched <= CLOSE_ONLY_FIELDS
            ):
                event.status = Event.STATUS_PENDING
                logger.info(f"Approved event edited by organizer, re-approval required: event={event.id}")

            event.save()
            if merchandise is not None:
                apply_merchandise(event, merchandise)

        logger.info(f"Event updated: event={event.id}, actor={actor.id}, fields={sorted(touched)}")
        return sync_lifecycle(event, now)

    def delete_event(self, actor, event_id) -> None:
        event = self._get(event_id)
        policies.require(actor, policies.EVENT_DELETE, event)
        event_pk = event.pk
        # Registrations and variants cascade
        event.delete()
        logger.info(f"Event deleted: event={event_pk}, actor={actor.id}")

    def approve_event(self, actor, event_id, status, rejection_reason=None) -> Tuple[Event, list]:
        """
        Admin decision. Returns (event, intents); an EventApproved intent is
        emitted only when the event actually becomes approved.
        """
        if status not in (Event.STATUS_APPROVED, Event.STATUS_REJECTED):
            raise Invalid("Status must be approved or rejected", reason="InvalidStatus")
        reason_text = (rejection_reason or "").strip()
        if status == Event.STATUS_REJECTED and not reason_text:
            raise Invalid("A rejection reason is required", reason="RejectionReasonRequired")

        emitted = []
        with transaction.atomic():
            event = self._get(event_id, for_update=True)
            policies.require(actor, policies.EVENT_APPROVE, event)

            previous = event.status
            ok, message = state_machine.transition(event, status, actor=actor)
            if not ok:
                raise Invalid(message, reason="InvalidTransition")

            if status == Event.STATUS_REJECTED:
                event.rejection_reason = reason_text
            else:
                event.rejection_reason = None
                if event.lifecycle_status == Event.LIFECYCLE_DRAFT:
                    event.lifecycle_status = Event.LIFECYCLE_PUBLISHED
            event.save()

        if status == Event.STATUS_APPROVED and previous != Event.STATUS_APPROVED:
            emitted.append(intents.event_approved(event))

        return sync_lifecycle(event, self.clock()), emitted

    def publish_event(self, actor, event_id) -> Event:
        with transaction.atomic():
            event = self._get(event_id, for_update=True)
            policies.require(actor, policies.EVENT_PUBLISH, event)

            if event.status != Event.STATUS_PENDING:
                ok, message = state_machine.transition(event, Event.STATUS_PENDING, actor=actor)
                if not ok:
                    raise Invalid(message, reason="InvalidTransition")
            if event.lifecycle_status == Event.LIFECYCLE_DRAFT:
                event.lifecycle_status = Event.LIFECYCLE_PUBLISHED
            event.save()

        logger.info(f"Event submitted for approval: event={event.id}, actor={actor.id}")
        return sync_lifecycle(event, self.clock())
