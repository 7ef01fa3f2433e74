# events/models.py
from django.conf import settings
from django.db import models


class Event(models.Model):
    # Approval status (admin-owned)
    STATUS_DRAFT = "draft"
    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    # Lifecycle (derived, see events.lifecycle)
    LIFECYCLE_DRAFT = "draft"
    LIFECYCLE_PUBLISHED = "published"
    LIFECYCLE_ONGOING = "ongoing"
    LIFECYCLE_COMPLETED = "completed"
    LIFECYCLE_CLOSED = "closed"

    LIFECYCLE_CHOICES = [
        (LIFECYCLE_DRAFT, "Draft"),
        (LIFECYCLE_PUBLISHED, "Published"),
        (LIFECYCLE_ONGOING, "Ongoing"),
        (LIFECYCLE_COMPLETED, "Completed"),
        (LIFECYCLE_CLOSED, "Closed"),
    ]

    TYPE_EVENT = "event"
    TYPE_WORKSHOP = "workshop"
    TYPE_COMPETITION = "competition"
    TYPE_SEMINAR = "seminar"
    TYPE_MERCHANDISE = "merchandise"

    TYPE_CHOICES = [
        (TYPE_EVENT, "Event"),
        (TYPE_WORKSHOP, "Workshop"),
        (TYPE_COMPETITION, "Competition"),
        (TYPE_SEMINAR, "Seminar"),
        (TYPE_MERCHANDISE, "Merchandise"),
    ]

    CATEGORY_CHOICES = [
        ("technical", "Technical"),
        ("cultural", "Cultural"),
        ("sports", "Sports"),
        ("academic", "Academic"),
        ("workshop", "Workshop"),
        ("competition", "Competition"),
        ("seminar", "Seminar"),
        ("other", "Other"),
    ]

    ELIGIBILITY_ALL = "all"
    ELIGIBILITY_IIIT = "iiit"
    ELIGIBILITY_NON_IIIT = "non_iiit"

    ELIGIBILITY_CHOICES = [
        (ELIGIBILITY_ALL, "All"),
        (ELIGIBILITY_IIIT, "IIIT"),
        (ELIGIBILITY_NON_IIIT, "Non-IIIT"),
    ]

    PARTICIPATION_INDIVIDUAL = "individual"
    PARTICIPATION_TEAM = "team"
    PARTICIPATION_BOTH = "both"

    PARTICIPATION_CHOICES = [
        (PARTICIPATION_INDIVIDUAL, "Individual"),
        (PARTICIPATION_TEAM, "Team"),
        (PARTICIPATION_BOTH, "Both"),
    ]

    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='organized_events'
    )
    organizer_name = models.CharField(max_length=255)
    club_id = models.PositiveIntegerField(blank=True, null=True)

    title = models.CharField(max_length=255)
    description = models.TextField()
    venue = models.CharField(max_length=255, blank=True, null=True)
    location = models.CharField(max_length=255, blank=True, null=True)
    image_url = models.CharField(max_length=1024, blank=True, null=True)
    tags = models.JSONField(default=list, blank=True)

    # Schedule
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    time = models.CharField(max_length=32, blank=True, default="", help_text="Time-of-day label, e.g. '10:00 AM'")
    registration_deadline = models.DateTimeField(blank=True, null=True)

    # Classification
    event_type = models.CharField(max_length=32, choices=TYPE_CHOICES, default=TYPE_EVENT)
    category = models.CharField(max_length=32, choices=CATEGORY_CHOICES, default="other")
    eligibility = models.CharField(max_length=16, choices=ELIGIBILITY_CHOICES, default=ELIGIBILITY_ALL)

    # Capacity; `registered` is owned by the registration engine
    capacity = models.PositiveIntegerField(default=1)
    registered = models.PositiveIntegerField(default=0)
    participant_type = models.CharField(
        max_length=16, choices=PARTICIPATION_CHOICES, default=PARTICIPATION_INDIVIDUAL
    )
    allow_teams = models.BooleanField(default=False)
    min_team_size = models.PositiveIntegerField(default=2)
    max_team_size = models.PositiveIntegerField(default=5)

    # Minor currency units
    registration_fee = models.PositiveIntegerField(default=0)

    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    rejection_reason = models.TextField(blank=True, null=True)
    lifecycle_status = models.CharField(max_length=32, choices=LIFECYCLE_CHOICES, default=LIFECYCLE_DRAFT)
    is_closed = models.BooleanField(default=False)

    # Registration form, frozen after the first registration
    custom_fields = models.JSONField(default=list, blank=True)

    # Merchandise block (only for TYPE_MERCHANDISE); variants live in MerchandiseVariant
    merchandise_item_name = models.CharField(max_length=255, blank=True, null=True)
    merchandise_description = models.TextField(blank=True, null=True)
    purchase_limit = models.PositiveIntegerField(blank=True, null=True)
    merchandise_stock = models.PositiveIntegerField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['organizer'], name='event_organizer_idx'),
            models.Index(fields=['status', 'start_time'], name='event_status_start_idx'),
            models.Index(fields=['category'], name='event_category_idx'),
            models.Index(fields=['created_at'], name='event_created_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(registered__lte=models.F("capacity")),
                name="event_registered_within_capacity",
            ),
        ]

    def __str__(self):
        return self.title

    @property
    def is_merchandise(self):
        return self.event_type == self.TYPE_MERCHANDISE

    @property
    def has_merchandise_block(self):
        return bool(
            self.merchandise_item_name
            or self.merchandise_stock is not None
            or self.purchase_limit is not None
        )

    @property
    def spots_left(self):
        return max(0, self.capacity - self.registered)


class MerchandiseVariant(models.Model):
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="variants")
    sku = models.CharField(max_length=64, blank=True, null=True)
    size = models.CharField(max_length=32, blank=True, null=True)
    color = models.CharField(max_length=32, blank=True, null=True)
    price = models.PositiveIntegerField(blank=True, null=True)
    stock = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["event", "sku"], name="variant_event_sku_unique"),
        ]

    def __str__(self):
        label = self.sku or "/".join(v for v in (self.size, self.color) if v) or f"variant {self.pk}"
        return f"{self.event.title} - {label}"


class EventRegistration(models.Model):
    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_REJECTED = "rejected"
    STATUS_APPROVED = "approved"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_APPROVED, "Approved"),
    ]

    # Statuses that hold a seat (counted in Event.registered)
    ACTIVE_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_APPROVED)

    PAYMENT_FREE = "free"
    PAYMENT_PENDING = "pending"
    PAYMENT_PAID = "paid"
    PAYMENT_FAILED = "failed"
    PAYMENT_REFUNDED = "refunded"

    PAYMENT_CHOICES = [
        (PAYMENT_FREE, "Free"),
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_FAILED, "Failed"),
        (PAYMENT_REFUNDED, "Refunded"),
    ]

    SETTLED_PAYMENTS = (PAYMENT_FREE, PAYMENT_PAID)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="registrations",
    )
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")
    ticket_id = models.CharField(max_length=32, unique=True)
    registered_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Snapshot of the participant at registration time
    participant_name = models.CharField(max_length=255)
    email = models.EmailField()
    phone = models.CharField(max_length=20, blank=True, null=True)

    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_PENDING)
    payment_status = models.CharField(max_length=32, choices=PAYMENT_CHOICES, default=PAYMENT_PENDING)
    payment_amount = models.PositiveIntegerField(default=0)
    amount_paid = models.PositiveIntegerField(default=0)
    payment_method = models.CharField(max_length=64, blank=True, null=True)
    transaction_id = models.CharField(max_length=255, blank=True, null=True)
    payment_screenshot = models.CharField(max_length=1024, blank=True, null=True)

    # Team registration (only when event.allow_teams)
    is_team = models.BooleanField(default=False)
    team_name = models.CharField(max_length=100, blank=True, null=True)
    team_leader = models.JSONField(blank=True, null=True)
    team_members = models.JSONField(default=list, blank=True)

    # Merchandise purchase (only when event is merchandise)
    variant = models.ForeignKey(
        MerchandiseVariant,
        on_delete=models.SET_NULL,
        related_name="registrations",
        null=True,
        blank=True,
    )
    variant_sku = models.CharField(max_length=64, blank=True, null=True)
    size = models.CharField(max_length=32, blank=True, null=True)
    color = models.CharField(max_length=32, blank=True, null=True)
    quantity = models.PositiveIntegerField(blank=True, null=True)
    unit_price = models.PositiveIntegerField(blank=True, null=True)
    total_price = models.PositiveIntegerField(blank=True, null=True)

    custom_field_responses = models.JSONField(default=dict, blank=True)

    checked_in = models.BooleanField(default=False)
    check_in_time = models.DateTimeField(blank=True, null=True)

    ticket_qr = models.TextField(blank=True, null=True)
    ticket_issued_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        indexes = [
            models.Index(fields=['event', 'user'], name='reg_event_user_idx'),
            models.Index(fields=['event', 'status'], name='reg_event_status_idx'),
            models.Index(fields=['event', 'registered_at'], name='reg_event_registered_idx'),
            models.Index(fields=['status'], name='reg_status_idx'),
        ]

    def __str__(self):
        return f"{self.ticket_id} - {self.participant_name} @ {self.event_id}"

    @property
    def is_active(self):
        return self.status in self.ACTIVE_STATUSES

    @property
    def has_ticket(self):
        return bool(self.ticket_qr)
