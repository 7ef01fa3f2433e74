import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("organizer_name", models.CharField(max_length=255)),
                ("club_id", models.PositiveIntegerField(blank=True, null=True)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField()),
                ("venue", models.CharField(blank=True, max_length=255, null=True)),
                ("location", models.CharField(blank=True, max_length=255, null=True)),
                ("image_url", models.CharField(blank=True, max_length=1024, null=True)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                (
                    "time",
                    models.CharField(
                        blank=True, default="", help_text="Time-of-day label, e.g. '10:00 AM'", max_length=32
                    ),
                ),
                ("registration_deadline", models.DateTimeField(blank=True, null=True)),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("event", "Event"),
                            ("workshop", "Workshop"),
                            ("competition", "Competition"),
                            ("seminar", "Seminar"),
                            ("merchandise", "Merchandise"),
                        ],
                        default="event",
                        max_length=32,
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("technical", "Technical"),
                            ("cultural", "Cultural"),
                            ("sports", "Sports"),
                            ("academic", "Academic"),
                            ("workshop", "Workshop"),
                            ("competition", "Competition"),
                            ("seminar", "Seminar"),
                            ("other", "Other"),
                        ],
                        default="other",
                        max_length=32,
                    ),
                ),
                (
                    "eligibility",
                    models.CharField(
                        choices=[("all", "All"), ("iiit", "IIIT"), ("non_iiit", "Non-IIIT")],
                        default="all",
                        max_length=16,
                    ),
                ),
                ("capacity", models.PositiveIntegerField(default=1)),
                ("registered", models.PositiveIntegerField(default=0)),
                (
                    "participant_type",
                    models.CharField(
                        choices=[("individual", "Individual"), ("team", "Team"), ("both", "Both")],
                        default="individual",
                        max_length=16,
                    ),
                ),
                ("allow_teams", models.BooleanField(default=False)),
                ("min_team_size", models.PositiveIntegerField(default=2)),
                ("max_team_size", models.PositiveIntegerField(default=5)),
                ("registration_fee", models.PositiveIntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                        ],
                        default="draft",
                        max_length=32,
                    ),
                ),
                ("rejection_reason", models.TextField(blank=True, null=True)),
                (
                    "lifecycle_status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("published", "Published"),
                            ("ongoing", "Ongoing"),
                            ("completed", "Completed"),
                            ("closed", "Closed"),
                        ],
                        default="draft",
                        max_length=32,
                    ),
                ),
                ("is_closed", models.BooleanField(default=False)),
                ("custom_fields", models.JSONField(blank=True, default=list)),
                ("merchandise_item_name", models.CharField(blank=True, max_length=255, null=True)),
                ("merchandise_description", models.TextField(blank=True, null=True)),
                ("purchase_limit", models.PositiveIntegerField(blank=True, null=True)),
                ("merchandise_stock", models.PositiveIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "organizer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="organized_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["organizer"], name="event_organizer_idx"),
                    models.Index(fields=["status", "start_time"], name="event_status_start_idx"),
                    models.Index(fields=["category"], name="event_category_idx"),
                    models.Index(fields=["created_at"], name="event_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("registered__lte", models.F("capacity"))),
                        name="event_registered_within_capacity",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="MerchandiseVariant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sku", models.CharField(blank=True, max_length=64, null=True)),
                ("size", models.CharField(blank=True, max_length=32, null=True)),
                ("color", models.CharField(blank=True, max_length=32, null=True)),
                ("price", models.PositiveIntegerField(blank=True, null=True)),
                ("stock", models.PositiveIntegerField(default=0)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="variants",
                        to="events.event",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "sku"), name="variant_event_sku_unique"),
                ],
            },
        ),
        migrations.CreateModel(
            name="EventRegistration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("ticket_id", models.CharField(max_length=32, unique=True)),
                ("registered_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("participant_name", models.CharField(max_length=255)),
                ("email", models.EmailField(max_length=254)),
                ("phone", models.CharField(blank=True, max_length=20, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("rejected", "Rejected"),
                            ("approved", "Approved"),
                        ],
                        default="pending",
                        max_length=32,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("free", "Free"),
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=32,
                    ),
                ),
                ("payment_amount", models.PositiveIntegerField(default=0)),
                ("amount_paid", models.PositiveIntegerField(default=0)),
                ("payment_method", models.CharField(blank=True, max_length=64, null=True)),
                ("transaction_id", models.CharField(blank=True, max_length=255, null=True)),
                ("payment_screenshot", models.CharField(blank=True, max_length=1024, null=True)),
                ("is_team", models.BooleanField(default=False)),
                ("team_name", models.CharField(blank=True, max_length=100, null=True)),
                ("team_leader", models.JSONField(blank=True, null=True)),
                ("team_members", models.JSONField(blank=True, default=list)),
                ("variant_sku", models.CharField(blank=True, max_length=64, null=True)),
                ("size", models.CharField(blank=True, max_length=32, null=True)),
                ("color", models.CharField(blank=True, max_length=32, null=True)),
                ("quantity", models.PositiveIntegerField(blank=True, null=True)),
                ("unit_price", models.PositiveIntegerField(blank=True, null=True)),
                ("total_price", models.PositiveIntegerField(blank=True, null=True)),
                ("custom_field_responses", models.JSONField(blank=True, default=dict)),
                ("checked_in", models.BooleanField(default=False)),
                ("check_in_time", models.DateTimeField(blank=True, null=True)),
                ("ticket_qr", models.TextField(blank=True, null=True)),
                ("ticket_issued_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to="events.event",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="registrations",
                        to="events.merchandisevariant",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["event", "user"], name="reg_event_user_idx"),
                    models.Index(fields=["event", "status"], name="reg_event_status_idx"),
                    models.Index(fields=["event", "registered_at"], name="reg_event_registered_idx"),
                    models.Index(fields=["status"], name="reg_status_idx"),
                ],
            },
        ),
    ]
