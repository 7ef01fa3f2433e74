from rest_framework import serializers

from users.serializers import UserSummarySerializer
from . import datetime_utils
from .models import Event, EventRegistration, MerchandiseVariant
from .sanitizers import (
    normalize_choice,
    normalize_custom_fields,
    normalize_eligibility,
    parse_bool,
    parse_int_list,
    sanitize_description,
    sanitize_text,
    sanitize_title,
    ValidationError as SanitizationError,
)


# -----------------------------------------
# FIELDS
# -----------------------------------------
class NormalizedChoiceField(serializers.ChoiceField):
    """
    ChoiceField that accepts mixed-case keys or labels
    ("Approved", "non-iiit", "Non-IIIT") and yields the model key.
    """

    def to_internal_value(self, data):
        if data == "" and self.allow_blank:
            return ""
        key = normalize_choice(data, self.choices.items())
        if key is None:
            self.fail("invalid_choice", input=data)
        return key


class EligibilityField(serializers.CharField):
    def to_internal_value(self, data):
        return normalize_eligibility(super().to_internal_value(data))


class FlexibleDateTimeField(serializers.DateTimeField):
    """ISO datetimes or plain dates (midnight, current timezone)."""

    def to_internal_value(self, value):
        parsed = datetime_utils.parse_iso(value)
        if parsed is None:
            self.fail("invalid", format="ISO 8601")
        return parsed


# -----------------------------------------
# EVENT OUTPUT
# -----------------------------------------
class MerchandiseVariantSerializer(serializers.ModelSerializer):
    class Meta:
        model = MerchandiseVariant
        fields = ["id", "sku", "size", "color", "price", "stock"]
        read_only_fields = fields


class EventSerializer(serializers.ModelSerializer):
    """
    Read model for events. `organizer` stays the id; the hydrated user
    record lives in `organizer_detail`.
    """
    organizer_detail = UserSummarySerializer(source="organizer", read_only=True)
    merchandise = serializers.SerializerMethodField()
    spots_left = serializers.IntegerField(read_only=True)

    class Meta:
        model = Event
        fields = [
            "id",
            "organizer",
            "organizer_detail",
            "organizer_name",
            "club_id",
            "title",
            "description",
            "venue",
            "location",
            "image_url",
            "tags",
            "start_time",
            "end_time",
            "time",
            "registration_deadline",
            "event_type",
            "category",
            "eligibility",
            "capacity",
            "registered",
            "spots_left",
            "participant_type",
            "allow_teams",
            "min_team_size",
            "max_team_size",
            "registration_fee",
            "status",
            "rejection_reason",
            "lifecycle_status",
            "is_closed",
            "custom_fields",
            "merchandise",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_merchandise(self, obj):
        if not obj.is_merchandise and not obj.has_merchandise_block:
            return None
        return {
            "item_name": obj.merchandise_item_name,
            "description": obj.merchandise_description,
            "purchase_limit": obj.purchase_limit,
            "stock": obj.merchandise_stock,
            "variants": MerchandiseVariantSerializer(obj.variants.all(), many=True).data,
        }


# -----------------------------------------
# EVENT INPUT
# -----------------------------------------
class VariantInputSerializer(serializers.Serializer):
    sku = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    size = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    color = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    price = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    stock = serializers.IntegerField(min_value=0, required=False, default=0)


class MerchandiseInputSerializer(serializers.Serializer):
    item_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    purchase_limit = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    stock = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    variants = VariantInputSerializer(many=True, required=False)


class EventInputSerializer(serializers.Serializer):
    """
    Create payload (and, with partial=True, the update patch). Only keys
    present in the request end up in validated_data.
    """
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(allow_blank=True)
    venue = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    location = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    image_url = serializers.CharField(max_length=1024, required=False, allow_blank=True, allow_null=True)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    start_time = FlexibleDateTimeField()
    end_time = FlexibleDateTimeField()
    time = serializers.CharField(max_length=32, required=False, allow_blank=True)
    registration_deadline = FlexibleDateTimeField(required=False, allow_null=True)

    event_type = NormalizedChoiceField(choices=Event.TYPE_CHOICES, required=False)
    category = NormalizedChoiceField(choices=Event.CATEGORY_CHOICES, required=False)
    eligibility = EligibilityField(required=False)

    capacity = serializers.IntegerField(min_value=0, required=False)
    max_participants = serializers.IntegerField(min_value=0, required=False)
    participant_type = NormalizedChoiceField(choices=Event.PARTICIPATION_CHOICES, required=False)
    allow_teams = serializers.BooleanField(required=False)
    min_team_size = serializers.IntegerField(min_value=1, required=False)
    max_team_size = serializers.IntegerField(min_value=1, required=False)
    registration_fee = serializers.IntegerField(min_value=0, required=False)

    custom_fields = serializers.JSONField(required=False)
    merchandise = MerchandiseInputSerializer(required=False)

    organizer_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    club_id = serializers.IntegerField(required=False, allow_null=True)
    is_closed = serializers.BooleanField(required=False)
    lifecycle_status = NormalizedChoiceField(choices=Event.LIFECYCLE_CHOICES, required=False)
    publish_now = serializers.BooleanField(required=False)

    # Accepted only so the service can refuse it explicitly
    organizer = serializers.IntegerField(required=False)

    def validate_title(self, value):
        """Sanitize event title."""
        value = sanitize_title(value)
        if not value:
            raise serializers.ValidationError("Title cannot be blank.")
        return value

    def validate_description(self, value):
        """Sanitize event description (allows limited HTML)."""
        return sanitize_description(value)

    def validate_organizer_name(self, value):
        return sanitize_title(value)

    def validate_custom_fields(self, value):
        try:
            return normalize_custom_fields(value)
        except SanitizationError as e:
            raise serializers.ValidationError(str(e))


# -----------------------------------------
# EVENT ACTIONS / QUERY
# -----------------------------------------
class EventApprovalSerializer(serializers.Serializer):
    status = NormalizedChoiceField(
        choices=[(Event.STATUS_APPROVED, "Approved"), (Event.STATUS_REJECTED, "Rejected")]
    )
    rejection_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class EventListQuerySerializer(serializers.Serializer):
    category = NormalizedChoiceField(choices=Event.CATEGORY_CHOICES, required=False)
    status = NormalizedChoiceField(choices=Event.STATUS_CHOICES, required=False)
    eligibility = EligibilityField(required=False)
    organizer = serializers.IntegerField(required=False)
    club_ids = serializers.CharField(required=False)
    date_from = FlexibleDateTimeField(required=False)
    date_to = FlexibleDateTimeField(required=False)
    allow_teams = serializers.CharField(required=False)
    type = NormalizedChoiceField(choices=Event.TYPE_CHOICES, required=False)
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)
    sort = serializers.CharField(required=False)
    page = serializers.IntegerField(min_value=1, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, required=False)
    trending = serializers.CharField(required=False)

    def validate(self, attrs):
        if "club_ids" in attrs:
            attrs["club_ids"] = parse_int_list(attrs["club_ids"])
        if "allow_teams" in attrs:
            attrs["allow_teams"] = parse_bool(attrs["allow_teams"])
        attrs["trending"] = bool(parse_bool(attrs.get("trending")))
        return attrs


# -----------------------------------------
# REGISTRATION
# -----------------------------------------
class RegistrationSerializer(serializers.ModelSerializer):
    event_title = serializers.CharField(source="event.title", read_only=True)
    event_start_time = serializers.DateTimeField(source="event.start_time", read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    has_ticket = serializers.BooleanField(read_only=True)

    class Meta:
        model = EventRegistration
        fields = [
            "id",
            "ticket_id",
            "event",
            "event_title",
            "event_start_time",
            "user",
            "username",
            "participant_name",
            "email",
            "phone",
            "status",
            "payment_status",
            "payment_amount",
            "amount_paid",
            "payment_method",
            "transaction_id",
            "payment_screenshot",
            "is_team",
            "team_name",
            "team_leader",
            "team_members",
            "variant_sku",
            "size",
            "color",
            "quantity",
            "unit_price",
            "total_price",
            "custom_field_responses",
            "checked_in",
            "check_in_time",
            "has_ticket",
            "ticket_qr",
            "ticket_issued_at",
            "registered_at",
            "updated_at",
        ]
        read_only_fields = fields


class RegistrationMerchandiseSerializer(serializers.Serializer):
    variant_sku = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)
    size = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    color = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
    quantity = serializers.IntegerField(required=False, allow_null=True)


class RegistrationCreateSerializer(serializers.Serializer):
    event_id = serializers.IntegerField()
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    team_name = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    team_leader = serializers.JSONField(required=False, allow_null=True)
    team_members = serializers.ListField(child=serializers.JSONField(), required=False)
    custom_field_responses = serializers.JSONField(required=False)
    merchandise = RegistrationMerchandiseSerializer(required=False)

    def validate_team_name(self, value):
        return sanitize_text(value, max_length=100) if value else value

    def validate_custom_field_responses(self, value):
        if value is not None and not isinstance(value, dict):
            raise serializers.ValidationError("Expected an object keyed by field id.")
        return value or {}


class PaymentUpdateSerializer(serializers.Serializer):
    payment_status = NormalizedChoiceField(choices=EventRegistration.PAYMENT_CHOICES)
    payment_method = serializers.CharField(max_length=64, required=False, allow_blank=True)
    transaction_id = serializers.CharField(max_length=255, required=False, allow_blank=True)
    amount_paid = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class PaymentProofSerializer(serializers.Serializer):
    payment_screenshot = serializers.CharField(max_length=1024)


class RegistrationStatusSerializer(serializers.Serializer):
    status = NormalizedChoiceField(choices=EventRegistration.STATUS_CHOICES)


class TicketScanSerializer(serializers.Serializer):
    ticket = serializers.CharField()
    event_id = serializers.IntegerField(required=False)
