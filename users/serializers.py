from rest_framework import serializers
from .models import User


class UserSummarySerializer(serializers.ModelSerializer):
    """
    Hydrated view of a user, used wherever a response embeds a user record
    next to its id (event organizer, dashboard activity).
    """
    name = serializers.CharField(source="display_name", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "name",
            "email",
            "role",
            "participant_type",
            "date_joined",
        ]
        read_only_fields = fields
