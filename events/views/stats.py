from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated

from core.responses import success_response
from events.permissions import IsAdminRole, IsOrganizerOrAdmin
from events.services import get_organizer_stats, get_registration_stats, get_system_stats

from .generics import event_service


class SystemStatsView(APIView):
    """
    GET /api/admin/stats/
    Users, events, registrations, payments and recent activity.
    """
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        return success_response(get_system_stats())


class RegistrationStatsView(APIView):
    """GET /api/admin/registrations/stats/"""
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        return success_response(get_registration_stats())


class OrganizerStatsView(APIView):
    """GET /api/organizer/stats/ - the caller's own events."""
    permission_classes = [IsAuthenticated, IsOrganizerOrAdmin]

    def get(self, request):
        return success_response(get_organizer_stats(request.user))


class EventStatsView(APIView):
    """GET /api/events/<id>/stats/ - per-event registration counters."""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        return success_response(event_service().get_event_stats(request.user, pk))
