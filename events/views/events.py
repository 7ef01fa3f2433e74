from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework import status

from core.responses import paginated_response, success_response
from events.serializers import (
    EventApprovalSerializer,
    EventInputSerializer,
    EventListQuerySerializer,
    EventSerializer,
)
from events.tasks import dispatch_intents

from .generics import event_service, validated


class EventListCreateView(APIView):
    """
    GET  /api/events/   filtered, paginated listing (or ?trending=true); open to anonymous callers
    POST /api/events/   create (organizer/admin)
    """
    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request):
        query = validated(EventListQuerySerializer, request.query_params)
        events, total, page, limit = event_service().list_events(request.user, query)
        data = EventSerializer(events, many=True, context={"request": request}).data

        if query.get("trending"):
            return success_response(data, count=len(data), trending=True)
        return paginated_response(data, page, limit, total)

    def post(self, request):
        data = validated(EventInputSerializer, request.data)
        event = event_service().create_event(request.user, data)
        return success_response(
            EventSerializer(event, context={"request": request}).data,
            message="Event created",
            status_code=status.HTTP_201_CREATED,
        )


class MyEventsView(APIView):
    """
    GET /api/events/mine/
    The organizer's own events, newest first.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        events = event_service().list_my_events(request.user)
        data = EventSerializer(events, many=True, context={"request": request}).data
        return success_response(data, count=len(data))


class EventDetailView(APIView):
    """
    GET/PUT/PATCH/DELETE /api/events/<id>/
    GET is public for approved events.

    PUT and PATCH both apply a partial patch through the editability guard.
    """
    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request, pk):
        event = event_service().get_event(request.user, pk)
        return success_response(EventSerializer(event, context={"request": request}).data)

    def put(self, request, pk):
        patch = dict(validated(EventInputSerializer, request.data, partial=True))
        patch.pop("publish_now", None)
        event = event_service().update_event(request.user, pk, patch)
        return success_response(
            EventSerializer(event, context={"request": request}).data,
            message="Event updated",
        )

    def patch(self, request, pk):
        return self.put(request, pk)

    def delete(self, request, pk):
        event_service().delete_event(request.user, pk)
        return success_response(message="Event deleted")


class EventApprovalView(APIView):
    """
    PUT /api/events/<id>/approve/
    Body: {"status": "approved" | "rejected", "rejection_reason": "..."}
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, pk):
        data = validated(EventApprovalSerializer, request.data)
        event, intents = event_service().approve_event(
            request.user, pk, data["status"], data.get("rejection_reason")
        )
        dispatch_intents(intents)
        return success_response(
            EventSerializer(event, context={"request": request}).data,
            message=f"Event {event.status}",
            intents=[intent.name for intent in intents],
        )


class EventPublishView(APIView):
    """
    PUT /api/events/<id>/publish/
    Submit for admin approval.
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, pk):
        event = event_service().publish_event(request.user, pk)
        return success_response(
            EventSerializer(event, context={"request": request}).data,
            message="Event submitted for approval",
        )
