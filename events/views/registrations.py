from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from core.responses import success_response
from events.serializers import (
    PaymentProofSerializer,
    PaymentUpdateSerializer,
    RegistrationCreateSerializer,
    RegistrationSerializer,
    RegistrationStatusSerializer,
    TicketScanSerializer,
)
from events.throttles import RegistrationCreateThrottle, TicketCheckInThrottle

from .generics import registration_service, validated


def _registration_data(registration):
    return RegistrationSerializer(registration).data


class RegisterEventView(APIView):
    """
    POST /api/registrations/
    Body: {"event_id", "team_name"?, "team_members"?, "custom_field_responses"?,
           "merchandise"?: {"variant_sku"|"size"+"color", "quantity"}}
    """
    permission_classes = [IsAuthenticated]
    throttle_classes = [RegistrationCreateThrottle]

    def post(self, request):
        data = validated(RegistrationCreateSerializer, request.data)
        registration = registration_service().register(request.user, data)

        message = "Registration confirmed" if registration.has_ticket else "Registration pending payment"
        return success_response(
            _registration_data(registration),
            message=message,
            status_code=status.HTTP_201_CREATED,
        )


class MyRegistrationsView(APIView):
    """GET /api/registrations/mine/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        registrations = registration_service().list_my_registrations(request.user)
        data = RegistrationSerializer(registrations, many=True).data
        return success_response(data, count=len(data))


class OrganizerRegistrationsView(APIView):
    """GET /api/registrations/organizer/ - registrations across the organizer's events."""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        registrations = registration_service().list_organizer_registrations(request.user)
        data = RegistrationSerializer(registrations, many=True).data
        return success_response(data, count=len(data))


class EventRegistrationsView(APIView):
    """
    GET /api/registrations/event/<event_id>/
    Organizer/admin list plus per-event stats.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        registrations, stats = registration_service().list_event_registrations(request.user, event_id)
        data = RegistrationSerializer(registrations, many=True).data
        return success_response(data, count=len(data), stats=stats)


class RegistrationDetailView(APIView):
    """GET /api/registrations/<id>/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        registration = registration_service().get_registration(request.user, pk)
        return success_response(_registration_data(registration))


class RegistrationPaymentView(APIView):
    """
    PUT /api/registrations/<id>/payment/
    Body: {"payment_status", "payment_method"?, "transaction_id"?, "amount_paid"?}
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, pk):
        data = validated(PaymentUpdateSerializer, request.data)
        registration = registration_service().update_payment_status(request.user, pk, data)
        return success_response(_registration_data(registration), message="Payment status updated")


class PaymentProofView(APIView):
    """
    PUT /api/registrations/<id>/payment-proof/
    Body: {"payment_screenshot": "<stored file reference>"}
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, pk):
        data = validated(PaymentProofSerializer, request.data)
        registration = registration_service().submit_payment_proof(
            request.user, pk, data["payment_screenshot"]
        )
        return success_response(_registration_data(registration), message="Payment proof submitted")


class CheckInView(APIView):
    """PUT /api/registrations/<id>/checkin/"""
    permission_classes = [IsAuthenticated]
    throttle_classes = [TicketCheckInThrottle]

    def put(self, request, pk):
        registration = registration_service().check_in(request.user, pk)
        return success_response(_registration_data(registration), message="Checked in")


class TicketCheckInView(APIView):
    """
    POST /api/registrations/checkin/
    Body: {"ticket": "<scanned QR content or ticket id>", "event_id"?}
    """
    permission_classes = [IsAuthenticated]
    throttle_classes = [TicketCheckInThrottle]

    def post(self, request):
        data = validated(TicketScanSerializer, request.data)
        registration = registration_service().check_in_by_ticket(
            request.user, data["ticket"], event_id=data.get("event_id")
        )
        return success_response(_registration_data(registration), message="Checked in")


class CancelRegistrationView(APIView):
    """PUT /api/registrations/<id>/cancel/"""
    permission_classes = [IsAuthenticated]

    def put(self, request, pk):
        registration = registration_service().cancel_registration(request.user, pk)
        return success_response(_registration_data(registration), message="Registration cancelled")


class RegistrationStatusView(APIView):
    """
    PUT /api/registrations/<id>/status/
    Body: {"status": "pending" | "confirmed" | "rejected" | "approved"}
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, pk):
        data = validated(RegistrationStatusSerializer, request.data)
        registration = registration_service().update_registration_status(request.user, pk, data["status"])
        return success_response(_registration_data(registration), message="Registration status updated")
