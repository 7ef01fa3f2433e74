from django.urls import path
from .views import (
    RegisterEventView,
    MyRegistrationsView,
    OrganizerRegistrationsView,
    EventRegistrationsView,
    TicketCheckInView,
    RegistrationDetailView,
    RegistrationPaymentView,
    PaymentProofView,
    CheckInView,
    CancelRegistrationView,
    RegistrationStatusView,
)

urlpatterns = [
    path("", RegisterEventView.as_view(), name="registration-create"),
    path("mine/", MyRegistrationsView.as_view(), name="my-registrations"),
    path("organizer/", OrganizerRegistrationsView.as_view(), name="organizer-registrations"),
    path("event/<int:event_id>/", EventRegistrationsView.as_view(), name="event-registrations"),
    path("checkin/", TicketCheckInView.as_view(), name="ticket-checkin"),
    path("<int:pk>/", RegistrationDetailView.as_view(), name="registration-detail"),
    path("<int:pk>/payment/", RegistrationPaymentView.as_view(), name="registration-payment"),
    path("<int:pk>/payment-proof/", PaymentProofView.as_view(), name="registration-payment-proof"),
    path("<int:pk>/checkin/", CheckInView.as_view(), name="registration-checkin"),
    path("<int:pk>/cancel/", CancelRegistrationView.as_view(), name="registration-cancel"),
    path("<int:pk>/status/", RegistrationStatusView.as_view(), name="registration-status"),
]
