from .events import (
    EventListCreateView,
    MyEventsView,
    EventDetailView,
    EventApprovalView,
    EventPublishView,
)
from .registrations import (
    RegisterEventView,
    MyRegistrationsView,
    OrganizerRegistrationsView,
    EventRegistrationsView,
    RegistrationDetailView,
    RegistrationPaymentView,
    PaymentProofView,
    CheckInView,
    TicketCheckInView,
    CancelRegistrationView,
    RegistrationStatusView,
)
from .stats import SystemStatsView, RegistrationStatsView, OrganizerStatsView, EventStatsView
