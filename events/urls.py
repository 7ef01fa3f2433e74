from django.urls import path
from .views import (
    EventListCreateView,
    MyEventsView,
    EventDetailView,
    EventApprovalView,
    EventPublishView,
    EventStatsView,
)

# Registrations, admin and organizer dashboards live in their own url modules
urlpatterns = [
    path("", EventListCreateView.as_view(), name="event-list-create"),
    path("mine/", MyEventsView.as_view(), name="my-events"),
    path("<int:pk>/", EventDetailView.as_view(), name="event-detail"),
    path("<int:pk>/approve/", EventApprovalView.as_view(), name="event-approve"),
    path("<int:pk>/publish/", EventPublishView.as_view(), name="event-publish"),
    path("<int:pk>/stats/", EventStatsView.as_view(), name="event-stats"),
]
