from django.urls import path
from .views import OrganizerStatsView

urlpatterns = [
    path("stats/", OrganizerStatsView.as_view(), name="organizer-stats"),
]
