from django.urls import path
from .views import SystemStatsView, RegistrationStatsView

urlpatterns = [
    path("stats/", SystemStatsView.as_view(), name="admin-stats"),
    path("registrations/stats/", RegistrationStatsView.as_view(), name="admin-registration-stats"),
]
