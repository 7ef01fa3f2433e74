from django.contrib import admin
from django.urls import path, include
from core.views import HealthCheckView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/events/', include('events.urls')),
    path('api/registrations/', include('events.urls_registrations')),
    path('api/admin/', include('events.urls_admin')),
    path('api/organizer/', include('events.urls_organizer')),
    path("api/health/", HealthCheckView.as_view(), name="health-check"),
]
