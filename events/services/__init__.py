from .events import EventService
from .registrations import RegistrationService
from .stats import (
    get_event_registration_stats,
    get_organizer_stats,
    get_registration_stats,
    get_system_stats,
)

__all__ = [
    "EventService",
    "RegistrationService",
    "get_event_registration_stats",
    "get_organizer_stats",
    "get_registration_stats",
    "get_system_stats",
]
