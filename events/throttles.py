# events/throttles.py

from rest_framework.throttling import SimpleRateThrottle


class RegistrationCreateThrottle(SimpleRateThrottle):
    """
    Throttle registration attempts per user per event.

    Scope key: 'registration-create'
    Cache key shape:
      throttle_registration-create_u<user_id>_e<event_id or none>
    """
    scope = "registration-create"

    def get_cache_key(self, request, view):
        # Only throttle POST (registration create)
        if request.method != "POST":
            return None

        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None

        event_id = request.data.get("event_id") or "none"
        return f"throttle_{self.scope}_u{user.id}_e{event_id}"


class TicketCheckInThrottle(SimpleRateThrottle):
    """
    Throttle check-in scans per scanning user.

    Scope key: 'ticket-checkin'
    """
    scope = "ticket-checkin"

    def get_cache_key(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None
        return f"throttle_{self.scope}_u{user.id}"
