from rest_framework.permissions import BasePermission


# ---- Permission classes -----------------------------------------------
# Role-level gates for dashboard endpoints. Object-level rules (ownership,
# event organizer) live in events.policies and are applied by the services.


class IsAdminRole(BasePermission):
    """
    Only users with the admin role (or superusers).
    """
    message = "Admin access required"

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class IsOrganizerOrAdmin(BasePermission):
    """
    Organizer dashboards: organizer role or admin.
    """
    message = "Organizer access required"

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_admin or user.is_organizer
