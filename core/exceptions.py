from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response
import logging

logger = logging.getLogger("eventhub.core")


class DomainError(exceptions.APIException):
    """
    Base for every business error raised by the services.

    `kind` names the error family (NotFound, Rejected, ...), `reason` is the
    machine-readable refusal inside that family (Full, OutOfStock, ...).
    """
    kind = "Internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error."
    default_code = "internal"

    def __init__(self, message=None, reason=None):
        super().__init__(detail=message or self.default_detail, code=reason or self.default_code)
        self.message = str(self.detail)
        self.reason = reason

    def __str__(self):
        if self.reason:
            return f"{self.kind}({self.reason}): {self.message}"
        return f"{self.kind}: {self.message}"


class NotFound(DomainError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class Unauthorized(DomainError):
    kind = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required."
    default_code = "unauthorized"


class Forbidden(DomainError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."
    default_code = "forbidden"


class Conflict(DomainError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"


class Rejected(DomainError):
    kind = "Rejected"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request rejected."
    default_code = "rejected"


class Invalid(DomainError):
    kind = "Invalid"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "invalid"


class Internal(DomainError):
    pass


def error_payload(kind, message, reason=None, errors=None, status_code=None):
    payload = {
        "success": False,
        "kind": kind,
        "message": message,
        "reason": reason,
    }
    if errors is not None:
        payload["errors"] = errors
    if status_code is not None:
        payload["status_code"] = status_code
    return payload


def _kind_for_status(status_code):
    return {
        400: "Invalid",
        401: "Unauthorized",
        403: "Forbidden",
        404: "NotFound",
        405: "Invalid",
        409: "Conflict",
        429: "Rejected",
    }.get(status_code, "Internal" if status_code >= 500 else "Invalid")


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django + domain exceptions into the response envelope:
    {"success": false, "kind": ..., "message": ..., "reason": ..., "errors"?: ...}

    Success responses (2xx) are not touched.
    """
    if isinstance(exc, DomainError):
        if exc.status_code >= 500:
            logger.error(f"Internal domain error: {exc}")
        response = Response(
            error_payload(exc.kind, exc.message, reason=exc.reason, status_code=exc.status_code),
            status=exc.status_code,
        )
        if isinstance(exc, Unauthorized):
            response["WWW-Authenticate"] = 'Bearer realm="api"'
        return response

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        if isinstance(exc, exceptions.ValidationError):
            message = "Validation failed."
            errors = response.data
        else:
            message = str(getattr(exc, "detail", "")) or "Request failed."
            errors = None
        response.data = error_payload(
            _kind_for_status(response.status_code),
            message,
            errors=errors,
            status_code=response.status_code,
        )
        return response

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        error_payload(
            "Internal",
            "Internal server error.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
