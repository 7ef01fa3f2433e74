from django.test import SimpleTestCase
from rest_framework import exceptions

from core.exceptions import Conflict, Rejected, Unauthorized, custom_exception_handler


class ExceptionHandlerTests(SimpleTestCase):
    def test_domain_error_envelope(self):
        response = custom_exception_handler(Rejected("Event is full", reason="Full"), {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {
            "success": False,
            "kind": "Rejected",
            "message": "Event is full",
            "reason": "Full",
            "status_code": 400,
        })

    def test_unauthorized_sets_challenge(self):
        response = custom_exception_handler(Unauthorized(), {})
        self.assertEqual(response.status_code, 401)
        self.assertIn("Bearer", response["WWW-Authenticate"])

    def test_conflict_str(self):
        self.assertEqual(str(Conflict("Taken", reason="AlreadyRegistered")), "Conflict(AlreadyRegistered): Taken")

    def test_drf_validation_error(self):
        response = custom_exception_handler(exceptions.ValidationError({"event_id": ["required"]}), {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["kind"], "Invalid")
        self.assertEqual(response.data["errors"], {"event_id": ["required"]})

    def test_unhandled_exception_becomes_internal(self):
        with self.assertLogs("eventhub.core", level="ERROR"):
            response = custom_exception_handler(RuntimeError("boom"), {})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["kind"], "Internal")
