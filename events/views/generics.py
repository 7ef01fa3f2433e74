from events.emails import TicketMailer
from events.services import EventService, RegistrationService


def event_service():
    """Factory used by the views; tests patch it to inject a clock."""
    return EventService()


def registration_service():
    """Factory used by the views; tests patch it to inject a mailer or clock."""
    return RegistrationService(mailer=TicketMailer())


def validated(serializer_class, data, **kwargs):
    """
    Run a serializer and return validated_data.
    Validation errors propagate to the envelope handler as Invalid.
    """
    serializer = serializer_class(data=data, **kwargs)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data
