# events/emails.py
from email.mime.image import MIMEImage
import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils.html import escape

from .tickets import png_from_data_url

logger = logging.getLogger('eventhub.tickets')

TICKET_QR_CID = "ticket-qr"


def build_event_url(event):
    """
    Public event link on the front-end.
    Returns None if FRONTEND_URL is not configured.
    """
    base = getattr(settings, "FRONTEND_URL", "") or ""
    if not base:
        return None
    return f"{base.rstrip('/')}/event/{event.pk}"


class TicketMailer:
    """
    Sends the ticket mail with the QR attached inline (Content-ID <ticket-qr>).

    Uses whatever EMAIL_BACKEND is configured (console in dev, locmem in tests).
    """

    def __init__(self, from_email=None, connection=None):
        self.from_email = from_email or getattr(settings, "DEFAULT_FROM_EMAIL", None)
        self.connection = connection

    def send_ticket(self, to, event_title, ticket_id, qr_data_url, participant_name=None):
        if not to:
            # No email set, nothing to send
            return False

        name = participant_name or "there"
        subject = f"Your Ticket: {event_title}"

        text = (
            f"Hi {name},\n\n"
            f"Your ticket for {event_title} is confirmed.\n"
            f"Ticket ID: {ticket_id}\n\n"
            f"Please keep the attached QR code ready at check-in.\n\n"
            f"Thanks,\n"
            f"EventHub"
        )
        html = (
            f"<p>Hi {escape(name)},</p>"
            f"<p>Your ticket for <strong>{escape(event_title)}</strong> is confirmed.</p>"
            f"<p><strong>Ticket ID:</strong> {escape(ticket_id)}</p>"
            f"<p>Please keep this QR code ready at check-in.</p>"
            f'<img src="cid:{TICKET_QR_CID}" alt="Ticket QR" style="max-width:240px;" />'
            f"<p>Thanks,<br/>EventHub</p>"
        )

        message = EmailMultiAlternatives(
            subject=subject,
            body=text,
            from_email=self.from_email,
            to=[to],
            connection=self.connection,
        )
        message.attach_alternative(html, "text/html")
        message.mixed_subtype = "related"

        png = png_from_data_url(qr_data_url)
        if png:
            image = MIMEImage(png, _subtype="png")
            image.add_header("Content-ID", f"<{TICKET_QR_CID}>")
            image.add_header("Content-Disposition", "inline", filename=f"{ticket_id}.png")
            message.attach(image)

        message.send(fail_silently=False)
        logger.info(f"Ticket mail sent: ticket={ticket_id}, to={to}")
        return True
