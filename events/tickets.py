# events/tickets.py
"""
Ticket issuer.

A ticket is the registration's ticket id plus a QR code whose content is the
canonical JSON payload below. Issuance is idempotent: the QR is written with
a conditional update on `ticket_qr IS NULL`, so only the first issuer commits
and only that issuer sends the ticket mail.
"""
from io import BytesIO
import base64
import binascii
import json
import logging
import secrets
import string

import qrcode
from django.conf import settings
from django.db.models import Q

from . import datetime_utils
from .models import EventRegistration

logger = logging.getLogger('eventhub.tickets')

TICKET_PREFIX = "EVT"
TICKET_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
TICKET_SUFFIX_LENGTH = 9

DATA_URL_PREFIX = "data:image/png;base64,"


def generate_ticket_id(clock=None) -> str:
    """EVT-<unix-ms>-<9 upper alnum>"""
    current = (clock or datetime_utils.now)()
    millis = int(current.timestamp() * 1000)
    suffix = "".join(secrets.choice(TICKET_SUFFIX_ALPHABET) for _ in range(TICKET_SUFFIX_LENGTH))
    return f"{TICKET_PREFIX}-{millis}-{suffix}"


def build_ticket_payload(registration, event) -> dict:
    # Key order is part of the format
    return {
        "ticketId": registration.ticket_id,
        "registrationId": registration.pk,
        "eventId": event.pk,
        "eventTitle": event.title,
        "participantName": registration.participant_name,
        "participantEmail": registration.email,
    }


def serialize_ticket_payload(payload: dict) -> str:
    """Canonical form: insertion order kept, no whitespace."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def render_qr_png(content: str) -> bytes:
    qr = qrcode.QRCode(
        box_size=getattr(settings, "TICKET_QR_BOX_SIZE", 8),
        border=getattr(settings, "TICKET_QR_BORDER", 2),
    )
    qr.add_data(content)
    qr.make(fit=True)
    img = qr.make_image()

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_data_url(content: str) -> str:
    png = render_qr_png(content)
    return DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")


def png_from_data_url(data_url: str) -> bytes:
    if not data_url or not data_url.startswith(DATA_URL_PREFIX):
        return b""
    try:
        return base64.b64decode(data_url[len(DATA_URL_PREFIX):])
    except (binascii.Error, ValueError):
        return b""


def ticket_id_from_scan(scanned: str) -> str:
    """
    Accept either the raw QR content (the JSON payload) or a typed ticket id.
    """
    text = (scanned or "").strip()
    if text.startswith("{"):
        try:
            payload = json.loads(text)
        except ValueError:
            return ""
        if isinstance(payload, dict):
            return str(payload.get("ticketId") or "").strip()
        return ""
    return text


def issue_ticket(registration: EventRegistration, event, mailer=None, clock=None) -> EventRegistration:
    """
    Render and persist the ticket QR, then hand it to the mailer.

    Already-issued registrations are returned unchanged. Mail failures are
    logged and swallowed; they never undo issuance.
    """
    if registration.ticket_qr:
        return registration

    payload = build_ticket_payload(registration, event)
    content = serialize_ticket_payload(payload)
    data_url = render_qr_data_url(content)
    issued_at = (clock or datetime_utils.now)()

    updated = (
        EventRegistration.objects
        .filter(pk=registration.pk)
        .filter(Q(ticket_qr__isnull=True) | Q(ticket_qr=""))
        .update(ticket_qr=data_url, ticket_issued_at=issued_at)
    )
    if not updated:
        # Lost the race to another issuer; keep their QR
        registration.refresh_from_db(fields=["ticket_qr", "ticket_issued_at"])
        return registration

    registration.ticket_qr = data_url
    registration.ticket_issued_at = issued_at
    logger.info(f"Ticket issued: registration={registration.pk}, ticket={registration.ticket_id}")

    if mailer is not None:
        try:
            mailer.send_ticket(
                to=registration.email,
                event_title=event.title,
                ticket_id=registration.ticket_id,
                qr_data_url=data_url,
                participant_name=registration.participant_name,
            )
        except Exception as exc:
            logger.warning(f"Ticket mail failed: registration={registration.pk}, error={exc}")

    return registration
