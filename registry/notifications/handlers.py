import logging
from django.conf import settings
from django.core.mail import send_mail

from registry.notifications import messages
from registry.notifications.consumer import UndeliverableMessage

logger = logging.getLogger(__name__)


def handle_notification_requested(message: dict):
    """
    Deliver a ``notification.requested`` message by email.

    Expected message format:
    {
        "event": "registration.approved",
        "payload": {"email": "ana@example.com", "first_name": "Ana", ...},
        "requestedAt": "2026-10-17T08:00:00+00:00"
    }

    Applicants who registered without an email are skipped; they follow
    their request through the reference-number lookup instead.
    """
    event = message.get("event")
    payload = message.get("payload")
    if not event or not isinstance(payload, dict):
        raise UndeliverableMessage("Notification message missing event or payload")

    recipient = payload.get("email")
    if not recipient:
        logger.info(f"Skipping {event} notification: applicant has no email address")
        return

    subject, body = messages.render(event, payload)
    # Raises on SMTP failure so the consumer requeues the message
    send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [recipient])
    logger.info(f"Sent {event} notification")
