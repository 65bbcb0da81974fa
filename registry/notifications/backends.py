"""
Notification backends.

Services never talk to the broker directly. They receive a notifier
(built from ``settings.NOTIFICATION_BACKEND``) and hand it an event name and
a payload; delivery happens out of band in the notification consumer.
"""

import logging
from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string

from registry.notifications.publisher import RabbitMQPublisher

logger = logging.getLogger(__name__)

REGISTRATION_SUBMITTED = "registration.submitted"
REGISTRATION_APPROVED = "registration.approved"
REGISTRATION_REJECTED = "registration.rejected"


class BaseNotifier:
    def notify(self, event: str, payload: dict) -> bool:
        """Queue a notification. Returns True if it was accepted for delivery."""
        raise NotImplementedError

    @staticmethod
    def build_message(event: str, payload: dict) -> dict:
        return {"event": event, "payload": payload, "requestedAt": timezone.now().isoformat()}


class RabbitMQNotifier(BaseNotifier):
    """Publishes notification requests to the RabbitMQ notification queue."""

    def __init__(self, queue_name: str = None):
        self.queue_name = queue_name or settings.RABBITMQ_NOTIFICATION_QUEUE

    def notify(self, event: str, payload: dict) -> bool:
        with RabbitMQPublisher(self.queue_name) as publisher:
            return publisher.publish(self.build_message(event, payload))


class LocMemNotifier(BaseNotifier):
    """
    Keeps notifications in memory. Used by the test settings.

    Accepted messages are collected on ``LocMemNotifier.outbox``, like
    django.core.mail.outbox for the locmem email backend.
    """

    outbox = []

    def notify(self, event: str, payload: dict) -> bool:
        self.outbox.append(self.build_message(event, payload))
        return True


class NullNotifier(BaseNotifier):
    def notify(self, event: str, payload: dict) -> bool:
        logger.debug(f"Discarding {event} notification")
        return True


def get_notifier(backend: str = None) -> BaseNotifier:
    """Instantiate the configured notification backend."""
    return import_string(backend or settings.NOTIFICATION_BACKEND)()


def dispatch(notifier: BaseNotifier, event: str, payload: dict) -> bool:
    """
    Best-effort delivery: failures are logged and reported as False, never raised.

    Callers run this after their transaction commits, so a broker outage
    cannot undo a decision that has already been recorded.
    """
    try:
        accepted = notifier.notify(event, payload)
    except Exception:
        logger.exception(f"Notifier {type(notifier).__name__} failed for {event}")
        return False

    if not accepted:
        logger.warning(f"Notification {event} was not accepted for delivery")
    return accepted
