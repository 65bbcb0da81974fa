import logging
from functools import partial
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from registry.models import RegistrationRequest
from registry.notifications import backends

logger = logging.getLogger(__name__)


@receiver(post_save, sender=RegistrationRequest)
def registration_request_post_save(sender, instance, created, **kwargs):
    """Acknowledge a new submission to applicants who gave an email address."""
    if not created or not instance.email:
        return

    payload = {
        "email": instance.email,
        "first_name": instance.first_name,
        "reference_number": instance.reference_number,
    }
    logger.debug(f"Queueing acknowledgement for {instance.reference_number}")
    transaction.on_commit(
        partial(backends.dispatch, backends.get_notifier(), backends.REGISTRATION_SUBMITTED, payload)
    )
