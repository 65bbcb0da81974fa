"""Plain-text email bodies for registration notifications."""

from django.conf import settings

from registry.notifications import backends
from registry.notifications.consumer import UndeliverableMessage


def _approved(payload: dict):
    lines = [
        f"Hello {payload.get('first_name', '')},",
        "",
        "Your registration has been approved!",
        f"Username: {payload['username']}",
        f"Temporary Password: {payload['temp_password']}",
    ]
    if payload.get("household_number"):
        lines.append(f"Household Number: {payload['household_number']}")
    if payload.get("head_id"):
        lines.append(f"Head ID: {payload['head_id']}")
    lines += ["", "Please log in and change your password immediately."]
    return "Registration Approved", lines


def _rejected(payload: dict):
    lines = [
        f"Hello {payload.get('first_name', '')},",
        "",
        "We regret to inform you that your registration request has been rejected.",
    ]
    if payload.get("reason"):
        lines.append(f"Reason: {payload['reason']}")
    else:
        lines.append("If you believe this was a mistake, you may reapply with the correct details.")
    lines += ["", "Thank you for your understanding."]
    return "Registration Rejected", lines


def _submitted(payload: dict):
    lines = [
        f"Hello {payload.get('first_name', '')},",
        "",
        "We received your registration request.",
        f"Reference Number: {payload['reference_number']}",
        "Keep this number to check the status of your request.",
    ]
    return "Registration Received", lines


RENDERERS = {
    backends.REGISTRATION_APPROVED: _approved,
    backends.REGISTRATION_REJECTED: _rejected,
    backends.REGISTRATION_SUBMITTED: _submitted,
}


def render(event: str, payload: dict):
    """
    Build ``(subject, body)`` for a notification event.

    Raises:
        UndeliverableMessage: unknown event or a payload missing required fields
    """
    renderer = RENDERERS.get(event)
    if renderer is None:
        raise UndeliverableMessage(f"Unknown notification event: {event}")
    try:
        subject, lines = renderer(payload)
    except KeyError as e:
        raise UndeliverableMessage(f"{event} payload missing {e}") from e
    lines += ["", settings.BARANGAY_NAME]
    return f"{settings.BARANGAY_NAME}: {subject}", "\n".join(lines)
