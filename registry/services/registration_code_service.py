import logging
from django.utils.crypto import get_random_string

from registry.exceptions import InvalidStateError, NotFoundError, ProvisioningError, ValidationError
from registry.models import Account, RegistrationCode

logger = logging.getLogger(__name__)

CODE_MAX_ATTEMPTS = 5


def generate_code() -> str:
    return f"RC-{get_random_string(6, allowed_chars='0123456789')}"


class RegistrationCodeService:
    """Admin management of head-of-family registration codes."""

    def list_codes(self):
        return RegistrationCode.objects.select_related("used_by").order_by("-created_at")

    def create_code(self, owner_name: str, created_by: Account) -> RegistrationCode:
        owner_name = (owner_name or "").strip()
        if not owner_name:
            raise ValidationError("Owner name is required.")

        for _ in range(CODE_MAX_ATTEMPTS):
            code = generate_code()
            if not RegistrationCode.objects.filter(code=code).exists():
                registration_code = RegistrationCode.objects.create(
                    code=code, owner_name=owner_name, created_by=created_by
                )
                logger.info(f"Registration code {code} issued by account {created_by.pk}")
                return registration_code
        raise ProvisioningError("Could not allocate a unique registration code")

    def delete_code(self, code_id: int):
        """Delete an unused code. Used codes are kept as part of the audit trail."""
        registration_code = RegistrationCode.objects.filter(pk=code_id).first()
        if registration_code is None:
            raise NotFoundError("Registration code not found")
        if registration_code.is_used:
            raise InvalidStateError("Cannot delete a used code.")
        registration_code.delete()
        logger.info(f"Registration code {registration_code.code} deleted")
