import logging
import random
from datetime import date
from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from registry.exceptions import (
    AuthorizationError,
    NotFoundError,
    ProvisioningError,
    ValidationError,
)
from registry.models import Account, Household, RegistrationCode, RegistrationRequest

logger = logging.getLogger(__name__)

REFERENCE_MAX_ATTEMPTS = 5


def generate_reference_number(today: date = None) -> str:
    """Human-shareable lookup key, e.g. ``REF-20261017-4821``."""
    today = today or timezone.localdate()
    return f"REF-{today:%Y%m%d}-{random.randint(1000, 9999)}"


def age_on(birthdate: date, today: date) -> int:
    had_birthday = (today.month, today.day) >= (birthdate.month, birthdate.day)
    return today.year - birthdate.year - (0 if had_birthday else 1)


def normalize_household_number(value):
    """Accept ``"12"``, ``" 12 "`` or ``"HH-12"`` and return ``"12"``; blank becomes None."""
    if value is None:
        return None
    value = str(value).strip().upper()
    if value.startswith("HH-"):
        value = value[3:]
    return value or None


class RegistrationService:
    """Service class for applicant intake and registration request queries."""

    def submit(self, data: dict) -> RegistrationRequest:
        """
        Record a new PENDING registration request.

        Args:
            data: Validated applicant fields (see RegistrationSubmitSerializer).
                  A head-of-family applicant must include ``registration_code``.

        Returns:
            RegistrationRequest: the stored request with its reference number

        Raises:
            ValidationError: unknown household number or unusable registration code
        """
        data = dict(data)
        code_value = (data.pop("registration_code", None) or "").strip()
        is_head = bool(data.get("is_head_of_family"))

        data["email"] = (data.get("email") or "").strip() or None
        data["household_number"] = normalize_household_number(data.get("household_number"))
        if is_head:
            data["household_number"] = None
            data["head_id"] = None
        elif data["household_number"]:
            self._check_household_exists(data["household_number"])

        data["is_senior"] = age_on(data["birthdate"], timezone.localdate()) >= settings.SENIOR_AGE

        with transaction.atomic():
            if is_head:
                data["registration_code"] = self._consume_registration_code(
                    code_value, data["first_name"], data["last_name"]
                )
            request = self._create_with_reference(data)

        logger.info(
            f"Registration request {request.reference_number} submitted for role {request.role}"
        )
        return request

    def _check_household_exists(self, household_number: str):
        if not household_number.isdigit():
            raise ValidationError("Invalid household number format. Must be numeric.")
        if not Household.objects.filter(pk=int(household_number)).exists():
            raise ValidationError("Invalid household number. No household found with this ID.")

    def _consume_registration_code(self, code_value: str, first_name: str, last_name: str):
        if not code_value:
            raise ValidationError("Registration code is required for head of the family.")

        code = RegistrationCode.objects.select_for_update().filter(code=code_value).first()
        if code is None or code.is_used:
            raise ValidationError("Invalid or already used registration code.")
        if not code.belongs_to(first_name, last_name):
            raise ValidationError("This registration code does not belong to you.")

        code.is_used = True
        code.save(update_fields=["is_used"])
        return code

    def _create_with_reference(self, data: dict) -> RegistrationRequest:
        for _ in range(REFERENCE_MAX_ATTEMPTS):
            reference_number = generate_reference_number()
            if RegistrationRequest.objects.filter(reference_number=reference_number).exists():
                continue
            try:
                with transaction.atomic():
                    return RegistrationRequest.objects.create(
                        reference_number=reference_number,
                        status=RegistrationRequest.PENDING,
                        **data,
                    )
            except IntegrityError:
                # A concurrent submission took the same number
                logger.warning(f"Reference number {reference_number} already taken, retrying")
        raise ProvisioningError("Could not allocate a reference number, please try again")

    def lookup(self, reference_number: str) -> dict:
        """
        Status of a request by its reference number (for applicants without email).

        Returns:
            dict: name, status and role; approved email-less applicants also get
                  their username and temporary password until they change it
        """
        reference_number = (reference_number or "").strip().upper()
        if not reference_number:
            raise ValidationError("Reference number required")

        request = (
            RegistrationRequest.objects.select_related("account")
            .filter(reference_number=reference_number)
            .first()
        )
        if request is None:
            raise NotFoundError("Reference number not found")

        result = {
            "reference_number": request.reference_number,
            "first_name": request.first_name,
            "last_name": request.last_name,
            "name": request.full_name,
            "status": request.status,
            "role": request.role,
        }
        if (
            request.status == RegistrationRequest.APPROVED
            and not request.email
            and request.account is not None
            and request.temp_password
        ):
            result["username"] = request.account.username
            result["temp_password"] = request.temp_password
        return result

    def list_for_reviewer(self, reviewer: Account, status: str = None):
        """
        Registration requests visible to a reviewer, newest first.

        Staff only see RESIDENT requests; admins see every role.
        """
        if reviewer.role == Account.ADMIN:
            queryset = RegistrationRequest.objects.all()
        elif reviewer.role == Account.STAFF:
            queryset = RegistrationRequest.objects.filter(role=Account.RESIDENT)
        else:
            raise AuthorizationError("Only staff and admins can review registration requests")

        if status:
            status = status.upper()
            if status not in dict(RegistrationRequest.STATUS_CHOICES):
                raise ValidationError(f"Unknown status: {status}")
            queryset = queryset.filter(status=status)

        return queryset.select_related("approved_by", "rejected_by").order_by("-submitted_at")
