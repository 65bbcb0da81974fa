"""
Registration approval workflow.

A staff or admin account decides a PENDING registration request. Rejection
only records the decision. Approval provisions, inside one transaction, the
applicant's Account, household linkage, Resident/Staff (or Admin) profile and
Digital ID, then marks the request APPROVED. Applicant notifications are sent
after the transaction commits and never affect the outcome.
"""

import logging
from dataclasses import asdict, dataclass
from functools import partial
from typing import Optional, Union
from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.crypto import get_random_string
from django.utils.text import slugify

from registry.exceptions import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ProvisioningError,
    ValidationError,
)
from registry.models import Account, Admin, Household, RegistrationRequest, Resident, Staff
from registry.notifications import backends
from registry.services.digital_id_service import DigitalIDService
from registry.services.registration_service import normalize_household_number

logger = logging.getLogger(__name__)

TEMP_PASSWORD_LENGTH = 8
TEMP_PASSWORD_CHARS = "abcdefghijkmnpqrstuvwxyz23456789"


@dataclass(frozen=True)
class Approve:
    pass


@dataclass(frozen=True)
class Reject:
    reason: Optional[str] = None


Decision = Union[Approve, Reject]


@dataclass
class Outcome:
    request_id: int
    approved: bool = False
    rejected: bool = False
    account_id: Optional[int] = None
    resident_id: Optional[int] = None
    staff_id: Optional[int] = None
    username: Optional[str] = None
    household_number: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class HouseholdLink:
    household: Optional[Household] = None
    household_number: Optional[str] = None
    head_id: Optional[int] = None


class ApprovalService:
    """Moves registration requests from PENDING to APPROVED or REJECTED."""

    def __init__(self, notifier: backends.BaseNotifier = None, digital_ids: DigitalIDService = None):
        self.notifier = notifier or backends.get_notifier()
        self.digital_ids = digital_ids or DigitalIDService()

    def decide(self, request_id: int, actor: Account, decision: Decision) -> Outcome:
        """
        Apply an approve/reject decision to a registration request.

        Args:
            request_id: Primary key of the RegistrationRequest
            actor: Authenticated staff or admin account making the decision
            decision: Approve() or Reject(reason)

        Returns:
            Outcome: decision result with the provisioned ids on approval

        Raises:
            AuthorizationError: actor may not decide requests of this role
            NotFoundError: no such request
            InvalidStateError: request was already decided
            ProvisioningError: username allocation or a database write failed
        """
        if not isinstance(decision, (Approve, Reject)):
            raise ValidationError(f"Unsupported decision: {decision!r}")
        self._check_reviewer(actor)

        try:
            with transaction.atomic():
                request = (
                    RegistrationRequest.objects.select_for_update().filter(pk=request_id).first()
                )
                if request is None:
                    raise NotFoundError("Request not found")
                self._check_role_combination(actor, request)
                if not request.is_pending:
                    raise InvalidStateError("request already decided")

                if isinstance(decision, Reject):
                    outcome, notification = self._reject(request, actor, decision)
                else:
                    outcome, notification = self._approve(request, actor)

                transaction.on_commit(partial(backends.dispatch, self.notifier, *notification))
        except DatabaseError as e:
            logger.error(f"Decision on registration request {request_id} rolled back: {str(e)}")
            raise ProvisioningError("Could not record the decision, please retry") from e

        return outcome

    def _check_reviewer(self, actor: Account):
        if actor is None or actor.role not in (Account.STAFF, Account.ADMIN):
            raise AuthorizationError("Only staff and admins can decide registration requests")
        if actor.role == Account.STAFF and not Staff.objects.filter(account=actor).exists():
            raise AuthorizationError("Access denied: no staff profile for this account")

    def _check_role_combination(self, actor: Account, request: RegistrationRequest):
        if actor.role == Account.STAFF and request.role != Account.RESIDENT:
            raise AuthorizationError("Staff can only decide RESIDENT registration requests")

    def _transition(self, request: RegistrationRequest, **changes):
        # Guard against a concurrent decision even where row locks are unavailable
        updated = RegistrationRequest.objects.filter(
            pk=request.pk, status=RegistrationRequest.PENDING
        ).update(**changes)
        if updated != 1:
            raise InvalidStateError("request already decided")
        for field, value in changes.items():
            setattr(request, field, value)

    def _reject(self, request: RegistrationRequest, actor: Account, decision: Reject):
        reason = (decision.reason or "").strip() or None
        self._transition(
            request,
            status=RegistrationRequest.REJECTED,
            rejected_by=actor,
            rejected_at=timezone.now(),
            rejection_reason=reason,
        )
        logger.info(f"Registration request {request.pk} rejected by account {actor.pk}")

        payload = {
            "email": request.email,
            "contact_no": request.contact_no,
            "first_name": request.first_name,
            "reference_number": request.reference_number,
            "reason": reason,
        }
        return Outcome(request_id=request.pk, rejected=True), (backends.REGISTRATION_REJECTED, payload)

    def _approve(self, request: RegistrationRequest, actor: Account):
        temp_password = get_random_string(TEMP_PASSWORD_LENGTH, allowed_chars=TEMP_PASSWORD_CHARS)
        account = Account(username=self._allocate_username(request), role=request.role)
        account.set_password(temp_password)
        account.save()

        outcome = Outcome(
            request_id=request.pk, approved=True, account_id=account.pk, username=account.username
        )
        profile = None
        if request.role == Account.ADMIN:
            Admin.objects.create(
                account=account,
                first_name=request.first_name,
                last_name=request.last_name,
                contact_no=request.contact_no,
                email=request.email,
            )
        else:
            profile = self._create_member_profile(request, account, actor)
            self.digital_ids.issue(profile, account, actor)
            outcome.household_number = profile.household_number
            if isinstance(profile, Resident):
                outcome.resident_id = profile.pk
            else:
                outcome.staff_id = profile.pk

        self._transition(
            request,
            status=RegistrationRequest.APPROVED,
            approved_by=actor,
            approved_at=timezone.now(),
            account=account,
            # Email-less applicants read their credentials through the reference lookup
            temp_password=None if request.email else temp_password,
        )
        logger.info(
            f"Registration request {request.pk} approved by account {actor.pk}, "
            f"provisioned account {account.pk}"
        )

        payload = {
            "email": request.email,
            "contact_no": request.contact_no,
            "first_name": request.first_name,
            "reference_number": request.reference_number,
            "username": account.username,
            "temp_password": temp_password,
            "household_number": profile.household_number if profile else None,
            "head_id": profile.head_id if profile else None,
        }
        return outcome, (backends.REGISTRATION_APPROVED, payload)

    def _allocate_username(self, request: RegistrationRequest) -> str:
        """
        Pick an unused username: the email if given, else the slugified surname.

        Collisions get a random numeric suffix, up to USERNAME_MAX_ATTEMPTS tries.
        """
        base = (request.email or "").strip().lower() or slugify(request.last_name)
        if not base:
            base = f"user{int(timezone.now().timestamp())}"

        for attempt in range(settings.USERNAME_MAX_ATTEMPTS):
            candidate = base if attempt == 0 else f"{base}_{get_random_string(4, '0123456789')}"
            if not Account.objects.filter(username=candidate).exists():
                return candidate

        raise ProvisioningError(f"Could not allocate a unique username for {base}")

    def _create_member_profile(self, request: RegistrationRequest, account: Account, actor: Account):
        model = Resident if request.role == Account.RESIDENT else Staff
        link = self._resolve_household(request, model)

        profile = model.objects.create(
            account=account,
            first_name=request.first_name,
            last_name=request.last_name,
            contact_no=request.contact_no or "",
            birthdate=request.birthdate,
            gender=request.gender or "",
            address=request.address or "",
            photo_url=request.photo_url or "",
            is_head_of_family=request.is_head_of_family,
            head_id=link.head_id,
            household=link.household,
            household_number=link.household_number,
            is_renter=request.is_renter,
            is_4ps_member=request.is_4ps_member,
            is_pwd=request.is_pwd,
            is_indigenous=request.is_indigenous,
            is_slp_beneficiary=request.is_slp_beneficiary,
            senior_mode=request.is_senior,
            issued_by=actor,
        )

        if request.is_head_of_family:
            # The head's own id is the head_id that members of the household quote
            profile.head_id = profile.pk
            profile.save(update_fields=["head_id"])
            head_field = "head_resident" if model is Resident else "head_staff"
            setattr(link.household, head_field, profile)
            link.household.save(update_fields=[head_field])
            if model is Resident and request.registration_code_id:
                request.registration_code.used_by = profile
                request.registration_code.save(update_fields=["used_by"])

        return profile

    def _resolve_household(self, request: RegistrationRequest, model) -> HouseholdLink:
        if request.is_head_of_family:
            household = Household.objects.create(address=request.address or "No address provided")
            return HouseholdLink(household, household.household_number)

        if request.head_id:
            quoted = model.objects.filter(pk=request.head_id).select_related("household").first()
            if quoted is None or quoted.household is None:
                logger.warning(
                    f"Registration request {request.pk} names head_id {request.head_id} "
                    f"which resolves to no household; approving without household linkage"
                )
                return HouseholdLink()
            household = quoted.household
            return HouseholdLink(household, household.household_number, self._head_id(household, model))

        household_number = normalize_household_number(request.household_number)
        if household_number and household_number.isdigit():
            household = Household.objects.filter(pk=int(household_number)).first()
            if household is not None:
                return HouseholdLink(
                    household, household.household_number, self._head_id(household, model)
                )

        return HouseholdLink()

    @staticmethod
    def _head_id(household: Household, model) -> Optional[int]:
        """
        The household head's id in the applicant's own profile table.

        Always taken from the household, never from the id the applicant
        quoted, which may name another member. Resident and Staff ids are
        separate sequences, so a head of the other kind yields None.
        """
        return household.head_resident_id if model is Resident else household.head_staff_id
