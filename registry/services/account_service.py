import logging
from django.conf import settings
from django.db import transaction
from django.utils.crypto import constant_time_compare

from registry.exceptions import AuthenticationError, AuthorizationError, ValidationError
from registry.models import Account, Admin, RegistrationRequest, Resident, Staff
from registry.services.registration_service import normalize_household_number
from registry.tokens import create_access_token

logger = logging.getLogger(__name__)

DASHBOARD_URLS = {
    Account.RESIDENT: "/dash-front/the-dash-resident",
    Account.STAFF: "/staff-front/the-dash-staff",
    Account.ADMIN: "/admin-front/the-dash-admin",
}


class AccountService:
    """Login, password management and admin bootstrap."""

    def authenticate(self, username: str, password: str) -> Account:
        if not username or not password:
            raise ValidationError("Username and password are required")

        account = Account.objects.filter(username=username).first()
        if account is None or not account.check_password(password):
            raise AuthenticationError("Invalid credentials")
        return account

    def login(self, username: str, password: str) -> dict:
        """
        Verify credentials and issue a bearer token.

        Returns:
            dict: ``token``, a ``user`` summary including the profile fields of
                  the account's resident/staff record, and the dashboard ``redirectUrl``
        """
        account = self.authenticate(username, password)
        logger.info(f"Account {account.pk} logged in")
        return {
            "token": create_access_token(account),
            "user": self.describe(account),
            "redirectUrl": DASHBOARD_URLS.get(account.role, "/"),
        }

    def describe(self, account: Account) -> dict:
        user = {"id": account.pk, "role": account.role, "username": account.username}
        profile = account.get_profile()
        if isinstance(profile, (Resident, Staff)):
            key = "resident_id" if isinstance(profile, Resident) else "staff_id"
            user.update(
                {
                    key: profile.pk,
                    "first_name": profile.first_name,
                    "last_name": profile.last_name,
                    "birthdate": profile.birthdate,
                    "address": profile.address,
                    "contact_no": profile.contact_no,
                    "photo_url": profile.photo_url,
                    "household_number": profile.household_number,
                    "head_id": str(profile.head_id) if profile.head_id else None,
                }
            )
        elif isinstance(profile, Admin):
            user.update({"first_name": profile.first_name, "last_name": profile.last_name})
        return user

    def _validate_new_password(self, new_password: str):
        if not new_password or len(new_password) < settings.PASSWORD_MIN_LENGTH:
            raise ValidationError(
                f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long"
            )

    def _store_password(self, account: Account, new_password: str):
        account.set_password(new_password)
        account.save(update_fields=["password"])
        # The emailed/looked-up temporary password is no longer valid
        RegistrationRequest.objects.filter(account=account).update(temp_password=None)

    def change_password(self, account: Account, current_password: str, new_password: str):
        if not account.check_password(current_password or ""):
            raise AuthenticationError("Current password is incorrect")
        self._validate_new_password(new_password)
        with transaction.atomic():
            self._store_password(account, new_password)
        logger.info(f"Password changed for account {account.pk}")

    def reset_password(self, username: str, household_number: str, new_password: str):
        """
        Reset a password by proving knowledge of the account's household number.

        Raises:
            ValidationError: missing fields or a too-short password
            AuthorizationError: unknown username or household number mismatch
        """
        if not username or not household_number or not new_password:
            raise ValidationError("Username, household number, and new password are required")
        self._validate_new_password(new_password)

        household_number = normalize_household_number(household_number)
        if household_number is None:
            raise ValidationError("Household number is required")

        account = Account.objects.filter(username=username).first()
        matches = account is not None and any(
            Model.objects.filter(account=account, household_number=household_number).exists()
            for Model in (Resident, Staff)
        )
        if not matches:
            logger.warning("Password reset refused: household number does not match")
            raise AuthorizationError("Household number does not match")

        with transaction.atomic():
            self._store_password(account, new_password)
        logger.info(f"Password reset for account {account.pk}")

    def create_admin(self, data: dict) -> Admin:
        """Create an ADMIN account and profile. Duplicate usernames are rejected."""
        username = data["username"].strip()
        if Account.objects.filter(username=username).exists():
            raise ValidationError("Username already registered")
        self._validate_new_password(data["password"])

        with transaction.atomic():
            account = Account(username=username, role=Account.ADMIN)
            account.set_password(data["password"])
            account.save()
            admin = Admin.objects.create(
                account=account,
                first_name=data["first_name"],
                last_name=data["last_name"],
                contact_no=data.get("contact_no") or None,
                email=data.get("email") or None,
            )
        logger.info(f"Admin account {account.pk} created")
        return admin

    def register_admin(self, data: dict, secret: str) -> Admin:
        """Bootstrap endpoint variant of create_admin, guarded by ADMIN_REGISTER_KEY."""
        expected = settings.ADMIN_REGISTER_KEY
        if not expected or not constant_time_compare(secret or "", expected):
            raise AuthorizationError("Unauthorized access")
        return self.create_admin(data)
