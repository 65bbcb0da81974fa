"""
Unit tests for ApprovalService - the registration decision workflow.
"""

import json
import pytest
from unittest.mock import patch
from django.db import DatabaseError

from registry.exceptions import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ProvisioningError,
    ValidationError,
)
from registry.models import (
    Account,
    Admin,
    DigitalID,
    Household,
    RegistrationRequest,
    Resident,
    Staff,
)
from registry.notifications import backends
from registry.services.approval_service import ApprovalService, Approve, Reject
from registry.services.digital_id_service import DigitalIDService


@pytest.mark.django_db
class TestApproveResident:
    """Test cases for approving RESIDENT requests."""

    def test_approve_plain_resident(self, staff_account, create_request, mock_notifier):
        request = create_request()
        service = ApprovalService(notifier=mock_notifier)

        outcome = service.decide(request.pk, staff_account, Approve())

        request.refresh_from_db()
        assert outcome.approved is True
        assert outcome.rejected is False
        assert request.status == RegistrationRequest.APPROVED
        assert request.approved_by == staff_account
        assert request.approved_at is not None
        assert request.account_id == outcome.account_id

        account = Account.objects.get(pk=outcome.account_id)
        assert account.username == "cruz"
        assert account.role == Account.RESIDENT

        resident = Resident.objects.get(pk=outcome.resident_id)
        assert resident.account == account
        assert resident.issued_by == staff_account
        assert resident.household is None
        assert resident.head_id is None

    def test_email_becomes_username(self, staff_account, create_request, mock_notifier):
        request = create_request(email="Ana.Cruz@Example.com")

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        assert outcome.username == "ana.cruz@example.com"
        request.refresh_from_db()
        assert request.temp_password is None

    def test_temp_password_kept_for_email_less_applicant(
        self, staff_account, create_request, mock_notifier
    ):
        request = create_request()

        ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        request.refresh_from_db()
        assert len(request.temp_password) == 8
        assert request.account.check_password(request.temp_password)

    def test_head_of_family_creates_household(
        self, staff_account, create_request, create_registration_code, mock_notifier
    ):
        code = create_registration_code()
        request = create_request(is_head_of_family=True, registration_code=code)

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        resident = Resident.objects.get(pk=outcome.resident_id)
        household = Household.objects.get(pk=resident.household_id)
        assert household.head_resident == resident
        assert resident.head_id == resident.pk
        assert resident.household_number == household.household_number
        assert outcome.household_number == household.household_number

        code.refresh_from_db()
        assert code.used_by == resident

    def test_member_with_head_id_joins_household(
        self, staff_account, create_request, create_resident, mock_notifier
    ):
        head = create_resident(head_of_family=True)
        request = create_request(head_id=head.pk)

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        member = Resident.objects.get(pk=outcome.resident_id)
        assert member.household_id == head.household_id
        assert member.household_number == head.household_number
        assert member.head_id == head.pk
        assert member.is_head_of_family is False

    def test_member_with_household_number_joins_household(
        self, staff_account, create_request, create_resident, mock_notifier
    ):
        head = create_resident(head_of_family=True)
        request = create_request(household_number=head.household_number)

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        member = Resident.objects.get(pk=outcome.resident_id)
        assert member.household_id == head.household_id
        assert member.head_id == head.pk

    def test_head_id_naming_a_member_links_to_household_head(
        self, staff_account, create_request, create_resident, mock_notifier
    ):
        head = create_resident(head_of_family=True)
        member = create_resident(
            username="member", household=head.household, head_id=head.pk, first_name="Maria"
        )
        request = create_request(head_id=member.pk)

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        sibling = Resident.objects.get(pk=outcome.resident_id)
        household = Household.objects.get(pk=head.household_id)
        assert sibling.household == household
        assert sibling.head_id == household.head_resident_id == head.pk
        assert sibling.head_id == member.head_id

    def test_unresolved_head_id_approves_without_household(
        self, staff_account, create_request, mock_notifier, mocker
    ):
        logger = mocker.patch("registry.services.approval_service.logger")
        request = create_request(head_id=987654)

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        member = Resident.objects.get(pk=outcome.resident_id)
        assert member.household is None
        assert member.household_number is None
        assert member.head_id is None
        logger.warning.assert_called_once()
        assert "987654" in logger.warning.call_args[0][0]

    def test_digital_id_issued(self, staff_account, create_request, mock_notifier):
        request = create_request()

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        digital_id = DigitalID.objects.get(resident_id=outcome.resident_id)
        assert digital_id.id_number == f"ID-{outcome.account_id}"
        assert digital_id.issued_by == staff_account
        assert digital_id.qr_code.startswith("data:image/png;base64,")
        payload = json.loads(digital_id.payload)
        assert payload["username"] == outcome.username
        assert "password" not in payload

    def test_senior_flag_carried_to_profile(self, staff_account, create_request, mock_notifier):
        request = create_request(is_senior=True, is_pwd=True)

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        resident = Resident.objects.get(pk=outcome.resident_id)
        assert resident.senior_mode is True
        assert resident.memberships() == ["PWD", "Senior"]


@pytest.mark.django_db
class TestApproveOtherRoles:
    """Test cases for admins deciding STAFF and ADMIN requests."""

    def test_admin_approves_staff_request(self, admin_account, create_request, mock_notifier):
        request = create_request(role=Account.STAFF)

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, admin_account, Approve())

        staff = Staff.objects.get(pk=outcome.staff_id)
        assert staff.account.role == Account.STAFF
        assert outcome.resident_id is None
        assert DigitalID.objects.filter(staff=staff).exists()

    def test_admin_approves_head_of_family_resident(
        self, admin_account, create_request, create_registration_code, mock_notifier
    ):
        code = create_registration_code()
        request = create_request(is_head_of_family=True, registration_code=code)

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, admin_account, Approve())

        resident = Resident.objects.get(pk=outcome.resident_id)
        assert resident.account_id == outcome.account_id
        assert resident.issued_by == admin_account
        assert resident.household.head_resident == resident
        assert resident.head_id == resident.pk
        assert DigitalID.objects.filter(resident=resident).exists()
        request.refresh_from_db()
        assert request.status == RegistrationRequest.APPROVED
        assert request.approved_by == admin_account

    def test_staff_joining_resident_headed_household(
        self, admin_account, create_request, create_resident, mock_notifier
    ):
        head = create_resident(head_of_family=True)
        request = create_request(role=Account.STAFF, household_number=head.household_number)

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, admin_account, Approve())

        staff = Staff.objects.get(pk=outcome.staff_id)
        assert staff.household_id == head.household_id
        # Resident ids are not valid Staff ids
        assert staff.head_id is None

        card = DigitalIDService().get_card(staff.account)
        assert card["household_head"] == "Jose Rizal"

    def test_admin_approves_admin_request(self, admin_account, create_request, mock_notifier):
        request = create_request(role=Account.ADMIN, email="new.admin@example.com")

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, admin_account, Approve())

        admin = Admin.objects.get(account_id=outcome.account_id)
        assert admin.email == "new.admin@example.com"
        assert outcome.resident_id is None
        assert outcome.staff_id is None
        assert DigitalID.objects.count() == 0


@pytest.mark.django_db
class TestAuthorization:
    """Test cases for who may decide what."""

    @pytest.mark.parametrize("role", [Account.STAFF, Account.ADMIN])
    def test_staff_cannot_decide_non_resident_requests(
        self, role, staff_account, create_request, mock_notifier
    ):
        request = create_request(role=role)

        with pytest.raises(AuthorizationError):
            ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        request.refresh_from_db()
        assert request.status == RegistrationRequest.PENDING
        assert Account.objects.count() == 1
        mock_notifier.notify.assert_not_called()

    def test_resident_cannot_decide(self, create_account, create_request, mock_notifier):
        resident = create_account(username="resident")
        request = create_request()

        with pytest.raises(AuthorizationError):
            ApprovalService(notifier=mock_notifier).decide(request.pk, resident, Reject("no"))

        request.refresh_from_db()
        assert request.status == RegistrationRequest.PENDING

    def test_staff_without_profile_cannot_decide(self, create_account, create_request, mock_notifier):
        staff = create_account(username="orphan", role=Account.STAFF)
        request = create_request()

        with pytest.raises(AuthorizationError):
            ApprovalService(notifier=mock_notifier).decide(request.pk, staff, Approve())

    def test_unknown_request(self, admin_account, mock_notifier):
        with pytest.raises(NotFoundError):
            ApprovalService(notifier=mock_notifier).decide(424242, admin_account, Approve())

    def test_unsupported_decision(self, admin_account, create_request, mock_notifier):
        request = create_request()

        with pytest.raises(ValidationError):
            ApprovalService(notifier=mock_notifier).decide(request.pk, admin_account, "approve")


@pytest.mark.django_db
class TestReject:
    """Test cases for rejecting requests."""

    def test_reject_records_reason(self, staff_account, create_request, mock_notifier):
        request = create_request()

        outcome = ApprovalService(notifier=mock_notifier).decide(
            request.pk, staff_account, Reject("Incomplete documents")
        )

        request.refresh_from_db()
        assert outcome.rejected is True
        assert outcome.account_id is None
        assert request.status == RegistrationRequest.REJECTED
        assert request.rejected_by == staff_account
        assert request.rejected_at is not None
        assert request.rejection_reason == "Incomplete documents"
        assert Account.objects.filter(role=Account.RESIDENT).count() == 0

    def test_reject_without_reason(self, admin_account, create_request, mock_notifier):
        request = create_request()

        ApprovalService(notifier=mock_notifier).decide(request.pk, admin_account, Reject())

        request.refresh_from_db()
        assert request.status == RegistrationRequest.REJECTED
        assert request.rejection_reason is None


@pytest.mark.django_db
class TestSingleDecision:
    """A request is decided at most once."""

    @pytest.mark.parametrize("second", [Approve(), Reject("late")])
    def test_second_decision_refused(self, staff_account, create_request, mock_notifier, second):
        request = create_request()
        service = ApprovalService(notifier=mock_notifier)
        service.decide(request.pk, staff_account, Approve())

        with pytest.raises(InvalidStateError):
            service.decide(request.pk, staff_account, second)

        request.refresh_from_db()
        assert request.status == RegistrationRequest.APPROVED
        assert Account.objects.filter(role=Account.RESIDENT).count() == 1

    def test_concurrent_transition_rolls_back_provisioning(
        self, staff_account, create_request, mock_notifier
    ):
        request = create_request()
        service = ApprovalService(notifier=mock_notifier)

        # Another reviewer decides between our read and our write
        def decide_elsewhere(*args, **kwargs):
            RegistrationRequest.objects.filter(pk=request.pk).update(
                status=RegistrationRequest.REJECTED
            )
            return "cruz"

        with patch.object(service, "_allocate_username", side_effect=decide_elsewhere):
            with pytest.raises(InvalidStateError):
                service.decide(request.pk, staff_account, Approve())

        assert Account.objects.filter(username="cruz").count() == 0
        assert Resident.objects.count() == 0


@pytest.mark.django_db
class TestProvisioning:
    """Test cases for username allocation and rollback."""

    def test_username_collision_gets_suffix(
        self, staff_account, create_account, create_request, mock_notifier
    ):
        create_account(username="cruz")
        request = create_request()

        outcome = ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        assert outcome.username.startswith("cruz_")
        assert len(outcome.username) == len("cruz_") + 4

    def test_username_allocation_exhausted(
        self, staff_account, create_account, create_request, mock_notifier, settings
    ):
        settings.USERNAME_MAX_ATTEMPTS = 1
        create_account(username="cruz")
        request = create_request()

        with pytest.raises(ProvisioningError):
            ApprovalService(notifier=mock_notifier).decide(request.pk, staff_account, Approve())

        request.refresh_from_db()
        assert request.status == RegistrationRequest.PENDING
        assert Resident.objects.count() == 0

    def test_database_failure_rolls_back(self, staff_account, create_request, mock_notifier, mocker):
        request = create_request()
        digital_ids = mocker.Mock()
        digital_ids.issue.side_effect = DatabaseError("disk full")

        with pytest.raises(ProvisioningError):
            ApprovalService(notifier=mock_notifier, digital_ids=digital_ids).decide(
                request.pk, staff_account, Approve()
            )

        request.refresh_from_db()
        assert request.status == RegistrationRequest.PENDING
        assert request.account is None
        assert Account.objects.filter(role=Account.RESIDENT).count() == 0
        mock_notifier.notify.assert_not_called()


@pytest.mark.django_db
class TestDecisionNotifications:
    """Notifications are sent after commit and never change the outcome."""

    def test_approval_notification_sent_after_commit(
        self, staff_account, create_request, mock_notifier, django_capture_on_commit_callbacks
    ):
        request = create_request()

        with django_capture_on_commit_callbacks(execute=True):
            outcome = ApprovalService(notifier=mock_notifier).decide(
                request.pk, staff_account, Approve()
            )

        mock_notifier.notify.assert_called_once()
        event, payload = mock_notifier.notify.call_args[0]
        assert event == backends.REGISTRATION_APPROVED
        assert payload["username"] == outcome.username
        assert payload["reference_number"] == request.reference_number
        assert len(payload["temp_password"]) == 8

    def test_rejection_notification_carries_reason(
        self, staff_account, create_request, mock_notifier, django_capture_on_commit_callbacks
    ):
        request = create_request(email="ana@example.com")

        with django_capture_on_commit_callbacks(execute=True):
            ApprovalService(notifier=mock_notifier).decide(
                request.pk, staff_account, Reject("Duplicate application")
            )

        event, payload = mock_notifier.notify.call_args[0]
        assert event == backends.REGISTRATION_REJECTED
        assert payload["reason"] == "Duplicate application"
        assert payload["email"] == "ana@example.com"

    def test_notifier_failure_does_not_undo_decision(
        self, staff_account, create_request, mock_notifier, django_capture_on_commit_callbacks
    ):
        request = create_request()
        mock_notifier.notify.side_effect = ConnectionError("broker down")

        with django_capture_on_commit_callbacks(execute=True):
            outcome = ApprovalService(notifier=mock_notifier).decide(
                request.pk, staff_account, Approve()
            )

        request.refresh_from_db()
        assert outcome.approved is True
        assert request.status == RegistrationRequest.APPROVED

    def test_default_notifier_from_settings(
        self, staff_account, create_request, notification_outbox, django_capture_on_commit_callbacks
    ):
        request = create_request()

        with django_capture_on_commit_callbacks(execute=True):
            ApprovalService().decide(request.pk, staff_account, Reject("no"))

        assert [m["event"] for m in notification_outbox] == [backends.REGISTRATION_REJECTED]
