"""
Pytest configuration and shared fixtures for the test suite.
"""

import pytest
from datetime import date
from unittest.mock import MagicMock
from rest_framework.test import APIClient

from registry.models import Account, Household, RegistrationCode, RegistrationRequest, Resident, Staff
from registry.notifications import backends
from registry.tokens import create_access_token


@pytest.fixture(autouse=True)
def notification_outbox():
    """Clear the in-memory notifier outbox around every test."""
    backends.LocMemNotifier.outbox.clear()
    yield backends.LocMemNotifier.outbox
    backends.LocMemNotifier.outbox.clear()


@pytest.fixture
def sample_applicant_data():
    """Applicant fields as posted by the registration form."""
    return {
        "first_name": "Ana",
        "last_name": "Cruz",
        "contact_no": "09171234567",
        "birthdate": date(1990, 1, 1),
        "gender": "Female",
        "address": "Purok 3, Barangay Niugan",
        "role": Account.RESIDENT,
    }


@pytest.fixture
def create_account(db):
    """Factory fixture to create an account with a known password."""

    def _create_account(username="user", role=Account.RESIDENT, password="secret123"):
        account = Account(username=username, role=role)
        account.set_password(password)
        account.save()
        return account

    return _create_account


@pytest.fixture
def admin_account(create_account):
    return create_account(username="admin", role=Account.ADMIN)


@pytest.fixture
def staff_account(create_account):
    """Staff account with the staff profile reviewers are required to have."""
    account = create_account(username="staff", role=Account.STAFF)
    Staff.objects.create(
        account=account,
        first_name="Pedro",
        last_name="Santos",
        birthdate=date(1985, 5, 5),
    )
    return account


@pytest.fixture
def create_request(db, sample_applicant_data):
    """Factory fixture to create a PENDING registration request directly."""
    counter = {"n": 0}

    def _create_request(**kwargs):
        counter["n"] += 1
        data = {
            **sample_applicant_data,
            "reference_number": f"REF-20261017-{1000 + counter['n']}",
            **kwargs,
        }
        return RegistrationRequest.objects.create(**data)

    return _create_request


@pytest.fixture
def create_resident(db, create_account):
    """Factory fixture to create an approved resident, optionally heading a new household."""

    def _create_resident(username="resident", head_of_family=False, household=None, **kwargs):
        account = create_account(username=username, role=Account.RESIDENT)
        resident = Resident.objects.create(
            account=account,
            first_name=kwargs.pop("first_name", "Jose"),
            last_name=kwargs.pop("last_name", "Rizal"),
            birthdate=kwargs.pop("birthdate", date(1970, 6, 19)),
            is_head_of_family=head_of_family,
            **kwargs,
        )
        if head_of_family:
            household = Household.objects.create(address="Purok 1", head_resident=resident)
            resident.head_id = resident.pk
        if household is not None:
            resident.household = household
            resident.household_number = household.household_number
        resident.save()
        return resident

    return _create_resident


@pytest.fixture
def create_registration_code(db, admin_account):
    def _create_code(code="RC-123456", owner_name="Ana Cruz", **kwargs):
        return RegistrationCode.objects.create(
            code=code, owner_name=owner_name, created_by=admin_account, **kwargs
        )

    return _create_code


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client():
    """Factory fixture returning an APIClient authenticated as the given account."""

    def _auth_client(account):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {create_access_token(account)}")
        return client

    return _auth_client


@pytest.fixture
def mock_notifier(mocker):
    """Notifier double that accepts every notification."""
    notifier = mocker.Mock(spec=backends.BaseNotifier)
    notifier.notify.return_value = True
    return notifier


@pytest.fixture
def mock_pika_connection(mocker):
    """Mock pika RabbitMQ connection."""
    mock_connection = MagicMock()
    mock_channel = MagicMock()
    mock_connection.channel.return_value = mock_channel
    mock_connection.is_closed = False

    mocker.patch("pika.BlockingConnection", return_value=mock_connection)
    return mock_connection, mock_channel
