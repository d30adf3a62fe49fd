from datetime import date, datetime, timezone

import pytest

from accounts.models import User
from agencies.models import Agency, Client


@pytest.fixture
def agency(db):
    return Agency.objects.create(
        name="Agence Test",
        code="AG-TEST",
        currency="USD",
    )


@pytest.fixture
def other_agency(db):
    return Agency.objects.create(
        name="Autre Agence",
        code="AG-OTHER",
    )


@pytest.fixture
def manager_user(agency):
    return User.objects.create_user(
        email="manager@test.com",
        password="testpass123",
        first_name="Manager",
        last_name="User",
        role=User.Role.MANAGER,
        agency=agency,
    )


@pytest.fixture
def sdr_user(agency):
    return User.objects.create_user(
        email="sdr@test.com",
        password="testpass123",
        first_name="Sdr",
        last_name="User",
        role=User.Role.SDR,
        agency=agency,
    )


@pytest.fixture
def second_sdr(agency):
    return User.objects.create_user(
        email="sdr2@test.com",
        password="testpass123",
        first_name="Second",
        last_name="Sdr",
        role=User.Role.SDR,
        agency=agency,
    )


@pytest.fixture
def client_company(agency):
    return Client.objects.create(
        agency=agency,
        name="Acme",
        monthly_set_target=15,
        monthly_hold_target=10,
    )


@pytest.fixture
def second_client(agency):
    return Client.objects.create(
        agency=agency,
        name="Globex",
        monthly_set_target=8,
        monthly_hold_target=5,
    )


@pytest.fixture
def march_2026():
    """A fixed 'now' in the middle of March 2026 (UTC)."""
    return datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def march_first():
    return date(2026, 3, 1)
