"""Pytest configuration and fixtures.

Every test gets a fresh in-memory SQLite database seeded with three agencies,
platform users (including an admin), staff users and staff sessions in
various states. Platform tokens are checked by ``FakeVerifier`` instead of
the Supabase auth service, and time is pinned with a fixed clock.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from agency_api.config import AppConfig
from agency_api.db.engine import build_engine, build_sessionmaker
from agency_api.db.models import (
    Agency,
    AgencyContact,
    Base,
    OnboardingSequence,
    Profile,
    RenewalRecord,
    Sale,
    StaffSession,
    StaffUser,
    TeamMember,
)
from agency_api.errors import TokenRejected
from agency_api.main import create_app

NOW = datetime(2026, 3, 2, 15, 0, 0, tzinfo=timezone.utc)

AGENCY_1 = "agency-1"
AGENCY_2 = "agency-2"
AGENCY_7 = "agency-7"

PLATFORM_TOKENS = {
    "jwt-user-1": "user-1",
    "jwt-user-2": "user-2",
    "jwt-admin": "admin-1",
    "jwt-no-profile": "ghost-user",
    "jwt-no-agency": "user-no-agency",
}


class FakeVerifier:
    """Platform token verifier backed by a token → user id map."""

    def __init__(self, tokens: dict[str, str]):
        self.tokens = tokens
        self.calls: list[str] = []

    def verify(self, token: str) -> str:
        self.calls.append(token)
        try:
            return self.tokens[token]
        except KeyError:
            raise TokenRejected("unknown test token") from None


def fixed_clock() -> datetime:
    return NOW


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def staff(token: str) -> dict[str, str]:
    return {"x-staff-session": token}


def seed(db: Session) -> None:
    """Insert the shared fixture rows."""
    db.add_all([
        Agency(id=AGENCY_1, slug="alpha-insurance", name="Alpha Insurance"),
        Agency(id=AGENCY_2, slug="bravo-agency", name="Bravo Agency"),
        Agency(id=AGENCY_7, slug="seventh-street", name="Seventh Street Insurance"),
    ])
    db.flush()

    db.add_all([
        TeamMember(id="tm-1-manager", agency_id=AGENCY_1, name="Morgan Lee", email="morgan@alpha.test", role="Manager"),
        TeamMember(id="tm-1-sales", agency_id=AGENCY_1, name="Sasha Kim", email="sasha@alpha.test", role="Sales"),
        TeamMember(id="tm-2-owner", agency_id=AGENCY_2, name="Owen Diaz", role="Owner"),
        TeamMember(id="tm-7-sales", agency_id=AGENCY_7, name="Riley Park", role="Sales"),
    ])

    db.add_all([
        Profile(id="user-1", role="user", agency_id=AGENCY_1, full_name="Alex Agent"),
        Profile(id="user-2", role="user", agency_id=AGENCY_2, full_name="Blair Broker"),
        Profile(id="admin-1", role="admin", agency_id=None, full_name="Platform Admin"),
        Profile(id="user-no-agency", role="user", agency_id=None),
    ])
    db.flush()

    db.add_all([
        StaffUser(id="staff-1", agency_id=AGENCY_1, username="morgan", display_name="Morgan Lee", team_member_id="tm-1-manager"),
        StaffUser(id="staff-1-sales", agency_id=AGENCY_1, username="sasha", display_name="Sasha Kim", team_member_id="tm-1-sales"),
        StaffUser(id="staff-1-inactive", agency_id=AGENCY_1, username="former", is_active=False),
        StaffUser(id="staff-2", agency_id=AGENCY_2, username="owen", display_name="Owen Diaz", team_member_id="tm-2-owner"),
    ])
    db.flush()

    hour = timedelta(hours=1)
    db.add_all([
        StaffSession(session_token="tok-123", staff_user_id="staff-1", expires_at=NOW + hour),
        StaffSession(session_token="tok-sales", staff_user_id="staff-1-sales", expires_at=NOW + hour),
        StaffSession(session_token="tok-agency-2", staff_user_id="staff-2", expires_at=NOW + hour),
        StaffSession(session_token="tok-expired", staff_user_id="staff-1", expires_at=NOW - hour),
        StaffSession(session_token="tok-at-now", staff_user_id="staff-1", expires_at=NOW),
        StaffSession(session_token="tok-revoked", staff_user_id="staff-1", expires_at=NOW + hour, is_valid=False),
        StaffSession(
            session_token="tok-expired-revoked", staff_user_id="staff-1", expires_at=NOW - hour, is_valid=False
        ),
        StaffSession(session_token="tok-inactive", staff_user_id="staff-1-inactive", expires_at=NOW + hour),
    ])

    db.add_all([
        OnboardingSequence(id="seq-1", agency_id=AGENCY_1, name="New auto policy"),
        OnboardingSequence(id="seq-1-retired", agency_id=AGENCY_1, name="Legacy welcome", is_active=False),
        OnboardingSequence(id="seq-1b", agency_id=AGENCY_1, name="Home policy review"),
        OnboardingSequence(id="seq-2", agency_id=AGENCY_2, name="Bravo welcome"),
        OnboardingSequence(id="seq-7", agency_id=AGENCY_7, name="Seventh welcome"),
    ])

    db.add_all([
        AgencyContact(id="contact-100", agency_id=AGENCY_1, first_name="Jordan", last_name="Rivers"),
        AgencyContact(id="contact-101", agency_id=AGENCY_1, first_name="Taylor", last_name="Moss"),
        AgencyContact(id="contact-of-agency-2", agency_id=AGENCY_2, first_name="Quinn", last_name="Hart"),
        Sale(id="sale-9", agency_id=AGENCY_1, customer_name="Jordan Rivers"),
        Sale(id="sale-of-agency-2", agency_id=AGENCY_2, customer_name="Quinn Hart"),
    ])

    db.add_all([
        RenewalRecord(id="renewal-1", agency_id=AGENCY_1, first_name="Jamie", last_name="Fox", policy_number="HO-1001"),
        RenewalRecord(id="renewal-2", agency_id=AGENCY_2, first_name="Casey", last_name="Ray", policy_number="AU-2002"),
    ])
    db.commit()


@pytest.fixture(scope="function")
def test_config() -> AppConfig:
    """Local configuration with an in-memory database and plain logging."""
    return AppConfig(env="test", database_url="sqlite://", json_logs=False)


@pytest.fixture(scope="function")
def engine(test_config):
    """Fresh in-memory database with the schema created and fixture rows seeded."""
    engine = build_engine(test_config)
    Base.metadata.create_all(engine)

    session = build_sessionmaker(engine)()
    try:
        seed(session)
    finally:
        session.close()

    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Session:
    """Session on the same database the app uses."""
    session = build_sessionmaker(engine)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def verifier() -> FakeVerifier:
    return FakeVerifier(dict(PLATFORM_TOKENS))


@pytest.fixture(scope="function")
def app(test_config, engine, verifier):
    return create_app(test_config, verifier=verifier, engine=engine, clock=fixed_clock)


@pytest.fixture(scope="function")
def client(app) -> TestClient:
    """Test client for the FastAPI app."""
    return TestClient(app)
