"""Staff session lookup.

Staff users do not authenticate with the platform auth service; their login
flow writes a row to ``staff_sessions`` and hands the opaque
``session_token`` to the browser. Every staff-mode request resolves that
token here.

The store is read-only: expiry and revocation are observed, never written.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from agency_api.db.models import StaffSession
from agency_api.errors import SessionExpired, SessionInvalidated, SessionNotFound


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; stored values are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class StaffSessionRecord(BaseModel):
    """Staff identity behind a valid, unexpired session."""

    model_config = ConfigDict(frozen=True)

    staff_user_id: str
    agency_id: str
    expires_at: datetime
    display_name: Optional[str] = None
    team_member_id: Optional[str] = None
    team_member_role: Optional[str] = None


class StaffSessionStore:
    """Resolves staff session tokens through ``staff_sessions`` → ``staff_users``."""

    def __init__(self, db: Session, clock: Clock = utc_now):
        self.db = db
        self.clock = clock

    def lookup(self, token: str) -> StaffSessionRecord:
        """Resolve ``token`` to its staff user.

        Checks, in order: row exists, not expired, still valid, staff user active.

        Raises:
            SessionNotFound: No session row for the token
            SessionExpired: ``expires_at`` is at or before now (regardless of ``is_valid``)
            SessionInvalidated: Session revoked, or staff user missing/inactive
        """
        session = (
            self.db.query(StaffSession)
            .filter(StaffSession.session_token == token)
            .first()
        )

        if session is None:
            raise SessionNotFound()

        expires_at = _as_utc(session.expires_at)
        if expires_at <= self.clock():
            raise SessionExpired(f"session expired at {expires_at.isoformat()}")

        if not session.is_valid:
            raise SessionInvalidated("session revoked")

        staff_user = session.staff_user
        if staff_user is None:
            raise SessionInvalidated("staff user missing")
        if not staff_user.is_active:
            raise SessionInvalidated("staff user inactive")

        team_member = staff_user.team_member

        return StaffSessionRecord(
            staff_user_id=staff_user.id,
            agency_id=staff_user.agency_id,
            expires_at=expires_at,
            display_name=staff_user.display_name,
            team_member_id=staff_user.team_member_id,
            team_member_role=team_member.role if team_member else None,
        )
