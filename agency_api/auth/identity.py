"""Identity resolution for both credential types.

FLOW:
1. Bearer JWT → platform verifier → user id → ``profiles`` row → role, agency_id
2. Staff session token → ``StaffSessionStore`` → staff user → agency_id, role "staff"

Both paths converge on ``ResolvedIdentity``, the only object downstream
handlers consult for tenant scope. Handlers never re-derive the agency from
client-supplied parameters.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from agency_api.auth.credentials import Credential, CredentialKind
from agency_api.auth.platform import PlatformTokenVerifier
from agency_api.auth.session_store import Clock, StaffSessionStore, utc_now
from agency_api.db.models import Profile
from agency_api.db.repo_agencies import AgencyRepository
from agency_api.errors import MissingCredential, ProfileNotFound


ADMIN_ROLE = "admin"
STAFF_ROLE = "staff"

# Team-member roles that make a staff user a manager of their agency
MANAGER_TEAM_ROLES = frozenset({"Manager", "Owner"})


class ResolvedIdentity(BaseModel):
    """Caller identity for the duration of one request."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["supabase", "staff"]
    agency_id: Optional[str]
    role: str
    user_id: Optional[str] = None
    staff_user_id: Optional[str] = None
    agency_slug: Optional[str] = None
    display_name: Optional[str] = None
    team_member_id: Optional[str] = None
    is_manager: bool = False

    @property
    def is_admin(self) -> bool:
        # Staff identities never carry the platform admin role
        return self.mode == "supabase" and self.role == ADMIN_ROLE

    @property
    def subject_id(self) -> str:
        return self.user_id if self.mode == "supabase" else self.staff_user_id


class IdentityResolver:
    """Turns an extracted credential into a ``ResolvedIdentity``."""

    def __init__(self, verifier: PlatformTokenVerifier, clock: Clock = utc_now):
        self.verifier = verifier
        self.clock = clock

    def resolve(self, credential: Credential, db: Session) -> ResolvedIdentity:
        """Resolve ``credential`` against the platform auth service or session store.

        Raises:
            MissingCredential: Credential kind is none
            TokenRejected: Bearer token failed verification
            ProfileNotFound: Verified user without a usable profile
            SessionNotFound / SessionExpired / SessionInvalidated: Staff session failures
        """
        if credential.kind == CredentialKind.STAFF_SESSION:
            return self._resolve_staff(credential.token, db)
        if credential.kind == CredentialKind.BEARER:
            return self._resolve_platform(credential.token, db)
        raise MissingCredential()

    def _resolve_platform(self, token: str, db: Session) -> ResolvedIdentity:
        user_id = self.verifier.verify(token)

        profile = db.query(Profile).filter(Profile.id == user_id).first()
        if profile is None:
            raise ProfileNotFound(f"no profile for user {user_id}")

        role = profile.role or "user"
        if role != ADMIN_ROLE and not profile.agency_id:
            raise ProfileNotFound(f"profile {user_id} has no agency")

        agency_slug = None
        if profile.agency_id:
            agency = AgencyRepository(db).get_by_id(profile.agency_id)
            agency_slug = agency.slug if agency else None

        return ResolvedIdentity(
            mode="supabase",
            agency_id=profile.agency_id,
            role=role,
            user_id=user_id,
            agency_slug=agency_slug,
            display_name=profile.full_name,
            is_manager=True,
        )

    def _resolve_staff(self, token: str, db: Session) -> ResolvedIdentity:
        record = StaffSessionStore(db, clock=self.clock).lookup(token)

        agency = AgencyRepository(db).get_by_id(record.agency_id)

        return ResolvedIdentity(
            mode="staff",
            agency_id=record.agency_id,
            role=STAFF_ROLE,
            staff_user_id=record.staff_user_id,
            agency_slug=agency.slug if agency else None,
            display_name=record.display_name,
            team_member_id=record.team_member_id,
            is_manager=record.team_member_role in MANAGER_TEAM_ROLES,
        )
