"""Team roster lookups.

The caller names an agency by slug; the slug is re-resolved to an id through
the agencies table and gated before the roster is read. A non-admin asking
for an unknown slug gets the same 403 as for a foreign one.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agency_api.auth.dependencies import require_agency_access, require_manager
from agency_api.auth.identity import ResolvedIdentity
from agency_api.db.repo_agencies import AgencyRepository
from agency_api.db.session import get_db
from agency_api.errors import NotFound
from agency_api.schemas import TeamMemberOut, TeamMemberRequest, TeamMemberResponse

router = APIRouter(prefix="/functions/v1", tags=["team"])
logger = logging.getLogger(__name__)


@router.post("/get_team_member", response_model=TeamMemberResponse)
async def get_team_member(
    body: TeamMemberRequest,
    identity: ResolvedIdentity = Depends(require_manager),
    db: Session = Depends(get_db),
) -> TeamMemberResponse:
    """Fetch one team member of the named agency.

    Raises:
        Forbidden 403: Agency is not the caller's (or unknown, for non-admins)
        NotFound 404: Unknown agency (admins) or no such member in the agency
    """
    repo = AgencyRepository(db)
    target_agency_id = repo.resolve_slug(body.agency_slug)

    require_agency_access(identity, target_agency_id)

    if target_agency_id is None:
        raise NotFound("Agency not found")

    member = repo.get_team_member(target_agency_id, body.team_member_id)
    if member is None:
        raise NotFound("Team member not found")

    logger.info(
        "Team member fetched",
        extra={"event": "team_member.fetched", "team_member_id": member.id},
    )
    return TeamMemberResponse(team_member=TeamMemberOut.model_validate(member))
