"""Renewal activity logging for staff users.

Staff-only: platform users log activities through the dashboard directly.
A renewal record in another agency is reported as not found.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agency_api.auth.dependencies import get_clock, staff_identity
from agency_api.auth.gate import authorize
from agency_api.auth.identity import ResolvedIdentity
from agency_api.auth.session_store import Clock
from agency_api.db.models import RenewalActivity, RenewalRecord
from agency_api.db.repo_agencies import AgencyRepository
from agency_api.db.session import get_db
from agency_api.errors import InvalidInput, NotFound
from agency_api.schemas import RenewalActivityRequest, RenewalActivityResponse

router = APIRouter(prefix="/functions/v1", tags=["renewals"])
logger = logging.getLogger(__name__)

RENEWAL_TAKEN = "Renewal Taken"


@router.post("/log_staff_renewal_activity", response_model=RenewalActivityResponse)
async def log_staff_renewal_activity(
    body: RenewalActivityRequest,
    identity: ResolvedIdentity = Depends(staff_identity),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> RenewalActivityResponse:
    """Record an activity against a renewal and refresh the record's last-activity fields.

    Raises:
        NotFound 404: Record absent, or owned by another agency
        InvalidInput 400: Assigned team member outside the record's agency
    """
    record = (
        db.query(RenewalRecord)
        .filter(RenewalRecord.id == body.renewal_record_id)
        .first()
    )
    if record is None or not authorize(identity, record.agency_id).allowed:
        raise NotFound("Record not found")

    if body.assigned_team_member_id:
        member = AgencyRepository(db).get_team_member(record.agency_id, body.assigned_team_member_id)
        if member is None:
            raise InvalidInput("assigned_team_member_id does not belong to this agency")

    display_name = identity.display_name or "Staff User"
    now = clock()

    activity = RenewalActivity(
        agency_id=record.agency_id,
        renewal_record_id=record.id,
        activity_type=body.activity_type,
        activity_status=body.activity_status,
        subject=body.subject,
        comments=body.comments,
        scheduled_date=body.scheduled_date,
        assigned_team_member_id=body.assigned_team_member_id or identity.team_member_id,
        created_by=None,  # staff users have no platform user id
        created_by_display_name=display_name,
    )
    db.add(activity)

    record.last_activity_at = now
    record.last_activity_by_display_name = display_name
    record.updated_at = now
    if body.update_record_status:
        record.current_status = body.update_record_status
    if body.mark_as_successful:
        record.renewal_status = RENEWAL_TAKEN

    db.commit()
    db.refresh(activity)

    logger.info(
        "Renewal activity logged",
        extra={
            "event": "renewal.activity.logged",
            "renewal_record_id": record.id,
            "activity_type": body.activity_type,
        },
    )

    return RenewalActivityResponse(
        activity_id=activity.id,
        renewal_record_id=record.id,
        current_status=record.current_status,
        renewal_status=record.renewal_status,
    )
