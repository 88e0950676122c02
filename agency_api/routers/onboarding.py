"""Onboarding sequence assignment.

Accepts platform users and staff sessions. The sequence row is the trusted
source of the target agency. The contact or sale, and the assignee, must
belong to that same agency.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agency_api.auth.dependencies import dual_identity, require_agency_access
from agency_api.auth.identity import ResolvedIdentity
from agency_api.db.models import (
    AgencyContact,
    OnboardingInstance,
    OnboardingSequence,
    Profile,
    Sale,
    StaffUser,
)
from agency_api.db.session import get_db
from agency_api.errors import Conflict, Forbidden, InvalidInput, NotFound
from agency_api.schemas import AssignSequenceRequest, AssignSequenceResponse

router = APIRouter(prefix="/functions/v1", tags=["onboarding"])
logger = logging.getLogger(__name__)


def _require_subject(
    db: Session,
    model: Union[type[AgencyContact], type[Sale]],
    subject_id: Optional[str],
    label: str,
    identity: ResolvedIdentity,
    agency_id: str,
) -> None:
    """Re-resolve a client-supplied contact or sale id and gate its agency.

    Raises:
        NotFound 404: No row with ``subject_id``
        Forbidden 403: Row belongs to an agency other than the sequence's
    """
    if not subject_id:
        return
    row = db.query(model).filter(model.id == subject_id).first()
    if row is None:
        raise NotFound(f"{label} not found")
    require_agency_access(identity, row.agency_id)
    if row.agency_id != agency_id:
        raise Forbidden()


def _check_assignee(db: Session, body: AssignSequenceRequest, agency_id: str) -> None:
    if body.assigned_to_staff_user_id:
        staff_user = (
            db.query(StaffUser)
            .filter(StaffUser.id == body.assigned_to_staff_user_id)
            .first()
        )
        if staff_user is None or staff_user.agency_id != agency_id:
            raise InvalidInput("assigned_to_staff_user_id does not belong to this agency")
        if not staff_user.is_active:
            raise InvalidInput("Cannot assign to an inactive staff user")
        return

    profile = db.query(Profile).filter(Profile.id == body.assigned_to_user_id).first()
    if profile is None or profile.agency_id != agency_id:
        raise InvalidInput("assigned_to_user_id does not belong to this agency")


def _check_not_already_assigned(db: Session, body: AssignSequenceRequest, agency_id: str) -> None:
    """One active sequence per contact and per sale, whichever sequence it is."""
    active = db.query(OnboardingInstance).filter(
        OnboardingInstance.agency_id == agency_id,
        OnboardingInstance.status == "active",
    )
    if body.contact_id and active.filter(OnboardingInstance.contact_id == body.contact_id).first():
        raise Conflict("A sequence is already assigned to this contact")
    if body.sale_id and active.filter(OnboardingInstance.sale_id == body.sale_id).first():
        raise Conflict("A sequence is already assigned to this sale")


@router.post("/assign_onboarding_sequence", response_model=AssignSequenceResponse)
async def assign_onboarding_sequence(
    body: AssignSequenceRequest,
    identity: ResolvedIdentity = Depends(dual_identity),
    db: Session = Depends(get_db),
) -> AssignSequenceResponse:
    """Assign an onboarding sequence to a customer.

    Raises:
        NotFound 404: Sequence, contact or sale does not exist
        Forbidden 403: Sequence, contact or sale belongs to another agency
        InvalidInput 400: Inactive sequence, or assignee outside the agency or inactive
        Conflict 409: Contact or sale already has an active sequence
    """
    sequence = (
        db.query(OnboardingSequence)
        .filter(OnboardingSequence.id == body.sequence_id)
        .first()
    )
    if sequence is None:
        raise NotFound("Sequence not found")

    require_agency_access(identity, sequence.agency_id)
    agency_id = sequence.agency_id

    if not sequence.is_active:
        raise InvalidInput("Cannot assign an inactive sequence")

    _require_subject(db, AgencyContact, body.contact_id, "Contact", identity, agency_id)
    _require_subject(db, Sale, body.sale_id, "Sale", identity, agency_id)
    _check_assignee(db, body, agency_id)
    _check_not_already_assigned(db, body, agency_id)

    instance = OnboardingInstance(
        agency_id=agency_id,
        sequence_id=sequence.id,
        assigned_to_staff_user_id=body.assigned_to_staff_user_id,
        assigned_to_user_id=body.assigned_to_user_id,
        assigned_by_user_id=identity.user_id,
        assigned_by_staff_user_id=identity.staff_user_id,
        contact_id=body.contact_id,
        sale_id=body.sale_id,
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        customer_email=body.customer_email,
        start_date=body.start_date,
        status="active",
    )
    db.add(instance)
    db.commit()
    db.refresh(instance)

    logger.info(
        "Onboarding sequence assigned",
        extra={
            "event": "onboarding.assigned",
            "instance_id": instance.id,
            "sequence_id": sequence.id,
        },
    )

    return AssignSequenceResponse(
        instance_id=instance.id,
        sequence_id=sequence.id,
        sequence_name=sequence.name,
        agency_id=agency_id,
        start_date=instance.start_date,
        status=instance.status,
    )
