"""Saved reports.

Platform users only: a staff session header is ignored by this endpoint, so
a caller holding only a staff session is unauthenticated here.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agency_api.auth.dependencies import jwt_identity, require_agency_access
from agency_api.auth.identity import ResolvedIdentity
from agency_api.db.models import SavedReport
from agency_api.db.repo_agencies import AgencyRepository
from agency_api.db.session import get_db
from agency_api.errors import InvalidInput, NotFound
from agency_api.schemas import SaveReportRequest, SaveReportResponse

router = APIRouter(prefix="/functions/v1", tags=["reports"])
logger = logging.getLogger(__name__)


@router.post("/save-report", response_model=SaveReportResponse)
async def save_report(
    body: SaveReportRequest,
    identity: ResolvedIdentity = Depends(jwt_identity),
    db: Session = Depends(get_db),
) -> SaveReportResponse:
    """Save a report snapshot for the caller's agency (or, for admins, a named one).

    Raises:
        InvalidInput 400: Admin without an agency did not name one
        Forbidden 403: Named agency is not the caller's
        NotFound 404: Named agency does not exist (admins only)
    """
    target_agency_id = identity.agency_id

    if body.agency_slug:
        target_agency_id = AgencyRepository(db).resolve_slug(body.agency_slug)
        require_agency_access(identity, target_agency_id)
        if target_agency_id is None:
            raise NotFound("Agency not found")
    elif target_agency_id is None:
        raise InvalidInput("Missing required field: agency_slug")

    report = SavedReport(
        agency_id=target_agency_id,
        user_id=identity.user_id,
        title=body.title,
        report_type=body.report_type,
        input_data=body.input_data,
        results_data=body.results_data,
    )
    db.add(report)
    db.commit()
    db.refresh(report)

    logger.info(
        "Report saved",
        extra={
            "event": "report.saved",
            "report_id": report.id,
            "report_type": report.report_type,
        },
    )

    return SaveReportResponse(
        report_id=report.id,
        agency_id=report.agency_id,
        title=report.title,
        report_type=report.report_type,
        created_at=report.created_at,
    )
