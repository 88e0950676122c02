"""Caller identity endpoint.

Front ends call this once after login to learn which agency, mode and role
the current credential resolves to.
"""

from fastapi import APIRouter, Depends

from agency_api.auth.dependencies import dual_identity
from agency_api.auth.identity import ResolvedIdentity

router = APIRouter(prefix="/functions/v1", tags=["identity"])


@router.post("/verify_request", response_model=ResolvedIdentity)
async def verify_request(identity: ResolvedIdentity = Depends(dual_identity)) -> ResolvedIdentity:
    """Return the resolved identity for a platform JWT or staff session."""
    return identity
