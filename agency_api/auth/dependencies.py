"""FastAPI dependencies that run the shared auth pipeline.

Credential Extractor → Identity Resolver → (per handler) Authorization Gate.

SECURITY:
- Every unauthenticated cause yields the same 401 body
- Every forbidden cause (wrong tenant, missing profile, missing role) yields the same 403 body
- The precise reason is logged server-side only
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from agency_api.auth.credentials import AuthMode, extract_credential
from agency_api.auth.gate import authorize
from agency_api.auth.identity import IdentityResolver, ResolvedIdentity
from agency_api.auth.session_store import Clock
from agency_api.context import agency_id_var, auth_mode_var
from agency_api.db.session import get_db
from agency_api.errors import AuthFailure, Forbidden

logger = logging.getLogger(__name__)


def get_identity_resolver(request: Request) -> IdentityResolver:
    """Process-wide resolver built by the app factory."""
    return request.app.state.identity_resolver


def get_clock(resolver: IdentityResolver = Depends(get_identity_resolver)) -> Clock:
    """Time source shared with session expiry checks."""
    return resolver.clock


def require_identity(mode: AuthMode) -> Callable[..., ResolvedIdentity]:
    """Build a dependency resolving the caller for a handler declared in ``mode``.

    Args:
        mode: Credential types the handler accepts

    Returns:
        Async dependency returning the ResolvedIdentity

    Raises (from the dependency):
        Unauthenticated: 401 for missing/invalid credentials
        Forbidden: 403 for a verified platform user without a usable profile
    """

    async def dependency(
        request: Request,
        db: Session = Depends(get_db),
        resolver: IdentityResolver = Depends(get_identity_resolver),
    ) -> ResolvedIdentity:
        staff_header = request.app.state.config.staff_session_header
        credential = extract_credential(request.headers, mode, staff_header)

        try:
            identity = resolver.resolve(credential, db)
        except AuthFailure as failure:
            logger.warning(
                "Authentication failed",
                extra={
                    "event": "auth.failed",
                    "reason": failure.reason,
                    "detail": failure.detail,
                    "endpoint_mode": mode.value,
                    "credential_kind": credential.kind.value,
                    "path": request.url.path,
                },
            )
            raise failure.to_http() from failure

        agency_id_var.set(identity.agency_id or "")
        auth_mode_var.set(identity.mode)

        logger.info(
            "Identity resolved",
            extra={
                "event": "auth.identity.resolved",
                "mode": identity.mode,
                "role": identity.role,
                "subject_id": identity.subject_id,
            },
        )
        return identity

    dependency.__name__ = f"require_{mode.value}_identity"
    return dependency


jwt_identity = require_identity(AuthMode.JWT)
staff_identity = require_identity(AuthMode.STAFF)
dual_identity = require_identity(AuthMode.DUAL)


def require_agency_access(identity: ResolvedIdentity, target_agency_id: Optional[str]) -> None:
    """Run the authorization gate; raise 403 on deny.

    Raises:
        Forbidden: Caller may not act on ``target_agency_id``
    """
    decision = authorize(identity, target_agency_id)
    if not decision.allowed:
        raise Forbidden()


def require_manager(identity: ResolvedIdentity = Depends(dual_identity)) -> ResolvedIdentity:
    """Require a platform user or a staff user whose team role is Manager/Owner.

    Raises:
        Forbidden: 403 for non-manager staff
    """
    if not identity.is_manager:
        logger.warning(
            "Insufficient permissions: manager role required",
            extra={
                "event": "auth.insufficient_permissions",
                "mode": identity.mode,
                "subject_id": identity.subject_id,
            },
        )
        raise Forbidden()
    return identity
