"""Tenant authorization gate.

Rule, evaluated in order:
1. Platform admin → allow, for any target agency (existence is not checked here)
2. Caller's agency == target agency → allow
3. Otherwise → deny (cross_tenant)

The target agency id must come from a trusted lookup (slug resolution, the
owning row of a fetched resource), never verbatim from the request.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from agency_api.auth.identity import ResolvedIdentity

logger = logging.getLogger(__name__)

CROSS_TENANT = "cross_tenant"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None


ALLOW = Decision(allowed=True)


def authorize(identity: ResolvedIdentity, target_agency_id: Optional[str]) -> Decision:
    """Decide whether ``identity`` may act on ``target_agency_id``."""
    if identity.is_admin:
        return ALLOW

    if identity.agency_id is not None and identity.agency_id == target_agency_id:
        return ALLOW

    logger.warning(
        "Cross-tenant access denied",
        extra={
            "event": "auth.gate.denied",
            "reason": CROSS_TENANT,
            "mode": identity.mode,
            "caller_agency_id": identity.agency_id,
            "target_agency_id": target_agency_id,
        },
    )
    return Decision(allowed=False, reason=CROSS_TENANT)
