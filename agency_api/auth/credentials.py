"""Credential extraction from inbound request headers.

Two credential types reach the edge functions:
- ``Authorization: Bearer <jwt>`` issued by the platform auth service
- ``x-staff-session: <opaque token>`` issued by the staff login flow

Which of them a handler consults depends on its declared ``AuthMode``.
Dual-mode handlers prefer the staff session when both are present.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from agency_api.config.env import DEFAULT_STAFF_SESSION_HEADER


class AuthMode(str, Enum):
    """Credential types a handler accepts."""

    JWT = "jwt"
    STAFF = "staff"
    DUAL = "dual"


class CredentialKind(str, Enum):
    BEARER = "bearer"
    STAFF_SESSION = "staff-session"
    NONE = "none"


@dataclass(frozen=True)
class Credential:
    kind: CredentialKind
    token: Optional[str] = None

    def __repr__(self) -> str:
        # Tokens are bearer secrets
        return f"Credential(kind={self.kind.value!r})"


NO_CREDENTIAL = Credential(CredentialKind.NONE)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def _staff_token(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.strip() or None


def extract_credential(
    headers: Mapping[str, str],
    mode: AuthMode,
    staff_header: str = DEFAULT_STAFF_SESSION_HEADER,
) -> Credential:
    """Pick the single credential a handler in ``mode`` should consult.

    Args:
        headers: Inbound headers (names matched case-insensitively)
        mode: The handler's declared authentication mode
        staff_header: Name of the staff session header

    Returns:
        Credential of kind bearer, staff-session or none
    """
    lowered = {key.lower(): value for key, value in headers.items()}
    bearer = _bearer_token(lowered.get("authorization"))
    staff = _staff_token(lowered.get(staff_header.lower()))

    if mode in (AuthMode.STAFF, AuthMode.DUAL) and staff:
        return Credential(CredentialKind.STAFF_SESSION, staff)

    if mode in (AuthMode.JWT, AuthMode.DUAL) and bearer:
        return Credential(CredentialKind.BEARER, bearer)

    return NO_CREDENTIAL
