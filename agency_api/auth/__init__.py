"""Dual-mode request authentication and tenant authorization."""

from agency_api.auth.credentials import AuthMode, Credential, CredentialKind, extract_credential
from agency_api.auth.gate import CROSS_TENANT, Decision, authorize
from agency_api.auth.identity import ADMIN_ROLE, STAFF_ROLE, IdentityResolver, ResolvedIdentity
from agency_api.auth.session_store import StaffSessionRecord, StaffSessionStore

__all__ = [
    "ADMIN_ROLE",
    "AuthMode",
    "CROSS_TENANT",
    "Credential",
    "CredentialKind",
    "Decision",
    "IdentityResolver",
    "ResolvedIdentity",
    "STAFF_ROLE",
    "StaffSessionRecord",
    "StaffSessionStore",
    "authorize",
    "extract_credential",
]
