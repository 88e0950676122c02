"""Error taxonomy for API handlers.

Every error a handler raises maps to exactly one HTTP status. Authentication
and authorization failures carry an internal ``reason`` for server-side
logging, but surface to the caller with a single generic message per status
so that the response never reveals which part of the check failed.
"""

from typing import Optional

UNAUTHENTICATED_MESSAGE = "Invalid or expired session"
FORBIDDEN_MESSAGE = "Access denied"
INTERNAL_MESSAGE = "Internal server error"


class AgencyAPIError(Exception):
    """Base exception for errors rendered as ``{"error": message}``."""

    status_code: int = 500
    default_message: str = INTERNAL_MESSAGE

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AgencyAPIError):
    """Missing or malformed request parameters (400)."""

    status_code = 400
    default_message = "Invalid request"


class Unauthenticated(AgencyAPIError):
    """No credential, or a credential that could not be validated (401)."""

    status_code = 401
    default_message = UNAUTHENTICATED_MESSAGE


class Forbidden(AgencyAPIError):
    """Valid credential, wrong tenant or role (403)."""

    status_code = 403
    default_message = FORBIDDEN_MESSAGE


class NotFound(AgencyAPIError):
    """Resource absent within the caller's own scope (404)."""

    status_code = 404
    default_message = "Not found"


class Conflict(AgencyAPIError):
    """Uniqueness or state violation (409)."""

    status_code = 409
    default_message = "Conflict"


class InternalError(AgencyAPIError):
    """Unexpected failure in storage or an upstream service (500)."""

    status_code = 500
    default_message = INTERNAL_MESSAGE


# ============================================================================
# Authentication failures (internal reasons, translated at one point)
# ============================================================================


class AuthFailure(Exception):
    """Base class for credential and identity resolution failures.

    ``reason`` is logged, never returned to the caller.
    """

    reason: str = "auth_failed"
    public_error: type[AgencyAPIError] = Unauthenticated

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.reason
        super().__init__(self.detail)

    def to_http(self) -> AgencyAPIError:
        """Translate into the generic HTTP error for this failure class."""
        return self.public_error()


class MissingCredential(AuthFailure):
    reason = "missing_credential"


class TokenRejected(AuthFailure):
    """The platform auth service did not accept the bearer token."""

    reason = "token_rejected"


class SessionNotFound(AuthFailure):
    reason = "session_not_found"


class SessionExpired(AuthFailure):
    reason = "session_expired"


class SessionInvalidated(AuthFailure):
    """Session revoked (``is_valid`` false) or owning staff user inactive."""

    reason = "session_invalidated"


class ProfileNotFound(AuthFailure):
    """Verified platform user without a usable profile row."""

    reason = "profile_not_found"
    public_error = Forbidden
