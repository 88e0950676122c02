"""Platform (Supabase Auth) token verification.

Two interchangeable verifiers turn a bearer JWT into a platform user id:

- ``SupabaseTokenVerifier`` asks the hosted auth service (``auth.get_user``),
  which checks signature, expiry and server-side session revocation.
- ``LocalJWTVerifier`` decodes the token with the project's JWT secret
  (HS256, audience ``authenticated``) without a network round trip.

Both raise ``TokenRejected`` on any failure so callers see one error type.
"""

import logging
from typing import Protocol

import jwt as pyjwt
from supabase import Client

from agency_api.errors import TokenRejected

logger = logging.getLogger(__name__)


class PlatformTokenVerifier(Protocol):
    def verify(self, token: str) -> str:
        """Return the platform user id for a valid token, or raise TokenRejected."""
        ...


class SupabaseTokenVerifier:
    """Verify tokens against the Supabase auth service."""

    def __init__(self, client: Client):
        self.client = client

    def verify(self, token: str) -> str:
        try:
            user_response = self.client.auth.get_user(token)
        except Exception as e:
            logger.warning(
                "Platform token verification failed",
                extra={"event": "auth.platform.rejected", "error_type": type(e).__name__},
            )
            raise TokenRejected("auth service rejected token") from e

        if not user_response or not user_response.user:
            raise TokenRejected("auth service returned no user")

        return user_response.user.id


class LocalJWTVerifier:
    """Verify Supabase-issued JWTs locally with the project JWT secret."""

    def __init__(self, jwt_secret: str, audience: str = "authenticated"):
        self.jwt_secret = jwt_secret
        self.audience = audience

    def verify(self, token: str) -> str:
        try:
            payload = pyjwt.decode(
                token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=self.audience,
                options={"require": ["exp", "sub"]},
            )
        except pyjwt.PyJWTError as e:
            logger.warning(
                "Platform token verification failed",
                extra={"event": "auth.platform.rejected", "error_type": type(e).__name__},
            )
            raise TokenRejected(type(e).__name__) from e

        subject = payload.get("sub")
        if not subject:
            raise TokenRejected("token has no subject")
        return str(subject)
