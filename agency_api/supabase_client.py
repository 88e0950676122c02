"""Supabase client construction for auth operations.

SECURITY NOTICE:
- The secret (service role) key is server-only and bypasses RLS
- The publishable (anon) key is enough for ``auth.get_user`` token checks
- Keys come from ``AppConfig``; they are never logged
"""

import logging

from supabase import Client, create_client

from agency_api.auth.platform import LocalJWTVerifier, PlatformTokenVerifier, SupabaseTokenVerifier
from agency_api.config.env import AppConfig

logger = logging.getLogger(__name__)


def build_supabase_client(config: AppConfig) -> Client:
    """Build a Supabase client for token verification.

    Prefers the publishable key; falls back to the secret key when only that
    one is configured.

    Raises:
        RuntimeError: If the URL or both keys are missing
    """
    if not config.supabase_url:
        raise RuntimeError("SUPABASE_URL is not configured.")

    api_key = config.supabase_publishable_key or config.supabase_secret_key
    if not api_key:
        raise RuntimeError(
            "Neither SB_PUBLISHABLE_KEY nor SB_SECRET_KEY (or their legacy names) is set. "
            "One of them is required for platform token verification."
        )

    logger.info(
        "Initializing Supabase client",
        extra={
            "supabase_url": config.supabase_url,
            "key_type": "publishable" if config.supabase_publishable_key else "secret",
        },
    )

    return create_client(config.supabase_url, api_key)


def build_token_verifier(config: AppConfig) -> PlatformTokenVerifier:
    """Choose the platform token verifier for this process.

    A configured JWT secret selects local verification; otherwise tokens are
    checked remotely against the Supabase auth service.
    """
    if config.supabase_jwt_secret:
        logger.info("Platform tokens verified locally (HS256)")
        return LocalJWTVerifier(config.supabase_jwt_secret)

    return SupabaseTokenVerifier(build_supabase_client(config))
