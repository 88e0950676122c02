"""Request context management for observability.

Context variables for request tracking across async boundaries.
"""

from contextvars import ContextVar

# Request ID - unique per HTTP request
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Agency ID - tenant of the resolved identity
agency_id_var: ContextVar[str] = ContextVar("agency_id", default="")

# Auth mode - "supabase" or "staff" once the caller is resolved
auth_mode_var: ContextVar[str] = ContextVar("auth_mode", default="")
