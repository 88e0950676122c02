"""Utility functions and helpers."""

from agency_api.utils.logging import JSONFormatter, configure_json_logging
from agency_api.utils.sanitize import redact_headers, sanitize_exc, sanitize_obj, sanitize_str

__all__ = [
    "JSONFormatter",
    "configure_json_logging",
    "redact_headers",
    "sanitize_exc",
    "sanitize_obj",
    "sanitize_str",
]
