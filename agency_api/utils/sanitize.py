"""Log redaction for credentials and customer contact details.

Edge handlers see two kinds of bearer secrets (platform JWTs and staff
session tokens) and customer PII (names, emails, phones on onboarding and
renewal bodies). Anything that reaches a log record goes through here.

Strings are handled by size:
 1. longer than MAX_STR_LOG       → replaced by length + sha256 prefix
 2. longer than MAX_STR_FOR_REGEX → only a leading credential is masked
 3. otherwise                     → every pattern below is applied
"""

import hashlib
import re
import traceback
from typing import Any, Mapping

MAX_STR_LOG: int = 2048
MAX_STR_FOR_REGEX: int = 512
MAX_DEPTH: int = 6
MAX_TRACEBACK_LOG: int = 16384

REDACTED = "[REDACTED]"

# Compared lower-cased
_SENSITIVE_KEYS: frozenset[str] = frozenset({
    "authorization", "x-staff-session", "staff_session", "session_token",
    "token", "access_token", "refresh_token", "jwt", "apikey", "api_key",
    "password", "secret",
    "email", "phone", "customer_email", "customer_phone",
})

# (pattern, replacement); group 1 keeps the label so the log stays readable
_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(Bearer )\S+", re.IGNORECASE), r"\1" + REDACTED),
    (re.compile(r"(x-staff-session[=:]\s*)\S+", re.IGNORECASE), r"\1" + REDACTED),
    (re.compile(r"((?:session_token|access_token|apikey|password)=)[^\s&]+"), r"\1" + REDACTED),
    (re.compile(r"\b[\w.+-]+@[\w-]+\.[\w.-]+\b"), "[EMAIL]"),
    (re.compile(r"(?<!\w)\(?\d{3}\)?[ .-]?\d{3}[ .-]\d{4}\b"), "[PHONE]"),
)

_LEADING_CREDENTIAL = re.compile(r"^(Bearer|x-staff-session)\b", re.IGNORECASE)


def sanitize_str(s: str) -> str:
    """Redact credentials and contact details in ``s``."""
    if not isinstance(s, str):
        return s  # type: ignore[return-value]

    n = len(s)
    if n > MAX_STR_LOG:
        digest = hashlib.sha256(s.encode("utf-8", errors="replace")).hexdigest()[:16]
        return f"[TRUNCATED len={n} sha256={digest}]"

    if n > MAX_STR_FOR_REGEX:
        return REDACTED if _LEADING_CREDENTIAL.match(s) else s

    for pattern, replacement in _RULES:
        s = pattern.sub(replacement, s)
    return s


def sanitize_obj(obj: Any, depth: int = 0) -> Any:
    """Recursively redact a log ``extra`` value (dicts by key, strings by pattern)."""
    if depth >= MAX_DEPTH:
        return "[DEPTH_LIMIT]"

    if isinstance(obj, Mapping):
        return {
            key: REDACTED if is_sensitive_key(key) else sanitize_obj(value, depth + 1)
            for key, value in obj.items()
        }

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [sanitize_obj(item, depth + 1) for item in obj]

    if isinstance(obj, str):
        return sanitize_str(obj)

    return obj


def is_sensitive_key(key: Any) -> bool:
    return isinstance(key, str) and key.lower() in _SENSITIVE_KEYS


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of request headers safe to log: credential headers masked."""
    return {name: REDACTED if is_sensitive_key(name) else value for name, value in headers.items()}


def sanitize_exc(exc_info: tuple) -> str:
    """Render ``exc_info`` as a redacted traceback without local variables.

    Redacted line by line so frames and the exception message survive; only
    the oldest frames are dropped once the text exceeds MAX_TRACEBACK_LOG.
    """
    _type, value, _tb = exc_info
    if value is None:
        return ""
    try:
        te = traceback.TracebackException.from_exception(value, capture_locals=False)
        lines = "".join(te.format()).splitlines(keepends=True)
    except Exception:
        return "[TRACEBACK_FORMAT_ERROR]"

    text = "".join(sanitize_str(line) for line in lines)
    if len(text) > MAX_TRACEBACK_LOG:
        dropped = len(text) - MAX_TRACEBACK_LOG
        text = f"[TRUNCATED {dropped} chars]\n" + text[-MAX_TRACEBACK_LOG:]
    return text
