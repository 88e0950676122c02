"""Tests for structured JSON logging and redaction."""

import json
import logging
from io import StringIO

import pytest

from agency_api.context import agency_id_var, auth_mode_var, request_id_var
from agency_api.utils.logging import JSONFormatter, configure_json_logging
from agency_api.utils.sanitize import (
    MAX_STR_FOR_REGEX,
    MAX_STR_LOG,
    MAX_TRACEBACK_LOG,
    redact_headers,
    sanitize_obj,
    sanitize_str,
)


@pytest.fixture
def json_logger():
    logger = logging.getLogger("test_agency_json_logger")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    request_id_var.set("")
    agency_id_var.set("")
    auth_mode_var.set("")


def last_line(stream: StringIO) -> dict:
    return json.loads(stream.getvalue().strip().splitlines()[-1])


def test_includes_context_vars(json_logger):
    logger, stream = json_logger
    request_id_var.set("req_123")
    agency_id_var.set("agency-1")
    auth_mode_var.set("staff")

    logger.info("Test message")

    log_data = last_line(stream)
    assert log_data["message"] == "Test message"
    assert log_data["level"] == "INFO"
    assert log_data["request_id"] == "req_123"
    assert log_data["agency_id"] == "agency-1"
    assert log_data["auth_mode"] == "staff"


def test_omits_empty_context(json_logger):
    logger, stream = json_logger

    logger.info("No context")

    log_data = last_line(stream)
    assert "request_id" not in log_data
    assert "agency_id" not in log_data


def test_extra_fields_merged(json_logger):
    logger, stream = json_logger

    logger.warning("Authentication failed", extra={"event": "auth.failed", "reason": "session_expired"})

    log_data = last_line(stream)
    assert log_data["event"] == "auth.failed"
    assert log_data["reason"] == "session_expired"


def test_extras_redacted(json_logger):
    logger, stream = json_logger

    logger.info(
        "Headers seen",
        extra={
            "headers": {"Authorization": "Bearer abc.def.ghi", "x-staff-session": "tok-123"},
            "note": "retrying with Bearer eyJhbGciOi",
        },
    )

    output = stream.getvalue()
    assert "abc.def.ghi" not in output
    assert "tok-123" not in output
    assert "eyJhbGciOi" not in output
    assert last_line(stream)["headers"]["Authorization"] == "[REDACTED]"


def test_exception_traceback_redacted(json_logger):
    logger, stream = json_logger

    try:
        raise ValueError("lookup failed for session_token=tok-secret")
    except ValueError:
        logger.error("Lookup failed", exc_info=True)

    log_data = last_line(stream)
    assert "ValueError" in log_data["exc_info"]
    assert "tok-secret" not in log_data["exc_info"]


def test_long_traceback_keeps_frames_and_message(json_logger):
    logger, stream = json_logger

    try:
        raise RuntimeError("renewal lookup failed, Bearer eyJsecret\n" + "retry context\n" * 200)
    except RuntimeError:
        logger.error("Lookup failed", exc_info=True)

    exc_text = last_line(stream)["exc_info"]
    assert len(exc_text) > MAX_STR_LOG
    assert "TRUNCATED" not in exc_text
    assert "in test_long_traceback_keeps_frames_and_message" in exc_text
    assert "RuntimeError: renewal lookup failed, Bearer [REDACTED]" in exc_text
    assert "eyJsecret" not in exc_text


def test_huge_traceback_keeps_the_newest_lines(json_logger):
    logger, stream = json_logger

    try:
        raise ValueError("frame noise\n" * 2000 + "last words")
    except ValueError:
        logger.error("Boom", exc_info=True)

    exc_text = last_line(stream)["exc_info"]
    assert exc_text.startswith("[TRUNCATED ")
    assert len(exc_text) <= MAX_TRACEBACK_LOG + 40
    assert exc_text.rstrip().endswith("last words")


def test_configure_json_logging_installs_formatter():
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    try:
        configure_json_logging("WARNING")

        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


class TestSanitizer:
    def test_bearer_in_message(self):
        assert sanitize_str("Authorization: Bearer abc") == "Authorization: Bearer [REDACTED]"

    def test_staff_header_in_message(self):
        assert sanitize_str("x-staff-session: tok-123") == "x-staff-session: [REDACTED]"

    def test_query_style_secrets(self):
        result = sanitize_str("retry session_token=tok-9&agency=alpha password=hunter2")
        assert result == "retry session_token=[REDACTED]&agency=alpha password=[REDACTED]"

    def test_customer_contact_details(self):
        result = sanitize_str("assigned to jordan@example.test, call (555) 123-4567")
        assert result == "assigned to [EMAIL], call [PHONE]"

    def test_dates_and_ids_untouched(self):
        message = "session expired at 2026-03-02T15:00:00+00:00 for staff-1"
        assert sanitize_str(message) == message

    def test_long_credential_masked_whole(self):
        assert sanitize_str("Bearer " + "a" * (MAX_STR_FOR_REGEX + 1)) == "[REDACTED]"

    def test_redact_headers(self):
        headers = {"authorization": "Bearer abc", "x-staff-session": "tok-123", "content-type": "application/json"}

        assert redact_headers(headers) == {
            "authorization": "[REDACTED]",
            "x-staff-session": "[REDACTED]",
            "content-type": "application/json",
        }

    def test_sensitive_keys(self):
        result = sanitize_obj({"customer_email": "a@b.test", "nested": {"password": "pw"}, "ok": 1})
        assert result == {"customer_email": "[REDACTED]", "nested": {"password": "[REDACTED]"}, "ok": 1}

    def test_long_string_truncated(self):
        result = sanitize_str("x" * (MAX_STR_LOG + 1))
        assert result.startswith("[TRUNCATED len=")
