"""
Unit tests for structured logging processors.
"""

from leakwatch.config.logging import add_service_context, filter_pii


def test_emails_redacted():
    event = filter_pii(None, "info", {"event": "Login failed for ada@leakwatch.example.com"})
    assert event["event"] == "Login failed for [EMAIL_REDACTED]"


def test_phone_numbers_redacted():
    event = filter_pii(None, "info", {"contact": "+234 803 555 0101"})
    assert "555" not in event["contact"]
    assert "[PHONE_REDACTED]" in event["contact"]


def test_nested_values_redacted():
    event = filter_pii(
        None,
        "info",
        {"changes": {"owner": ["ops@leakwatch.example.com"]}},
    )
    assert event["changes"] == {"owner": ["[EMAIL_REDACTED]"]}


def test_credential_and_payload_keys_replaced():
    event = filter_pii(
        None,
        "info",
        {
            "password": "hunter22",
            "refresh_token": "eyJ...",
            "photos": ["data:image/png;base64,AAAA"],
            "report_id": "r-1",
        },
    )
    assert event["password"] == "[REDACTED]"
    assert event["refresh_token"] == "[REDACTED]"
    assert event["photos"] == "[REDACTED]"
    assert event["report_id"] == "r-1"


def test_service_context_added():
    assert add_service_context(None, "info", {})["service"] == "leakwatch"
    assert add_service_context(None, "info", {"service": "worker"})["service"] == "worker"
