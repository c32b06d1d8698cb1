from __future__ import annotations

from townpass_location._redact import redact_for_log


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "host": "broker.local",
        "password": "pw",
        "nested": {"token": "abc", "Authorization": "Bearer x"},
    }

    redacted = redact_for_log(payload)
    assert redacted["host"] == "broker.local"
    assert redacted["password"] == "<redacted>"
    assert redacted["nested"]["token"] == "<redacted>"
    assert redacted["nested"]["Authorization"] == "<redacted>"


def test_redact_for_log_coarsens_coordinates() -> None:
    payload = {"latitude": 25.0330123, "longitude": 121.5654321, "capturedAt": "2026-01-01T00:00:00.000Z"}

    redacted = redact_for_log(payload)
    assert redacted["latitude"] == 25.033
    assert redacted["longitude"] == 121.565
    assert redacted["capturedAt"] == payload["capturedAt"]


def test_redact_for_log_handles_lists_and_short_keys() -> None:
    redacted = redact_for_log([{"lat": 1.23456, "lon": "n/a"}])
    assert redacted == [{"lat": 1.235, "lon": "n/a"}]


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]
