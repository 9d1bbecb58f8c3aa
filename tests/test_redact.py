from __future__ import annotations

from pylivetrack._redact import redact_for_log


def test_redact_for_log_redacts_secret_keys() -> None:
    params = {
        "start": "77.1,28.7",
        "api_key": "ORS-KEY",
        "Authorization": "Bearer abc",
        "nested": {"token": "jwt", "userId": "u1"},
    }

    redacted = redact_for_log(params)
    assert redacted["start"] == "77.1,28.7"
    assert redacted["api_key"] == "<redacted>"
    assert redacted["Authorization"] == "<redacted>"
    assert redacted["nested"] == {"token": "<redacted>", "userId": "u1"}


def test_redact_for_log_masks_inline_bearer_tokens() -> None:
    redacted = redact_for_log({"detail": "rejected header bearer eyJhbGciOi.payload.sig"})
    assert redacted["detail"] == "rejected header Bearer <redacted>"


def test_redact_for_log_truncates_long_strings() -> None:
    redacted = redact_for_log({"value": "x" * 600}, max_string=10)
    assert redacted["value"] == "x" * 10 + "...<truncated>"


def test_redact_for_log_summarises_route_geometry() -> None:
    payload = {"coords": {"latitude": 28.7, "longitude": 77.1}, "coordinates": [[77.0, 28.0]] * 100}

    redacted = redact_for_log(payload)
    assert redacted["coordinates"] == "<100 items>"
    assert redacted["coords"] == {"latitude": 28.7, "longitude": 77.1}
