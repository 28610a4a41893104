from __future__ import annotations

from citation_autofill.api.errors import ApiError, to_error_payload


def test_api_error_detail_only_carries_set_keys() -> None:
    exc = ApiError(status_code=400, error="No file provided")

    assert exc.status_code == 400
    assert exc.detail == {"error": "No file provided"}


def test_api_error_uses_camel_case_flags() -> None:
    exc = ApiError(
        status_code=500,
        error="Browser setup required",
        details="run playwright install chromium",
        is_setup_error=True,
        alternative_solution="use another machine",
    )

    assert exc.detail == {
        "error": "Browser setup required",
        "details": "run playwright install chromium",
        "isSetupError": True,
        "alternativeSolution": "use another machine",
    }


def test_to_error_payload_preserves_structured_detail() -> None:
    payload = to_error_payload(
        {"error": "Access denied.", "details": "PERMISSION_DENIED", "isConfigError": True},
        403,
    )

    assert payload == {
        "error": "Access denied.",
        "details": "PERMISSION_DENIED",
        "isConfigError": True,
    }


def test_to_error_payload_drops_unknown_and_empty_keys() -> None:
    payload = to_error_payload({"message": "missing", "details": "", "extra": 1}, 404)

    assert payload == {"error": "missing"}


def test_to_error_payload_normalizes_plain_string() -> None:
    assert to_error_payload("boom", 500) == {"error": "boom"}
    assert to_error_payload(None, 502) == {"error": "HTTP 502"}
