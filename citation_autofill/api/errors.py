"""Shared API error types and helpers."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException

FILE_TOO_LARGE_ERROR = "File too large. Please upload a file smaller than 10MB."

_OPTIONAL_KEYS = (
    "details",
    "isConfigError",
    "isSetupError",
    "solution",
    "solutions",
    "alternativeSolution",
)


class ApiError(HTTPException):
    """HTTP exception whose detail is the client-facing error body.

    The body always has an ``error`` string; the flags and remediation hints
    are only present when set.
    """

    def __init__(
        self,
        *,
        status_code: int,
        error: str,
        details: str | None = None,
        is_config_error: bool = False,
        is_setup_error: bool = False,
        solution: dict[str, Any] | None = None,
        solutions: list[dict[str, Any]] | None = None,
        alternative_solution: str | None = None,
    ) -> None:
        body: dict[str, Any] = {"error": error}
        if details:
            body["details"] = details
        if is_config_error:
            body["isConfigError"] = True
        if is_setup_error:
            body["isSetupError"] = True
        if solution:
            body["solution"] = solution
        if solutions:
            body["solutions"] = solutions
        if alternative_solution:
            body["alternativeSolution"] = alternative_solution
        super().__init__(status_code=status_code, detail=body)


def to_error_payload(detail: Any, status_code: int) -> dict[str, Any]:
    """Normalize HTTP exception detail into the ``{error, ...}`` envelope."""
    if isinstance(detail, dict):
        error = str(detail.get("error") or detail.get("message") or f"HTTP {status_code}")
        payload: dict[str, Any] = {"error": error}
        for key in _OPTIONAL_KEYS:
            if detail.get(key) not in (None, "", False):
                payload[key] = detail[key]
        return payload
    return {"error": str(detail or f"HTTP {status_code}")}
