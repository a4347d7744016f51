from __future__ import annotations

from typing import Any

from csplens.apps.api.response import ErrorEnvelope


def _error_example(*, code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "error": {"code": code, "message": message},
        "meta": {"request_id": "req_example", "api_version": "v1"},
    }
    if details:
        payload["error"]["details"] = details
    return payload


def _error_response(description: str, *, code: str, message: str) -> dict[str, Any]:
    return {
        "model": ErrorEnvelope,
        "description": description,
        "content": {"application/json": {"example": _error_example(code=code, message=message)}},
    }


DEFAULT_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    404: _error_response("Not found", code="TENANT_NOT_FOUND", message="Tenant not found"),
    422: _error_response(
        "Validation error",
        code="REQUEST_VALIDATION_ERROR",
        message="Validation error",
    ),
    500: _error_response(
        "Internal server error",
        code="INTERNAL_ERROR",
        message="Internal server error",
    ),
}

REPORT_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    404: _error_response(
        "Unknown reporting endpoint",
        code="TENANT_NOT_FOUND",
        message="Invalid reporting endpoint",
    ),
    500: DEFAULT_ERROR_RESPONSES[500],
}
