"""Structured error codes for API responses and SSE ``error`` events.

Every client-visible failure is returned as::

    {"ok": false, "code": "<ERROR_CODE>", "message": "<human readable>"}

SSE streams additionally carry ``errorText`` in the frozen format::

    {ERROR_CODE}: {human_readable_detail}
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes shared with the editor frontend."""

    INVALID_REQUEST = "INVALID_REQUEST"
    RATE_LIMITED = "RATE_LIMITED"
    LLM_NOT_CONFIGURED = "LLM_NOT_CONFIGURED"
    LLM_PROVIDER_ERROR = "LLM_PROVIDER_ERROR"
    NO_CONTENT = "NO_CONTENT"
    SERVICE_BUSY = "SERVICE_BUSY"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def format_error(code: ErrorCode, detail: str) -> str:
    """Format a generic error for SSE ``errorText``.

    Returns:
        ``{ERROR_CODE}: {detail}``
    """
    return f"{code.value}: {detail}"


def format_llm_error(detail: str) -> str:
    """Format an LLM provider error for SSE ``errorText``."""
    return format_error(ErrorCode.LLM_PROVIDER_ERROR, detail)


def error_payload(code: ErrorCode, message: str) -> dict:
    """Build the JSON body for a failed request."""
    return {"ok": False, "code": code.value, "message": message}
