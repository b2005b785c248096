"""
Classification of remote speech API outcomes.

Every failed synthesis ends up as exactly one FailureKind. The kind fixes
the user-facing message; the reported status code is the remote one,
except for EMPTY_BODY and CONNECTION which have no meaningful remote
status and report 500.

    Status         Kind
    ------         ----
    2xx, no body   EMPTY_BODY
    401            UNAUTHORIZED
    404            VOICE_NOT_FOUND
    422            INVALID_PARAMETERS
    429            RATE_LIMITED
    500/502/503    UPSTREAM_ERROR
    other >= 400   UNKNOWN
    no response    CONNECTION
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class FailureKind(Enum):
    """Classified failure bands with their user-facing message."""

    EMPTY_BODY = "response body is empty"
    UNAUTHORIZED = "API key is invalid or unauthorized"
    VOICE_NOT_FOUND = "voice id not found"
    INVALID_PARAMETERS = "invalid parameters: {detail}"
    RATE_LIMITED = "rate limit exceeded, retry shortly"
    UPSTREAM_ERROR = "internal error in the remote speech API, retry"
    CONNECTION = "error connecting to remote speech API: {detail}"
    UNKNOWN = "error calling remote speech API"

    def message(self, detail: str = "") -> str:
        return self.value.format(detail=detail)

    def status_code(self, remote_status: Optional[int] = None) -> int:
        if self in (FailureKind.EMPTY_BODY, FailureKind.CONNECTION) or remote_status is None:
            return 500
        return remote_status


_STATUS_KINDS = {
    401: FailureKind.UNAUTHORIZED,
    404: FailureKind.VOICE_NOT_FOUND,
    422: FailureKind.INVALID_PARAMETERS,
    429: FailureKind.RATE_LIMITED,
    500: FailureKind.UPSTREAM_ERROR,
    502: FailureKind.UPSTREAM_ERROR,
    503: FailureKind.UPSTREAM_ERROR,
}


def is_failure(status: int) -> bool:
    """Client and server errors fail; 2xx and 3xx go down the success path."""
    return status >= 400


def classify_status(status: int) -> FailureKind:
    """Map a failing HTTP status to its FailureKind (UNKNOWN if unlisted)."""
    return _STATUS_KINDS.get(status, FailureKind.UNKNOWN)


def extract_detail(body: Any) -> str:
    """
    Pull the human-readable detail out of a 422 response body.

    ElevenLabs sends ``{"detail": {"message": "..."}}`` for its own
    validation errors; anything else yields "unknown error".
    """
    if isinstance(body, dict):
        detail = body.get("detail")
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        if isinstance(detail, str) and detail:
            return detail
    return "unknown error"
