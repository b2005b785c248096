"""
Error taxonomy and result type for the speech service.

    ValidationError   bad input, detected before any outbound call (400)
    SynthesisError    classified failure of a remote call (status from tts.status)
    anything else     unclassified; propagates to the HTTP boundary

The service returns its outcome as a Result instead of raising:

    result = service.synthesize("Hello")
    if result.ok:
        url = result.value
    else:
        log(result.error.to_dict())

Callers that prefer exceptions use ``result.unwrap()``, which raises the
carried error.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from tts_relay.tts.status import FailureKind

T = TypeVar("T")


class SynthesisError(Exception):
    """
    A classified failure of a speech service operation.

    Attributes:
        message: Human-readable error message, safe to show to end users.
        status_code: HTTP-style classification (remote status, or 400/500).
        response_data: Parsed remote response body, when there was one.
        kind: FailureKind band, None for validation and catalog errors.
        cause: The lower-level exception, also chained as __cause__.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        response_data: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        kind: Optional[FailureKind] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data
        self.kind = kind
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    @classmethod
    def from_kind(
        cls,
        kind: FailureKind,
        remote_status: Optional[int] = None,
        response_data: Optional[Any] = None,
        detail: str = "",
        cause: Optional[BaseException] = None,
    ) -> "SynthesisError":
        return cls(
            kind.message(detail),
            kind.status_code(remote_status),
            response_data=response_data,
            cause=cause,
            kind=kind,
        )

    @property
    def label(self) -> str:
        """Short lower-case name for metrics labels."""
        return self.kind.name.lower() if self.kind else "error"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dict for structured logging."""
        return {
            "message": self.message,
            "status_code": self.status_code,
            "response_data": self.response_data,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SynthesisError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.status_code == other.status_code
        )

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.message, self.status_code))


class ValidationError(SynthesisError):
    """Input rejected before any side effect."""

    def __init__(self, message: str, field: str = "text"):
        super().__init__(message, 400)
        self.field = field

    @property
    def label(self) -> str:
        return "invalid_input"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome."""
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying a SynthesisError."""
    error: SynthesisError

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error


Result = Union[Ok[T], Err]
