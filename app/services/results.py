"""Typed success/failure values returned by the core surface."""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from app.services.errors import CoreError, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying the operation's payload."""

    value: T
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Failure:
    """Failed outcome describing which kind of failure occurred.

    Attributes:
        kind: Failure category the presentation layer switches on
        message: Human-readable explanation
        details: Structured data for rendering (e.g. conflicting time)
    """

    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    ok: bool = field(default=False, init=False)

    @classmethod
    def from_error(cls, error: CoreError) -> "Failure":
        """Build a failure from a raised core error."""
        details = {k: v for k, v in error.details.items() if v is not None}
        return cls(kind=error.kind, message=error.message, details=details)


Result = Success[T] | Failure
