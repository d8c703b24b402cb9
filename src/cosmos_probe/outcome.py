"""Probe outcome and classification value types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, TypeAlias

ProbeStage: TypeAlias = Literal["credential", "client", "operation"]


class Classification(str, Enum):
    """Fixed taxonomy every probe outcome maps to."""

    SUCCESS = "success"
    AUTH_ERROR = "auth_error"
    OTHER_ERROR = "other_error"


@dataclass(frozen=True, slots=True)
class ProbeOutcome:
    """Result of one probe attempt, consumed immediately by the classifier."""

    ok: bool
    stage: ProbeStage | None = None
    message: str = ""
    status_code: int | None = None
    error_code: str | None = None
    error_type: str | None = None

    @classmethod
    def success(cls) -> ProbeOutcome:
        return cls(ok=True)

    @classmethod
    def from_error(cls, stage: ProbeStage, exc: BaseException) -> ProbeOutcome:
        """Build a failed outcome, lifting structured codes off the exception."""
        cause = exc.__cause__ if exc.__cause__ is not None else exc
        return cls(
            ok=False,
            stage=stage,
            message=str(exc),
            status_code=error_status(exc) or error_status(cause),
            error_code=error_code(exc) or error_code(cause),
            error_type=type(cause).__name__,
        )


def error_code(exc: BaseException) -> str | None:
    code = getattr(exc, "error_code", None) or getattr(exc, "code", None)
    if code is None:
        return None
    if isinstance(code, Enum):
        return str(code.value)
    return str(code)


def error_status(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if status is None:
        return None
    try:
        return int(status)
    except (TypeError, ValueError):
        return None
