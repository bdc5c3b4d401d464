from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .errors import InstallerError


@dataclass(frozen=True)
class Result:
    """Outcome of a step, gate or acquisition attempt."""

    ok: bool
    cause: str = ""
    retryable: bool = False
    remediation: Optional[str] = None

    @classmethod
    def success(cls) -> "Result":
        return cls(ok=True)

    @classmethod
    def failure(cls, cause: str, *, retryable: bool = False, remediation: Optional[str] = None) -> "Result":
        return cls(ok=False, cause=cause, retryable=retryable, remediation=remediation)

    @classmethod
    def from_error(cls, e: InstallerError) -> "Result":
        return cls(ok=False, cause=str(e), retryable=e.retryable, remediation=e.remediation)


def guard(fn: Callable[[], Result]) -> Result:
    """Call fn, turning typed installer errors into failure Results.

    Anything that is not an InstallerError is a bug and propagates.
    """

    try:
        return fn()
    except InstallerError as e:
        return Result.from_error(e)
