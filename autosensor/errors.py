from __future__ import annotations

from typing import Optional, Sequence


class InstallerError(RuntimeError):
    """Base class for failures that abort an install run.

    `remediation` is an optional hint printed to the operator next to the error.
    """

    retryable = False

    def __init__(self, message: str, *, remediation: Optional[str] = None) -> None:
        super().__init__(message)
        self.remediation = remediation


class PreflightError(InstallerError):
    """Config file, required field or privilege problems."""


class AcquisitionError(InstallerError):
    """Transient failure talking to the network (downloads, keyservers, mirrors)."""

    retryable = True


class EnvironmentMismatchError(InstallerError):
    """The host lacks something we need (interface, toolchain, library)."""


class ValidationGateError(InstallerError):
    """A post-acquisition check failed; dependent services must not be enabled."""


class CommandError(InstallerError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command failed ({returncode}): {' '.join(self.argv)}"
        if stderr.strip():
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)
