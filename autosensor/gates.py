from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from .context import InstallCtx
from .lib.netif import interface_exists
from .logging_utils import GOOD
from .result import Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationGate:
    """A named precondition that must hold before a service is activated."""

    name: str
    check: Callable[[InstallCtx], Result]


def path_exists(path: str, *, directory: bool = False) -> ValidationGate:
    def check(ctx: InstallCtx) -> Result:
        p = ctx.path(path)
        ok = p.is_dir() if directory else p.is_file()
        if ok:
            return Result.success()
        return Result.failure(f"{'Directory' if directory else 'File'} not found: {path}")

    return ValidationGate(name=f"exists:{path}", check=check)


def file_non_empty(path: str) -> ValidationGate:
    def check(ctx: InstallCtx) -> Result:
        p = ctx.path(path)
        if not p.is_file():
            return Result.failure(f"File not found: {path}")
        if p.stat().st_size == 0:
            return Result.failure(f"File is empty: {path}")
        return Result.success()

    return ValidationGate(name=f"non_empty:{path}", check=check)


def dir_has_rules(path: str, pattern: str = "*.rules") -> ValidationGate:
    def check(ctx: InstallCtx) -> Result:
        p = ctx.path(path)
        if not p.is_dir():
            return Result.failure(f"Rules directory not found at {path}.")
        if not any(p.glob(pattern)):
            return Result.failure(f"No rule files ({pattern}) found in {path}. Ensure rules are installed.")
        return Result.success()

    return ValidationGate(name=f"rules:{path}", check=check)


def interface_present(name: str) -> ValidationGate:
    def check(ctx: InstallCtx) -> Result:
        if interface_exists(name, runner=ctx.runner):
            return Result.success()
        return Result.failure(f"Network interface {name} does not exist.")

    return ValidationGate(name=f"iface:{name}", check=check)


def config_test(argv: Sequence[str], *, description: str) -> ValidationGate:
    """Dry-run the consuming binary against its config; exit code must be zero."""

    def check(ctx: InstallCtx) -> Result:
        r = ctx.run(list(argv), check=False)
        if r.returncode == 0:
            return Result.success()
        return Result.failure(
            f"{description} failed (rc={r.returncode})",
            remediation=f"Run manually: {' '.join(argv)}",
        )

    return ValidationGate(name=f"config_test:{description}", check=check)


def run_gates(gates: Sequence[ValidationGate], ctx: InstallCtx) -> Result:
    """Evaluate gates in order; the first failure wins."""

    for gate in gates:
        if ctx.dry_run:
            logger.info("Would check %s", gate.name)
            continue
        res = gate.check(ctx)
        if not res.ok:
            logger.error("Validation gate %s failed: %s", gate.name, res.cause)
            return Result.failure(res.cause, remediation=res.remediation)
        logger.log(GOOD, "Validation gate %s passed.", gate.name)
    return Result.success()
