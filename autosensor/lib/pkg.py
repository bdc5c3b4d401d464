from __future__ import annotations

import logging
from typing import Sequence

from ..context import InstallCtx
from ..errors import AcquisitionError

logger = logging.getLogger(__name__)

NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}
# Upper bound for one apt-get run; rc 124 on expiry, like any other failed attempt.
APT_TIMEOUT_S = 1800


def _apt(ctx: InstallCtx, argv: Sequence[str], what: str) -> None:
    r = ctx.run(argv, check=False, env=NONINTERACTIVE, timeout=APT_TIMEOUT_S)
    if r.returncode != 0:
        # Mirrors being unreachable is by far the common cause; let the step retry.
        raise AcquisitionError(f"{what} failed (rc={r.returncode}): {r.stderr.strip()[-500:]}")


def apt_update(ctx: InstallCtx) -> None:
    _apt(ctx, ["apt-get", "update"], "apt-get update")


def apt_upgrade(ctx: InstallCtx) -> None:
    _apt(ctx, ["apt-get", "-y", "upgrade"], "apt-get upgrade")


def apt_install(ctx: InstallCtx, packages: Sequence[str]) -> None:
    if not packages:
        return
    logger.info("Installing packages: %s", " ".join(packages))
    _apt(ctx, ["apt-get", "install", "-y", *packages], f"Package installation for {' '.join(packages)}")


def has_perl_module(ctx: InstallCtx, module: str) -> bool:
    return ctx.run(["perl", f"-M{module}", "-e", "exit 0"], check=False).returncode == 0
