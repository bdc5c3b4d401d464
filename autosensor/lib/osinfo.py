from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

from ..errors import PreflightError
from .command import Runner, run_cmd

logger = logging.getLogger(__name__)

SUPPORTED_DISTROS = {
    "18": "Ubuntu-18-04",
    "20": "Ubuntu-20-04",
}
FALLBACK_DISTRO = "Ubuntu-18-04"


@dataclass(frozen=True)
class Platform:
    release: str
    distro: str


def detect_release(*, runner: Runner = run_cmd) -> str:
    """Return the Ubuntu release number (e.g. '20.04'), or '' if unknown."""

    r = runner(["lsb_release", "-r"], check=False)
    if r.returncode != 0:
        return ""
    # "Release:\t20.04"
    parts = (r.stdout or "").split()
    return parts[-1] if parts else ""


def resolve_platform(release: str, *, strict: bool = False) -> Platform:
    major = release.split(".", 1)[0] if release else ""
    distro = SUPPORTED_DISTROS.get(major)
    if distro:
        logger.info("OS is Ubuntu %s. Good to go.", release)
        return Platform(release=release, distro=distro)

    msg = f"This is not Ubuntu 18.x or 20.x (detected {release or 'unknown'})"
    if strict:
        raise PreflightError(
            f"{msg}; refusing to continue because strict_platform is set.",
            remediation="Run on Ubuntu 18.04/20.04, or set distro explicitly and drop strict_platform.",
        )
    logger.warning("%s, this installer has NOT been tested on other platforms.", msg)
    logger.warning("Continuing at your own risk with distro=%s.", FALLBACK_DISTRO)
    return Platform(release=release, distro=FALLBACK_DISTRO)


def detect_platform(strict: bool = False, *, runner: Runner = run_cmd) -> Tuple[str, str]:
    p = resolve_platform(detect_release(runner=runner), strict=strict)
    return p.release, p.distro
