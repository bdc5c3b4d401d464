from __future__ import annotations

import logging
from typing import Sequence

from .command import Runner, run_cmd

logger = logging.getLogger(__name__)

OFFLOAD_FEATURES = ("rx", "tx", "sg", "tso", "ufo", "gso", "gro", "lro")


def interface_exists(name: str, *, runner: Runner = run_cmd) -> bool:
    """Read-only probe; safe to call before any step runs."""

    r = runner(["ip", "link", "show", name], check=False)
    return r.returncode == 0


def disable_offloading(
    name: str,
    *,
    runner: Runner = run_cmd,
    features: Sequence[str] = OFFLOAD_FEATURES,
    dry_run: bool = False,
) -> list[str]:
    """Turn off NIC offloads that would hand the sensor merged or partial frames.

    Drivers commonly reject individual features (ufo is gone from modern
    kernels), so per-feature failures are only logged. Returns the features
    that could not be disabled.
    """

    failed: list[str] = []
    for feature in features:
        r = runner(["ethtool", "-K", name, feature, "off"], check=False, dry_run=dry_run)
        if r.returncode != 0:
            logger.warning("ethtool could not disable %s on %s (rc=%s)", feature, name, r.returncode)
            failed.append(feature)
    return failed
