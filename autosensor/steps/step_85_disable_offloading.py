from __future__ import annotations

import logging

from ..context import InstallCtx
from ..errors import EnvironmentMismatchError
from ..lib.netif import OFFLOAD_FEATURES, disable_offloading
from ..result import Result
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)


class DisableOffloadingStep:
    policy = RetryPolicy.once()

    def __init__(self, step_id: str = "85_disable_offloading") -> None:
        self.step_id = step_id

    def run(self, ctx: InstallCtx) -> Result:
        for iface in ctx.env.interfaces:
            logger.info("Disabling offloading options on %s..", iface)
            failed = disable_offloading(iface, runner=ctx.runner, dry_run=ctx.dry_run)
            if len(failed) == len(OFFLOAD_FEATURES):
                raise EnvironmentMismatchError(
                    f"Could not change any offload setting on {iface}.",
                    remediation="Check that ethtool is installed and the interface is up.",
                )
        return Result.success()
