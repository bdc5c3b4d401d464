from __future__ import annotations

import logging

from ..context import InstallCtx
from ..lib.pkg import apt_update, apt_upgrade
from ..result import Result
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)


class SystemUpdateStep:
    step_id = "10_system_update"
    policy = RetryPolicy.network()

    def run(self, ctx: InstallCtx) -> Result:
        logger.info("Performing apt-get update and upgrade (may take a while on a fresh install)..")
        apt_update(ctx)
        apt_upgrade(ctx)
        return Result.success()
