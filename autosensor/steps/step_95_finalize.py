from __future__ import annotations

import logging

from ..context import InstallCtx
from ..result import Result
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)


class FinalizeStep:
    step_id = "95_finalize"
    policy = RetryPolicy.once()

    def run(self, ctx: InstallCtx) -> Result:
        logger.info("Install summary: variant=%s base_dir=%s bridge=%s", ctx.env.variant, ctx.env.base_dir, ctx.env.bridge)

        # Rebooting is operational and must be explicitly enabled (reboot: true).
        if ctx.env.reboot:
            logger.info("Rebooting now..")
            ctx.run(["sync"])
            ctx.run(["systemctl", "reboot"])
        else:
            logger.info("Reboot not requested; reboot the host to bring the sensor up cleanly.")
        return Result.success()
