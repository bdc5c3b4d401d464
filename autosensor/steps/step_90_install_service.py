from __future__ import annotations

import logging

from ..context import InstallCtx
from ..errors import CommandError
from ..lib.env import PATHS
from ..logging_utils import GOOD
from ..result import Result
from ..retry import RetryPolicy
from ..templates import SystemdUnit

logger = logging.getLogger(__name__)


class InstallServiceStep:
    """Write the unit file, reload systemd and enable the unit."""

    policy = RetryPolicy.once()

    def __init__(self, step_id: str, unit_name: str, unit: SystemdUnit) -> None:
        self.step_id = step_id
        self.unit_name = unit_name
        self.unit = unit

    def run(self, ctx: InstallCtx) -> Result:
        path = f"{PATHS.systemd_dir}/{self.unit_name}"
        if ctx.path(path).exists():
            logger.warning("%s already exists. Overwriting...", self.unit_name)
        unit_file = ctx.write_text(path, self.unit.render(), mode=0o700)
        ctx.run(["chown", "root:root", unit_file])
        ctx.run(["systemctl", "daemon-reload"])
        ctx.run(["systemctl", "enable", self.unit_name])
        logger.log(GOOD, "%s installed and enabled. Location: %s", self.unit_name, path)
        return Result.success()


class StartServiceStep:
    policy = RetryPolicy.once()

    def __init__(self, step_id: str, unit_name: str) -> None:
        self.step_id = step_id
        self.unit_name = unit_name

    def run(self, ctx: InstallCtx) -> Result:
        logger.info("Starting %s...", self.unit_name)
        try:
            ctx.run(["systemctl", "start", self.unit_name])
        except CommandError as e:
            return Result.failure(
                f"Failed to start {self.unit_name}: {e}",
                remediation=f"Check `systemctl status {self.unit_name}` and the install log for details.",
            )
        logger.log(GOOD, "%s started successfully.", self.unit_name)
        return Result.success()
