from __future__ import annotations

import logging

from ..context import InstallCtx
from ..lib.cron import register_schedule
from ..lib.env import PATHS
from ..result import Result
from ..retry import RetryPolicy
from ..templates import CronEntry

logger = logging.getLogger(__name__)

# Sunday at midnight, once weekly.
PULLEDPORK_SCHEDULE = CronEntry(
    schedule="0 0 * * 7",
    user="root",
    command=f"{PATHS.pulledpork_dir}/pulledpork.pl -c {PATHS.pulledpork_dir}/etc/pulledpork.conf",
    comment="# This line has been added by autosensor to run PulledPork for the latest rule updates.",
)


class ScheduleRuleUpdatesStep:
    step_id = "75_schedule_rule_updates"
    policy = RetryPolicy.once()

    def __init__(self, entry: CronEntry = PULLEDPORK_SCHEDULE) -> None:
        self.entry = entry

    def run(self, ctx: InstallCtx) -> Result:
        register_schedule(ctx.path(PATHS.crontab), self.entry, dry_run=ctx.dry_run)
        logger.info("To change when PulledPork checks for rule updates, edit %s.", PATHS.crontab)
        return Result.success()
