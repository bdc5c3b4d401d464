from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

from ..context import InstallCtx
from ..errors import AcquisitionError
from ..lib.env import PATHS
from ..result import Result
from ..retry import RetryPolicy
from .step_40_install_snort import SNORT_VER
from .step_60_install_pulledpork import PULLEDPORK_CONF

logger = logging.getLogger(__name__)

PULLEDPORK_TIMEOUT_S = 1800
KEEP_IN_ETC = ("snort.conf", "sid-msg.map")


def newest_snapshot(tmp_dir: Path) -> Optional[Path]:
    snaps = sorted(tmp_dir.glob("snortrules-snapshot-*.tar.gz"))
    return snaps[-1] if snaps else None


class FetchRulesStep:
    """Run PulledPork once, then swap the placeholder configs for the rule pack's."""

    step_id = "70_fetch_rules"
    policy = RetryPolicy.network()

    def _postprocess(self, ctx: InstallCtx) -> None:
        base = ctx.env.base_dir
        etc = ctx.path(f"{base}/etc")
        tmp = ctx.path(PATHS.tmp_dir)

        snapshot = newest_snapshot(tmp)
        if snapshot is None:
            logger.warning("No snortrules snapshot in %s; keeping placeholder config files.", PATHS.tmp_dir)
        else:
            for p in sorted(etc.iterdir()):
                if p.name not in KEEP_IN_ETC:
                    if p.is_dir():
                        shutil.rmtree(p)
                    else:
                        p.unlink()

            logger.info("Moving other Snort configuration files..")
            ctx.run(["tar", "-xzf", snapshot, "-C", tmp])
            extracted = tmp / "etc"
            if extracted.is_dir():
                for p in sorted(extracted.iterdir()):
                    if p.is_file() and p.name not in KEEP_IN_ETC:
                        shutil.copyfile(p, etc / p.name)

        gen_msg = ctx.path(f"{PATHS.src_dir}/{SNORT_VER}/etc/gen-msg.map")
        if gen_msg.is_file():
            shutil.copyfile(gen_msg, etc / "gen-msg.map")

    def run(self, ctx: InstallCtx) -> Result:
        logger.info("Attempting to download rules for %s..", SNORT_VER)
        logger.info("If this hangs, make sure HTTP_PROXY/http_proxy and HTTPS_PROXY/https_proxy are set as required.")
        r = ctx.run(
            ["perl", "pulledpork.pl", "-W", "-vv", "-P", "-c", PULLEDPORK_CONF],
            check=False,
            cwd=ctx.path(PATHS.pulledpork_dir),
            timeout=PULLEDPORK_TIMEOUT_S,
        )
        if r.returncode != 0:
            raise AcquisitionError(
                f"Rule download for {SNORT_VER} has failed (rc={r.returncode}).",
                remediation="Troubleshoot connectivity to snort.org and wait at least 15 minutes before trying again.",
            )

        if not ctx.dry_run:
            self._postprocess(ctx)
        logger.info("Rules processed successfully. Rules located in %s/rules.", ctx.env.base_dir)
        logger.info(
            "PulledPork lives in %s; adjust %s/etc to change which rules are enabled.",
            PATHS.pulledpork_dir,
            PATHS.pulledpork_dir,
        )
        return Result.success()
