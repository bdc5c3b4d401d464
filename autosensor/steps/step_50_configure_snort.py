from __future__ import annotations

import logging
import re
from typing import List

from ..context import InstallCtx
from ..lib.env import PATHS
from ..lib.net import Artifact, download, fetch_artifact
from ..result import Result
from ..retry import RetryPolicy, retry
from ..templates import SnortConfOverrides
from .step_40_install_snort import SNORT_VER

logger = logging.getLogger(__name__)

DOCUMENTS_URL = "https://www.snort.org/documents"
CONF_NAME_RE = re.compile(r"snort-20[\w.]*?-conf")

SNORT_LAYOUT = (
    "etc",
    "lib",
    "rules",
    "so_rules",
    "preproc_rules",
    "snort_dynamicrules",
    "rules/iplists",
)

# Referenced by snort.conf; PulledPork post-processing replaces most of them.
PLACEHOLDERS = (
    "rules/iplists/IPRVersion.dat",
    "rules/white_list.rules",
    "rules/black_list.rules",
    "rules/snort.rules",
    "etc/reference.config",
    "etc/classification.config",
    "etc/threshold.conf",
)


def conf_choices(page: str, limit: int = 2) -> List[str]:
    """Newest-first snort.conf document names advertised on the documents page."""

    return sorted(set(CONF_NAME_RE.findall(page)), reverse=True)[:limit]


class ConfigureSnortStep:
    step_id = "50_configure_snort"
    policy = RetryPolicy.once()

    def _lookup_conf_names(self, ctx: InstallCtx) -> List[str]:
        logger.info("Checking latest snort.conf versions via snort.org...")
        page = f"{PATHS.tmp_dir}/snort_conf"
        res, _ = retry(
            lambda: download(ctx, DOCUMENTS_URL, page),
            RetryPolicy.network(),
            label="Download of snort.conf examples page",
            sleep=ctx.sleep,
        )
        if not res.ok or ctx.dry_run:
            return []
        p = ctx.path(page)
        names = conf_choices(p.read_text(encoding="utf-8", errors="ignore"))
        p.unlink()
        return names

    def run(self, ctx: InstallCtx) -> Result:
        base = ctx.env.base_dir
        for sub in SNORT_LAYOUT:
            ctx.ensure_dir(f"{base}/{sub}")
        for rel in PLACEHOLDERS:
            ctx.touch(f"{base}/{rel}")

        names = self._lookup_conf_names(ctx)
        if not names and not ctx.dry_run:
            return Result.failure(
                f"Could not find any snort.conf documents at {DOCUMENTS_URL}",
                retryable=True,
                remediation=f"Place a snort.conf for {SNORT_VER} at {base}/etc/snort.conf and re-run.",
            )

        logger.info("Attempting to download .conf file for %s..", SNORT_VER)
        conf = f"{base}/etc/snort.conf"
        res = fetch_artifact(
            ctx,
            Artifact(
                name="snort.conf",
                urls=tuple(f"{DOCUMENTS_URL}/{n}" for n in names),
                dest=conf,
                reuse_existing=False,
            ),
        )
        if not res.ok and not ctx.dry_run:
            return res

        logger.info("Modifying snort.conf -- unified2 output, SO white/block lists, and standard rule locations..")
        if not ctx.dry_run:
            p = ctx.path(conf)
            p.write_text(SnortConfOverrides(base).apply(p.read_text(encoding="utf-8")), encoding="utf-8")

        unicode_map = ctx.path(f"{PATHS.src_dir}/{SNORT_VER}/etc/unicode.map")
        if unicode_map.is_file():
            ctx.write_text(f"{base}/etc/unicode.map", unicode_map.read_text(encoding="utf-8"))
        else:
            logger.warning("%s not found; snort.conf expects it under %s/etc.", str(unicode_map), base)

        ctx.run(["ldconfig"])
        logger.info("snort.conf configured. Location: %s", conf)
        return Result.success()
