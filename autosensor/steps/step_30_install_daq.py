from __future__ import annotations

import logging

from ..context import InstallCtx
from ..lib.env import PATHS
from ..lib.net import Artifact, fetch_artifact
from ..result import Result
from ..retry import RetryPolicy
from ..templates import LibDaqPc

logger = logging.getLogger(__name__)

DAQ_VERSION = "2.0.7"
DAQ_VER = f"daq-{DAQ_VERSION}"
DAQ_TAR = f"{DAQ_VER}.tar.gz"
DAQ_URLS = (f"https://www.snort.org/downloads/snort/{DAQ_TAR}",)

PKGCONFIG_DIR = "/usr/local/lib/pkgconfig"


def daq_artifact() -> Artifact:
    return Artifact(name=DAQ_TAR, urls=DAQ_URLS, dest=f"{PATHS.src_dir}/{DAQ_TAR}")


class InstallDaqStep:
    """Fetch, build and install the DAQ libraries Snort 2.9 links against."""

    step_id = "30_install_daq"
    policy = RetryPolicy.once()

    def run(self, ctx: InstallCtx) -> Result:
        src = ctx.path(PATHS.src_dir)
        logger.info("Acquiring and unpacking %s to %s..", DAQ_VER, PATHS.src_dir)
        res = fetch_artifact(ctx, daq_artifact())
        if not res.ok:
            return res

        ctx.run(["tar", "-xzf", src / DAQ_TAR, "-C", src])
        build = src / DAQ_VER

        logger.info("Configuring, making, compiling, and linking DAQ libraries. This will take a moment or two..")
        ctx.run(["autoreconf", "-f", "-i"], cwd=build)
        ctx.run(["./configure"], cwd=build)
        ctx.run(["make", "V=1"], cwd=build)
        ctx.run(["make", "install"], cwd=build)

        pc = ctx.path(f"{PKGCONFIG_DIR}/libdaq.pc")
        shipped = build / "libdaq.pc"
        if shipped.is_file():
            logger.info("Installing DAQ pkg-config file...")
            ctx.write_text(f"{PKGCONFIG_DIR}/libdaq.pc", shipped.read_text(encoding="utf-8"))
        else:
            logger.warning("libdaq.pc not found in DAQ source directory. Generating it.")
            ctx.write_text(f"{PKGCONFIG_DIR}/libdaq.pc", LibDaqPc(version=DAQ_VERSION).render())
        logger.info("DAQ pkg-config file at %s", str(pc))

        sfbpf = ctx.path("/usr/lib/libsfbpf.so.0")
        if not sfbpf.is_symlink():
            logger.info("Creating symlink for libsfbpf.so.0 on default ld library path..")
            ctx.run(["ln", "-s", "/usr/local/lib/libsfbpf.so.0", sfbpf])

        ctx.run(["ldconfig"])
        return Result.success()
