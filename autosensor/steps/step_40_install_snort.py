from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..context import InstallCtx
from ..errors import EnvironmentMismatchError, ValidationGateError
from ..lib.env import PATHS
from ..lib.net import Artifact, fetch_artifact
from ..lib.pkg import apt_install
from ..result import Result
from ..retry import RetryPolicy
from .step_30_install_daq import PKGCONFIG_DIR

logger = logging.getLogger(__name__)

SNORT_VERSION = "2.9.20"
SNORT_VER = f"snort-{SNORT_VERSION}"
SNORT_TAR = f"{SNORT_VER}.tar.gz"
SNORT_URLS = (f"https://www.snort.org/downloads/snort/{SNORT_TAR}",)

# A file deep in the tree; missing means a truncated or bogus tarball.
INTEGRITY_MARKER = "src/detection-plugins/sp_rpc_check.c"

BUILD_ENV = {
    "LD_LIBRARY_PATH": "/usr/local/lib:/usr/lib:/usr/lib/x86_64-linux-gnu",
    "PKG_CONFIG_PATH": "/usr/local/lib/pkgconfig:/usr/lib/pkgconfig:/usr/lib/x86_64-linux-gnu/pkgconfig",
}

LIBPCAP_PC = ("/usr/lib/pkgconfig/libpcap.pc", "/usr/lib/x86_64-linux-gnu/pkgconfig/libpcap.pc")
RPC_PACKAGES = ("libc6-dev", "rpcsvc-proto", "libtirpc-dev")


def snort_artifact() -> Artifact:
    return Artifact(name=SNORT_TAR, urls=SNORT_URLS, dest=f"{PATHS.src_dir}/{SNORT_TAR}")


def find_rpc_header(include_dir: Path) -> Optional[Path]:
    """Locate rpc/rpc.h or tirpc/rpc/rpc.h under include_dir."""

    direct = include_dir / "rpc/rpc.h"
    if direct.is_file():
        return direct
    if not include_dir.is_dir():
        return None
    for p in sorted(include_dir.rglob("rpc.h")):
        if p.parent.name == "rpc":
            return p
    return None


class InstallSnortStep:
    step_id = "40_install_snort"
    policy = RetryPolicy.once()

    def _check_build_env(self, ctx: InstallCtx) -> None:
        logger.info("Checking build environment before compiling Snort...")
        if ctx.dry_run:
            return

        for rel in ("/usr/local/lib/libdaq.a", "/usr/local/include/daq.h"):
            if not ctx.path(rel).is_file():
                raise EnvironmentMismatchError(
                    f"DAQ library or headers not found ({rel}). Ensure DAQ was installed correctly."
                )
        if not ctx.path(f"{PKGCONFIG_DIR}/libdaq.pc").is_file():
            raise EnvironmentMismatchError(f"DAQ pkg-config file not found at {PKGCONFIG_DIR}/libdaq.pc.")
        if not any(ctx.path(p).is_file() for p in LIBPCAP_PC):
            raise EnvironmentMismatchError(
                "libpcap pkg-config file not found.", remediation="Ensure libpcap-dev is installed."
            )
        for tool in ("gcc", "make"):
            if ctx.run([tool, "--version"], check=False).returncode != 0:
                raise EnvironmentMismatchError(
                    f"{tool} is missing.", remediation="Install gcc, g++, and make."
                )
        if ctx.run(["pkg-config", "--libs", "--cflags", "libdaq", "libpcap"], check=False, env=BUILD_ENV).returncode != 0:
            raise EnvironmentMismatchError(
                "pkg-config failed to find libdaq or libpcap.",
                remediation="Try reinstalling libpcap-dev and re-running the DAQ installation.",
            )
        self._ensure_rpc_header(ctx)

    def _ensure_rpc_header(self, ctx: InstallCtx) -> None:
        """sp_rpc_check.c includes <rpc/rpc.h>, which newer glibc moved to tirpc."""

        include = ctx.path("/usr/include")
        wanted = include / "rpc/rpc.h"
        if wanted.is_file():
            logger.info("rpc.h found at /usr/include/rpc/rpc.h")
            return

        found = find_rpc_header(include)
        if found is None:
            logger.warning("rpc.h not found. Attempting to reinstall %s...", ", ".join(RPC_PACKAGES))
            apt_install(ctx, RPC_PACKAGES)
            found = find_rpc_header(include)
        if found is None:
            raise EnvironmentMismatchError(
                "rpc.h not found after reinstalling libc6-dev, rpcsvc-proto, and libtirpc-dev.",
                remediation="Locate it with: find /usr/include -name rpc.h",
            )

        logger.info("Copying %s to /usr/include/rpc/rpc.h...", str(found))
        wanted.parent.mkdir(parents=True, exist_ok=True)
        wanted.write_bytes(found.read_bytes())

    def _ensure_user(self, ctx: InstallCtx) -> None:
        logger.info("Checking for Snort user and group..")
        if ctx.run(["getent", "passwd", "snort"], check=False).returncode == 0:
            if ctx.run(["getent", "group", "snort"], check=False).returncode != 0:
                ctx.run(["groupadd", "snort"])
                ctx.run(["usermod", "-G", "snort", "snort"])
            return
        logger.info("Creating Snort user and group..")
        ctx.run(["groupadd", "-f", "snort"])
        ctx.run(["useradd", "-g", "snort", "snort", "-s", "/bin/false"])

    def run(self, ctx: InstallCtx) -> Result:
        base = ctx.env.base_dir
        src = ctx.path(PATHS.src_dir)

        logger.info("Acquiring and unpacking %s to %s..", SNORT_VER, PATHS.src_dir)
        res = fetch_artifact(ctx, snort_artifact())
        if not res.ok:
            return res
        ctx.run(["tar", "-xzf", src / SNORT_TAR, "-C", src])

        build = src / SNORT_VER
        if not ctx.dry_run and not (build / INTEGRITY_MARKER).is_file():
            tarball = src / SNORT_TAR
            if tarball.exists():
                tarball.unlink()
            raise ValidationGateError(
                f"{INTEGRITY_MARKER} not found in {PATHS.src_dir}/{SNORT_VER}. The Snort tarball may be corrupted.",
                remediation=f"The tarball was removed; re-run to download {SNORT_URLS[0]} again.",
            )

        ctx.ensure_dir(base)
        ctx.ensure_dir(f"{base}/lib")
        self._check_build_env(ctx)

        cflags = "-I/usr/include -I/usr/local/include -I/usr/include/tirpc -I/usr/include/x86_64-linux-gnu"
        logger.info("Configuring Snort (--prefix=%s --enable-sourcefire), making and installing..", base)
        ctx.run(
            [
                "./configure",
                f"--prefix={base}",
                f"--libdir={base}/lib",
                "--enable-sourcefire",
                f"CFLAGS={cflags}",
                "LDFLAGS=-L/usr/local/lib -L/usr/lib",
            ],
            cwd=build,
            env=BUILD_ENV,
        )
        ctx.run(["make", "V=1"], cwd=build, env=BUILD_ENV)
        ctx.run(["make", "install"], cwd=build, env=BUILD_ENV)

        ctx.ensure_dir(PATHS.snort_log_dir)
        self._ensure_user(ctx)
        logger.info("Tightening permissions to %s..", PATHS.snort_log_dir)
        ctx.run(["chmod", "770", ctx.path(PATHS.snort_log_dir)])
        ctx.run(["chown", "snort:snort", ctx.path(PATHS.snort_log_dir)])
        return Result.success()
