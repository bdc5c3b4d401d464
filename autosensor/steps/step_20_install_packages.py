from __future__ import annotations

import logging

from ..context import InstallCtx
from ..errors import EnvironmentMismatchError
from ..lib.pkg import apt_install, apt_update, has_perl_module
from ..result import Result
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)

BASE_PACKAGES = (
    "gcc", "g++", "make", "libdumbnet-dev", "libdnet-dev", "libpcap-dev", "ethtool",
    "build-essential", "libpcap0.8-dev", "libpcre3-dev", "bison", "flex", "autoconf",
    "libtool", "perl", "libnet-ssleay-perl", "liblzma-dev", "libluajit-5.1-2",
    "libluajit-5.1-common", "libluajit-5.1-dev", "luajit", "libwww-perl", "libnghttp2-dev",
    "libssl-dev", "openssl", "pkg-config", "zlib1g-dev", "libc6-dev", "rpcsvc-proto",
    "libtirpc-dev", "libarchive-zip-perl", "libcrypt-ssleay-perl",
    "liblwp-protocol-https-perl", "gnupg", "git", "wget",
)


class InstallPackagesStep:
    step_id = "20_install_packages"
    policy = RetryPolicy.network()

    def run(self, ctx: InstallCtx) -> Result:
        apt_update(ctx)
        apt_install(ctx, BASE_PACKAGES)

        logger.info("Verifying Archive::Tar module is available..")
        if not has_perl_module(ctx, "Archive::Tar"):
            raise EnvironmentMismatchError(
                "Perl module Archive::Tar is not available after package installation.",
                remediation="Install it with: sudo apt-get install perl-modules",
            )

        # barnyard2 and friends include <dnet.h>; Ubuntu ships it as dumbnet.h.
        dnet = ctx.path("/usr/include/dnet.h")
        if not dnet.is_symlink() and not dnet.exists():
            logger.info("Creating symlink for libdumbnet.h to dnet.h..")
            ctx.run(["ln", "-s", "/usr/include/dumbnet.h", dnet])
        return Result.success()
