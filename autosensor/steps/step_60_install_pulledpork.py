from __future__ import annotations

import logging
import shutil

from ..context import InstallCtx
from ..errors import AcquisitionError, EnvironmentMismatchError
from ..lib.env import PATHS
from ..lib.pkg import apt_install, has_perl_module
from ..logging_utils import GOOD
from ..result import Result
from ..retry import RetryPolicy
from ..templates import PulledPorkConf, pulledpork_snort_version
from .step_40_install_snort import SNORT_VER

logger = logging.getLogger(__name__)

PULLEDPORK_REPO = "https://github.com/shirkdog/pulledpork.git"
PULLEDPORK_CONF = f"{PATHS.pulledpork_dir}/etc/pulledpork.conf"
GIT_TIMEOUT_S = 300

PERL_MODULES = {
    "LWP::UserAgent": "libwww-perl",
    "Archive::Tar": "libarchive-zip-perl",
    "Crypt::SSLeay": "libcrypt-ssleay-perl",
    "LWP::Protocol::https": "liblwp-protocol-https-perl",
}


class InstallPulledPorkStep:
    step_id = "60_install_pulledpork"
    policy = RetryPolicy.network()

    def _verify_perl(self, ctx: InstallCtx) -> None:
        logger.info("Verifying Perl and required modules for PulledPork..")
        if ctx.run(["which", "perl"], check=False).returncode != 0:
            raise EnvironmentMismatchError(
                "Perl not found.", remediation="Install perl with: sudo apt-get install perl"
            )
        for module, package in PERL_MODULES.items():
            if has_perl_module(ctx, module):
                logger.log(GOOD, "Perl module %s is available.", module)
                continue
            logger.warning("Perl module %s not found. Attempting to install %s...", module, package)
            apt_install(ctx, [package])
            if not has_perl_module(ctx, module):
                raise EnvironmentMismatchError(
                    f"Perl module {module} still not found after installing {package}.",
                    remediation=f"Try installing via CPAN: sudo cpan install {module}",
                )
            logger.log(GOOD, "Perl module %s installed and verified.", module)

    def run(self, ctx: InstallCtx) -> Result:
        env = ctx.env
        checkout = ctx.path(PATHS.pulledpork_dir)
        if checkout.exists() and not ctx.dry_run:
            logger.info("Removing existing PulledPork directory to ensure fresh clone..")
            shutil.rmtree(checkout)

        self._verify_perl(ctx)

        logger.info("Acquiring PulledPork..")
        r = ctx.run(["git", "clone", PULLEDPORK_REPO, checkout], check=False, timeout=GIT_TIMEOUT_S)
        if r.returncode != 0:
            raise AcquisitionError(f"git clone of {PULLEDPORK_REPO} failed (rc={r.returncode})")

        conf = ctx.path(PULLEDPORK_CONF)
        if conf.is_file():
            ctx.write_text(PULLEDPORK_CONF + ".orig", conf.read_text(encoding="utf-8"))

        logger.info("Generating pulledpork.conf.")
        rendered = PulledPorkConf(
            oinkcode=str(env.oinkcode),
            base_dir=env.base_dir,
            snort_version=pulledpork_snort_version(SNORT_VER),
            distro=env.distro,
        ).render()
        ctx.write_text(PULLEDPORK_CONF, rendered, mode=0o644)
        logger.log(GOOD, "pulledpork.conf written to %s", PULLEDPORK_CONF)
        return Result.success()
