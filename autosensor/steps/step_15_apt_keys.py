from __future__ import annotations

import logging

from ..context import InstallCtx
from ..lib.env import PATHS
from ..lib.gpg import import_gpg_key, verify_apt_keyring
from ..lib.pkg import apt_install
from ..result import Result
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)

BIONIC_SOURCES = "\n".join(
    [
        "deb http://archive.ubuntu.com/ubuntu bionic main universe restricted multiverse",
        "deb http://archive.ubuntu.com/ubuntu bionic-security main universe restricted multiverse",
        "deb http://archive.ubuntu.com/ubuntu bionic-updates main universe restricted multiverse",
        "",
    ]
)

# (key id, file name under /etc/apt/trusted.gpg.d)
UBUNTU_ARCHIVE_KEYS = (
    ("3B4FE6ACC0B21F32", "ubuntu-key1"),
    ("871920D1991BC93C", "ubuntu-key2"),
)


class AptSourcesAndKeysStep:
    """Enable universe on non-20.x hosts and make sure apt trusts the archive keys.

    20.x ships universe enabled and a working keyring, so this is a no-op there.
    """

    step_id = "15_apt_sources_and_keys"
    policy = RetryPolicy.once()

    def run(self, ctx: InstallCtx) -> Result:
        if ctx.env.release.startswith("20."):
            logger.info("Ubuntu %s: default sources already include universe.", ctx.env.release)
            return Result.success()

        logger.warning(
            "Rewriting %s for bionic + universe. Third-party sources must be re-added from the .bak copy.",
            PATHS.sources_list,
        )
        sources = ctx.path(PATHS.sources_list)
        backup = ctx.path(PATHS.sources_list + ".bak")
        if backup.exists():
            logger.info("%s already exists.", str(backup))
        elif sources.exists() and not ctx.dry_run:
            backup.write_bytes(sources.read_bytes())
        ctx.write_text(PATHS.sources_list, BIONIC_SOURCES)

        logger.info("Ensuring gnupg is installed for GPG key management...")
        apt_install(ctx, ["gnupg"])

        logger.info("Clearing apt lists to ensure a clean keyring...")
        ctx.run(["find", ctx.path(PATHS.apt_lists_dir), "-mindepth", "1", "-delete"], check=False)

        for key_id, key_file in UBUNTU_ARCHIVE_KEYS:
            res = import_gpg_key(ctx, key_id, key_file)
            if not res.ok:
                return res
        for key_id, key_file in UBUNTU_ARCHIVE_KEYS:
            res = verify_apt_keyring(ctx, key_id, key_file)
            if not res.ok:
                return res
        return Result.success()
