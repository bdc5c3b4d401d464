from __future__ import annotations

import logging
import re
from typing import Sequence

from ..context import InstallCtx
from ..logging_utils import GOOD
from ..result import Result
from ..retry import RetryPolicy, retry
from .env import PATHS
from .pkg import APT_TIMEOUT_S, NONINTERACTIVE

logger = logging.getLogger(__name__)

KEYSERVERS = (
    "hkp://keyserver.ubuntu.com:80",
    "hkp://pgp.mit.edu:80",
    "hkp://keys.openpgp.org:80",
)
KEY_ROUNDS = 3
ROUND_DELAY_S = 5.0
KEYSERVER_TIMEOUT_S = 10
# Outer bound for one gpg invocation, dirmngr included.
GPG_CMD_TIMEOUT_S = 60


def receive_key(
    ctx: InstallCtx,
    key_id: str,
    *,
    keyservers: Sequence[str] = KEYSERVERS,
    rounds: int = KEY_ROUNDS,
    delay_s: float = ROUND_DELAY_S,
) -> Result:
    """Fetch key_id into the local keyring.

    Each round walks the keyservers in order. A keyserver only counts as a
    success once `gpg --list-keys` confirms the key is actually present.
    """

    def one_round() -> Result:
        for ks in keyservers:
            logger.info("Retrieving key %s from %s...", key_id, ks)
            r = ctx.run(
                [
                    "gpg",
                    "--batch",
                    "--keyserver",
                    ks,
                    "--keyserver-options",
                    f"timeout={KEYSERVER_TIMEOUT_S}",
                    "--recv-keys",
                    key_id,
                ],
                check=False,
                timeout=GPG_CMD_TIMEOUT_S,
            )
            if r.returncode != 0:
                logger.warning("Failed to retrieve key %s from %s.", key_id, ks)
                continue
            if ctx.run(["gpg", "--batch", "--list-keys", key_id], check=False).returncode == 0:
                logger.log(GOOD, "Successfully retrieved key %s from %s", key_id, ks)
                return Result.success()
            logger.warning("Key %s retrieved from %s but not found in keyring.", key_id, ks)
        return Result.failure(f"key {key_id} not available from any of {len(keyservers)} keyservers", retryable=True)

    res, _ = retry(
        one_round,
        RetryPolicy(max_attempts=rounds, backoff_s=delay_s),
        label=f"GPG key {key_id}",
        sleep=ctx.sleep,
    )
    return res


def import_gpg_key(
    ctx: InstallCtx,
    key_id: str,
    key_file: str,
    *,
    keyservers: Sequence[str] = KEYSERVERS,
    rounds: int = KEY_ROUNDS,
    delay_s: float = ROUND_DELAY_S,
) -> Result:
    """Receive key_id and export it (armored and binary) for apt."""

    logger.info("Importing GPG key %s...", key_id)
    res = receive_key(ctx, key_id, keyservers=keyservers, rounds=rounds, delay_s=delay_s)
    if not res.ok:
        return Result.failure(
            f"Failed to retrieve GPG key {key_id} after {rounds} rounds across {len(keyservers)} keyservers."
        )

    trusted = PATHS.trusted_gpg_dir
    for suffix, armor in ((".asc", True), (".gpg", False)):
        out = ctx.path(f"{trusted}/{key_file}{suffix}")
        argv = ["gpg", "--batch", "--yes"]
        if armor:
            argv.append("--armor")
        argv += ["--output", out, "--export", key_id]
        ctx.run(argv)
        if out.exists():
            out.chmod(0o644)
        logger.log(GOOD, "Exported key %s to %s", key_id, str(out))
    return Result.success()


def verify_apt_keyring(ctx: InstallCtx, key_id: str, key_file: str) -> Result:
    """Make sure apt trusts key_id; falls back to `apt-key add` on NO_PUBKEY."""

    logger.info("Verifying apt recognizes key %s...", key_id)
    r = ctx.run(["apt-get", "update"], check=False, env=NONINTERACTIVE, timeout=APT_TIMEOUT_S)
    if r.returncode == 0:
        logger.log(GOOD, "apt-get update succeeded. Key %s is recognized.", key_id)
        return Result.success()

    output = f"{r.stdout}\n{r.stderr}"
    if not re.search(rf"NO_PUBKEY\s+\w*{re.escape(key_id)}", output, re.IGNORECASE):
        return Result.failure(
            f"apt-get update failed for reasons other than missing key {key_id} (rc={r.returncode})"
        )

    logger.warning("Key %s not recognized by apt. Attempting fallback import to apt-key...", key_id)
    asc = ctx.path(f"{PATHS.trusted_gpg_dir}/{key_file}.asc")
    if ctx.run(["apt-key", "add", asc], check=False).returncode != 0:
        return Result.failure(f"Fallback: failed to add key {key_id} to apt keyring.")

    r = ctx.run(["apt-get", "update"], check=False, env=NONINTERACTIVE, timeout=APT_TIMEOUT_S)
    if r.returncode != 0:
        return Result.failure(f"apt-get update still failing after fallback key import for {key_id}", retryable=True)
    logger.log(GOOD, "Fallback: successfully added key %s to apt keyring", key_id)
    return Result.success()
