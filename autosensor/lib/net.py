from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from ..context import InstallCtx
from ..logging_utils import GOOD
from ..result import Result
from ..retry import RetryPolicy, try_sources

logger = logging.getLogger(__name__)

# wget's own inner retry: every download is capped at 2 tries of 10 seconds each.
WGET_TIMEOUT_S = 10
WGET_TRIES = 2


@dataclass(frozen=True)
class Artifact:
    """Something we download: primary URL first, fallbacks after, in order.

    Upstream publishes no checksums for most of these, so by default an
    artifact is accepted on a zero exit status and non-empty content. Set
    `sha256` to require a digest match.
    """

    name: str
    urls: Tuple[str, ...]
    dest: str
    sha256: Optional[str] = None
    reuse_existing: bool = True


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _non_empty(path: Path) -> bool:
    return path.is_file() and path.stat().st_size > 0


def _discard(ctx: InstallCtx, target: Path) -> None:
    # wget leaves partial -O output behind; only a hand-placed file may be reused.
    if not ctx.dry_run and target.exists():
        target.unlink()


def download(
    ctx: InstallCtx,
    url: str,
    dest: str,
    *,
    timeout_s: int = WGET_TIMEOUT_S,
    tries: int = WGET_TRIES,
) -> Result:
    target = ctx.path(dest)
    if not ctx.dry_run:
        target.parent.mkdir(parents=True, exist_ok=True)
    r = ctx.run(
        ["wget", f"--tries={tries}", f"--timeout={timeout_s}", url, "-O", target],
        check=False,
    )
    if r.returncode != 0:
        _discard(ctx, target)
        return Result.failure(f"wget exited {r.returncode} for {url}", retryable=True)
    if not ctx.dry_run and not _non_empty(target):
        _discard(ctx, target)
        return Result.failure(f"{url} returned an empty file", retryable=True)
    return Result.success()


def _digest_ok(ctx: InstallCtx, artifact: Artifact) -> bool:
    if not artifact.sha256 or ctx.dry_run:
        return True
    actual = sha256_file(ctx.path(artifact.dest))
    if actual.lower() != artifact.sha256.lower():
        logger.error("%s: sha256 mismatch (expected %s, got %s)", artifact.name, artifact.sha256, actual)
        return False
    return True


def fetch_artifact(
    ctx: InstallCtx,
    artifact: Artifact,
    *,
    policy: Optional[RetryPolicy] = None,
) -> Result:
    """Download an artifact, trying each URL in order with per-URL retries.

    A non-empty file already at the destination (e.g. placed there by hand
    after an earlier failure) is used as-is when `reuse_existing` is set.
    """

    policy = policy or RetryPolicy.network()
    target = ctx.path(artifact.dest)

    if artifact.reuse_existing and not ctx.dry_run and _non_empty(target) and _digest_ok(ctx, artifact):
        logger.info("%s already present at %s; not downloading again.", artifact.name, str(target))
        return Result.success()

    res = try_sources(
        artifact.urls,
        lambda url: download(ctx, url, artifact.dest),
        policy,
        label=f"Download of {artifact.name}",
        sleep=ctx.sleep,
    )
    if not res.ok:
        _discard(ctx, target)
        return Result.failure(
            res.cause,
            retryable=True,
            remediation=(
                f"Possible reasons: network issues, unavailable file, or server restrictions. "
                f"Manual workaround: download {artifact.urls[0]}, place it at {artifact.dest}, then re-run."
            ),
        )

    if not _digest_ok(ctx, artifact):
        _discard(ctx, target)
        return Result.failure(f"{artifact.name}: checksum verification failed", retryable=True)

    logger.log(GOOD, "Successfully downloaded %s.", artifact.name)
    return Result.success()
