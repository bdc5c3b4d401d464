from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from .result import Result

logger = logging.getLogger(__name__)

# Observed in the field: three tries, five seconds apart.
NETWORK_ATTEMPTS = 3
NETWORK_BACKOFF_S = 5.0


def _is_retryable(res: Result) -> bool:
    return res.retryable


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 1
    backoff_s: float = 0.0
    retry_on: Callable[[Result], bool] = _is_retryable

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff_s < 0:
            raise ValueError("backoff_s must be >= 0")

    @classmethod
    def once(cls) -> "RetryPolicy":
        return cls(max_attempts=1)

    @classmethod
    def network(cls) -> "RetryPolicy":
        return cls(max_attempts=NETWORK_ATTEMPTS, backoff_s=NETWORK_BACKOFF_S)


AttemptHook = Callable[[int, Result, bool], None]


def retry(
    fn: Callable[[], Result],
    policy: RetryPolicy,
    *,
    label: str,
    sleep: Callable[[float], None] = time.sleep,
    on_attempt: Optional[AttemptHook] = None,
) -> Tuple[Result, int]:
    """Call fn until it succeeds, fails non-retryably or the policy is exhausted.

    Returns the last Result and the number of attempts made. There is no sleep
    after the final attempt.
    """

    attempt = 0
    while True:
        attempt += 1
        res = fn()
        will_retry = (not res.ok) and attempt < policy.max_attempts and policy.retry_on(res)
        if on_attempt is not None:
            on_attempt(attempt, res, will_retry)
        if res.ok or not will_retry:
            return res, attempt
        logger.warning(
            "%s: attempt %d/%d failed (%s); retrying in %ss",
            label,
            attempt,
            policy.max_attempts,
            res.cause,
            policy.backoff_s,
        )
        sleep(policy.backoff_s)


def try_sources(
    sources: Sequence[str],
    fetch: Callable[[str], Result],
    policy: RetryPolicy,
    *,
    label: str,
    sleep: Callable[[float], None] = time.sleep,
) -> Result:
    """Try each source in order, each up to the per-source policy; first success wins."""

    if not sources:
        return Result.failure(f"{label}: no sources configured")

    failures: list[str] = []
    for idx, src in enumerate(sources, start=1):
        logger.info("%s: trying source %d/%d: %s", label, idx, len(sources), src)
        res, attempts = retry(lambda src=src: fetch(src), policy, label=f"{label} <{src}>", sleep=sleep)
        if res.ok:
            return res
        logger.warning("%s: source %s failed after %d attempt(s): %s", label, src, attempts, res.cause)
        failures.append(f"{src}: {res.cause}")

    return Result.failure(
        f"{label}: all {len(sources)} source(s) failed ({'; '.join(failures)})",
        retryable=True,
    )
