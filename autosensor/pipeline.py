from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence

from .audit import AuditLogger, audit_event
from .context import InstallCtx
from .logging_utils import GOOD
from .result import Result, guard
from .retry import RetryPolicy, retry

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single named unit of work with its own retry policy."""

    step_id: str
    policy: RetryPolicy

    def run(self, ctx: InstallCtx) -> Result:
        ...


class StepState(str, Enum):
    PENDING = "pending"
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED_EXHAUSTED = "failed_exhausted"


class ControllerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class PipelineResult:
    state: ControllerState
    ran_steps: List[str]
    step_states: Dict[str, StepState] = field(default_factory=dict)
    failed_step: Optional[str] = None
    cause: Optional[str] = None
    remediation: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is ControllerState.COMPLETED


class Controller:
    """Runs steps strictly in order; the first exhausted step aborts the run.

    Nothing is rolled back on abort. The run is meant to be repeated from
    scratch once the operator fixes the cause.
    """

    def __init__(self, ctx: InstallCtx, *, audit: Optional[AuditLogger] = None) -> None:
        self.ctx = ctx
        self.audit = audit
        self.state = ControllerState.IDLE
        self.step_states: Dict[str, StepState] = {}

    def _audit(self, event: dict) -> None:
        if self.audit is not None:
            self.audit.log(event)

    def _transition(self, new: ControllerState) -> None:
        logger.debug("Controller %s -> %s", self.state.value, new.value)
        self.state = new
        self._audit(audit_event(step=None, status=new.value))

    def run(self, steps: Sequence[Step]) -> PipelineResult:
        if self.state is not ControllerState.IDLE:
            raise RuntimeError(f"Controller already used (state={self.state.value})")

        ids = [s.step_id for s in steps]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate step ids in pipeline: {ids}")

        self.step_states = {sid: StepState.PENDING for sid in ids}
        self._transition(ControllerState.RUNNING)

        ran: List[str] = []
        for step in steps:
            res = self._run_step(step)
            if not res.ok:
                logger.error("%s failed: %s", step.step_id, res.cause)
                if res.remediation:
                    logger.warning("%s", res.remediation)
                self._transition(ControllerState.ABORTED)
                return PipelineResult(
                    state=self.state,
                    ran_steps=ran,
                    step_states=dict(self.step_states),
                    failed_step=step.step_id,
                    cause=res.cause,
                    remediation=res.remediation,
                )
            ran.append(step.step_id)
            logger.log(GOOD, "%s successfully completed.", step.step_id)

        self._transition(ControllerState.COMPLETED)
        return PipelineResult(state=self.state, ran_steps=ran, step_states=dict(self.step_states))

    def _run_step(self, step: Step) -> Result:
        sid = step.step_id
        policy = getattr(step, "policy", None) or RetryPolicy.once()
        logger.info("Running step %s", sid)

        def attempt() -> Result:
            self.step_states[sid] = StepState.ATTEMPTING
            return guard(lambda: step.run(self.ctx))

        def on_attempt(n: int, res: Result, will_retry: bool) -> None:
            if res.ok:
                status = StepState.SUCCEEDED
            elif will_retry:
                status = StepState.RETRYING
            else:
                status = StepState.FAILED_EXHAUSTED
            self.step_states[sid] = status
            self._audit(audit_event(step=sid, status=status.value, attempt=n, error=res.cause or None))

        res, _ = retry(attempt, policy, label=sid, sleep=self.ctx.sleep, on_attempt=on_attempt)
        return res


def run_pipeline(
    *,
    ctx: InstallCtx,
    steps: Sequence[Step],
    audit: Optional[AuditLogger] = None,
) -> PipelineResult:
    """Run steps in order with per-step retries and fatal-on-exhaustion semantics."""

    return Controller(ctx, audit=audit).run(steps)
