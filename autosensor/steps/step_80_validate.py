from __future__ import annotations

import logging
from typing import Sequence

from ..context import InstallCtx
from ..gates import ValidationGate, run_gates
from ..result import Result
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)


class ValidateStep:
    """Run validation gates; placed in front of anything that activates a service."""

    policy = RetryPolicy.once()

    def __init__(self, step_id: str, gates: Sequence[ValidationGate]) -> None:
        self.step_id = step_id
        self.gates = list(gates)

    def run(self, ctx: InstallCtx) -> Result:
        logger.info("Checking %d validation gate(s)...", len(self.gates))
        return run_gates(self.gates, ctx)
