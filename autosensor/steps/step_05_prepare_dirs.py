from __future__ import annotations

import logging
from typing import Sequence

from ..context import InstallCtx
from ..result import Result
from ..retry import RetryPolicy

logger = logging.getLogger(__name__)


class PrepareDirsStep:
    """Create directories owned by the sensor's service account."""

    policy = RetryPolicy.once()

    def __init__(self, step_id: str, dirs: Sequence[str], *, owner: str, mode: str = "770") -> None:
        self.step_id = step_id
        self.dirs = list(dirs)
        self.owner = owner
        self.mode = mode

    def run(self, ctx: InstallCtx) -> Result:
        for d in self.dirs:
            p = ctx.ensure_dir(d)
            ctx.run(["chown", f"{self.owner}:{self.owner}", p])
            ctx.run(["chmod", self.mode, p])
        return Result.success()
