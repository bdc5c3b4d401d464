from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Sequence

from .config import Environment
from .lib.command import CmdResult, Runner, run_cmd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallCtx:
    """What a step gets to work with.

    `root` prefixes every host path the steps touch on disk; content written
    into config files keeps the real (unprefixed) paths.
    """

    env: Environment
    runner: Runner = run_cmd
    root: Path = Path("/")
    dry_run: bool = False
    sleep: Callable[[float], None] = time.sleep

    def path(self, p: str | Path) -> Path:
        return Path(self.root) / str(p).lstrip("/")

    def run(
        self,
        argv: Sequence[str | Path],
        *,
        check: bool = True,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CmdResult:
        return self.runner(
            [str(a) for a in argv],
            check=check,
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            timeout=timeout,
            dry_run=self.dry_run,
        )

    def write_text(self, p: str | Path, contents: str, *, mode: int | None = None) -> Path:
        target = self.path(p)
        if self.dry_run:
            logger.info("Would write %s", str(target))
            return target
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(contents, encoding="utf-8")
        if mode is not None:
            target.chmod(mode)
        return target

    def ensure_dir(self, p: str | Path) -> Path:
        target = self.path(p)
        if target.is_dir():
            logger.info("%s already exists.", str(target))
        elif self.dry_run:
            logger.info("Would create %s", str(target))
        else:
            logger.info("%s does not exist. Creating..", str(target))
            target.mkdir(parents=True, exist_ok=True)
        return target

    def touch(self, p: str | Path) -> Path:
        target = self.path(p)
        if not self.dry_run:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.touch(exist_ok=True)
        return target
