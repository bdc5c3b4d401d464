from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

from ..errors import CommandError

logger = logging.getLogger(__name__)

TIMEOUT_RC = 124
NOT_FOUND_RC = 127


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


Runner = Callable[..., CmdResult]


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
    timeout: float | None = None,
    dry_run: bool = False,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - stdout/stderr are captured and re-emitted through the logger, so the
      install log holds controller messages and tool output in one stream.
    - A timeout or a missing binary is reported as a normal non-zero result
      (124 / 127) so callers can decide whether to retry.
    - dry_run logs but does not execute.
    """

    argv_list = [str(a) for a in argv]
    logger.info("CMD %s", fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    try:
        p = subprocess.run(
            argv_list,
            input=input_text,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
            timeout=timeout,
        )
        res = CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)
    except subprocess.TimeoutExpired:
        logger.warning("TIMEOUT after %ss: %s", timeout, fmt_argv(argv_list))
        res = CmdResult(argv=argv_list, returncode=TIMEOUT_RC, stdout="", stderr=f"Timeout expired after {timeout}s")
    except FileNotFoundError:
        res = CmdResult(argv=argv_list, returncode=NOT_FOUND_RC, stdout="", stderr=f"{argv_list[0]}: command not found")

    if res.stdout:
        logger.debug("STDOUT %s", res.stdout.strip())
    if res.stderr:
        logger.debug("STDERR %s", res.stderr.strip())

    if check and res.returncode != 0:
        raise CommandError(argv_list, res.returncode, res.stderr)

    return res
