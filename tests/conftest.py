"""Shared fixtures: a scripted command runner and an InstallCtx rooted in tmp_path.

Nothing here touches the network, the package manager or real interfaces.
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import pytest

from autosensor.config import Environment
from autosensor.context import InstallCtx
from autosensor.errors import CommandError
from autosensor.lib.command import CmdResult

OINKCODE = "0123456789abcdef0123456789abcdef01234567"

Effect = Callable[[List[str]], None]


class FakeRunner:
    """Stands in for run_cmd.

    Rules match on an argv prefix; the most recently added matching rule wins.
    An effect runs whatever the exit code, like a tool that writes output and then fails.
    `rc` may be a list, consumed one value per call (the last value sticks).
    Unmatched commands succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.timeouts: List[Optional[float]] = []
        self._rules: list = []

    def on(
        self,
        *prefix: str,
        rc: Union[int, Sequence[int]] = 0,
        stdout: str = "",
        stderr: str = "",
        effect: Optional[Effect] = None,
    ) -> "FakeRunner":
        rcs = [rc] if isinstance(rc, int) else list(rc)
        self._rules.append((list(prefix), rcs, stdout, stderr, effect))
        return self

    def __call__(
        self,
        argv,
        *,
        check: bool = True,
        env=None,
        cwd=None,
        input_text=None,
        timeout=None,
        dry_run: bool = False,
    ) -> CmdResult:
        argv = [str(a) for a in argv]
        self.calls.append(argv)
        self.timeouts.append(timeout)
        rc, stdout, stderr = 0, "", ""
        if not dry_run:
            for prefix, rcs, out, err, effect in reversed(self._rules):
                if argv[: len(prefix)] == prefix:
                    rc = rcs.pop(0) if len(rcs) > 1 else rcs[0]
                    stdout, stderr = out, err
                    if effect is not None:
                        effect(argv)
                    break
        if check and rc != 0:
            raise CommandError(argv, rc, stderr)
        return CmdResult(argv=argv, returncode=rc, stdout=stdout, stderr=stderr)

    def ran(self, *prefix: str) -> List[List[str]]:
        return [c for c in self.calls if c[: len(prefix)] == list(prefix)]


def wget_writes(content: Union[str, Callable[[str], str]]) -> Effect:
    """Effect for `wget ... URL -O DEST`: write content (or content(url)) to DEST."""

    def effect(argv: List[str]) -> None:
        dest = Path(argv[argv.index("-O") + 1])
        url = argv[argv.index("-O") - 1]
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(content(url) if callable(content) else content)

    return effect


def make_env(**overrides) -> Environment:
    values = dict(
        variant="snort",
        base_dir="/opt/snort",
        iface_1="eth1",
        iface_2="eth2",
        distro="Ubuntu-20-04",
        oinkcode=OINKCODE,
        release="20.04",
    )
    values.update(overrides)
    return Environment(**values)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def ctx(tmp_path, runner, sleeps) -> InstallCtx:
    return InstallCtx(env=make_env(), runner=runner, root=tmp_path, sleep=sleeps.append)
