from __future__ import annotations

import argparse
import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

from .audit import AuditLogger
from .config import load_environment
from .context import InstallCtx
from .errors import InstallerError, PreflightError
from .lib.command import Runner, run_cmd
from .lib.netif import interface_exists
from .lib.osinfo import detect_platform
from .logging_utils import GOOD, configure_logging
from .pipeline import PipelineResult, run_pipeline
from .variants import build_steps, log_path_for

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAMES = {
    "snort": "full_autosnort.conf",
    "suricata": "full_suricata.conf",
}
YAML_CONFIG_NAME = "autosensor.yaml"


def find_config(cwd: Path, variant: Optional[str] = None) -> Path:
    """First config file present in cwd.

    When none is, the variant's classic name (snort's if no variant was
    given).
    """

    if variant:
        names = [DEFAULT_CONFIG_NAMES.get(variant, YAML_CONFIG_NAME), YAML_CONFIG_NAME]
    else:
        names = [YAML_CONFIG_NAME, *DEFAULT_CONFIG_NAMES.values()]
    for name in names:
        if (cwd / name).is_file():
            return cwd / name
    return cwd / DEFAULT_CONFIG_NAMES.get(variant or "snort", YAML_CONFIG_NAME)


def guess_variant(config_path: Path, variant: Optional[str]) -> str:
    if variant:
        return variant
    return "suricata" if "suricata" in config_path.name else "snort"


def ensure_root(geteuid: Callable[[], int] = os.geteuid) -> None:
    if geteuid() != 0:
        raise PreflightError("This script must be run as root.", remediation="Re-run with sudo.")


def run(
    *,
    config_path: Optional[str] = None,
    variant: Optional[str] = None,
    log_path: Optional[str] = None,
    dry_run: bool = False,
    runner: Runner = run_cmd,
    root: Path = Path("/"),
    sleep: Callable[[float], None] = time.sleep,
    require_root: bool = True,
    audit_path: Optional[str] = None,
) -> PipelineResult:
    """Preflight, then run the variant's pipeline.

    Preflight is read-only: config parsing, interface lookups and platform
    detection all happen before the first step mutates anything.
    """

    cfg = Path(config_path) if config_path else find_config(Path.cwd(), variant)
    actual_log_path = configure_logging(log_path=log_path or log_path_for(guess_variant(cfg, variant)))
    logger.info("Starting install. Log file: %s", actual_log_path)

    if require_root and not dry_run:
        ensure_root()
        logger.log(GOOD, "Running as root.")

    env = load_environment(
        str(cfg),
        variant=variant,
        interface_exists=lambda name: interface_exists(name, runner=runner),
        detect_platform=lambda strict: detect_platform(strict, runner=runner),
    )
    ctx = InstallCtx(env=env, runner=runner, root=root, dry_run=dry_run, sleep=sleep)
    audit = AuditLogger(Path(audit_path)) if audit_path else AuditLogger.beside_log(actual_log_path)

    result = run_pipeline(ctx=ctx, steps=build_steps(env), audit=audit)
    if result.ok:
        logger.log(GOOD, "Install complete (%s, bridge %s). Log file: %s", env.variant, env.bridge, actual_log_path)
    else:
        logger.error("Install aborted at %s. See %s for details.", result.failed_step, actual_log_path)
    return result


def execute(**kwargs) -> int:
    """run() mapped onto a process exit code."""

    try:
        result = run(**kwargs)
    except InstallerError as e:
        logger.error("%s", e)
        if e.remediation:
            logger.warning("%s", e.remediation)
        return 1
    except Exception:
        logger.exception("Installer failed")
        return 1
    return 0 if result.ok else 1


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="autosensor")
    p.add_argument("--config", default=None, help="Path to config (full_*.conf or autosensor.yaml)")
    p.add_argument("--variant", choices=sorted(DEFAULT_CONFIG_NAMES), default=None, help="snort or suricata")
    p.add_argument("--log", default=None, help="Path to install log")
    p.add_argument("--dry-run", action="store_true", help="Log commands and file writes without executing them")

    args = p.parse_args(argv)

    return execute(
        config_path=args.config,
        variant=args.variant,
        log_path=args.log,
        dry_run=args.dry_run,
    )
