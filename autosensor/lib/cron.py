from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from ..templates import CronEntry

logger = logging.getLogger(__name__)

_MARKER_PREFIX = "# This line has been added by"


def _is_ours(line: str, entry: CronEntry) -> bool:
    s = line.strip()
    if not s:
        return False
    if s == entry.comment:
        return True
    # Markers left by earlier installer generations, same job.
    if s.startswith(_MARKER_PREFIX) and "PulledPork" in s:
        return True
    return not s.startswith("#") and entry.command in s


def merge_schedule(lines: List[str], entry: CronEntry) -> List[str]:
    """Drop every previous copy of entry (and its marker), then append exactly one."""

    kept = [ln for ln in lines if not _is_ours(ln, entry)]
    return kept + [entry.comment, entry.render()]


def register_schedule(crontab: Path, entry: CronEntry, *, dry_run: bool = False) -> bool:
    """Idempotently install entry into a system crontab file.

    Returns True when the file content changed.
    """

    old = crontab.read_text(encoding="utf-8") if crontab.exists() else ""
    new = "\n".join(merge_schedule(old.splitlines(), entry)) + "\n"
    if new == old:
        logger.info("%s already schedules: %s", str(crontab), entry.render())
        return False
    if dry_run:
        logger.info("Would update %s with: %s", str(crontab), entry.render())
        return True
    crontab.parent.mkdir(parents=True, exist_ok=True)
    crontab.write_text(new, encoding="utf-8")
    logger.info("Scheduled in %s: %s", str(crontab), entry.render())
    return True
