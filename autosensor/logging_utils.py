from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .lib.env import PATHS

DEFAULT_LOG_PATH = PATHS.snort_install_log

# Operator-facing "this worked" messages sit between INFO and WARNING.
GOOD = 25
logging.addLevelName(GOOD, "GOOD")

_COLORS = {
    logging.DEBUG: "\x1b[01;34m",
    logging.INFO: "\x1b[01;34m",
    GOOD: "\x1b[01;32m",
    logging.WARNING: "\x1b[01;33m",
    logging.ERROR: "\x1b[01;31m",
    logging.CRITICAL: "\x1b[01;31m",
}
_RESET = "\x1b[0m"


class ConsoleFormatter(logging.Formatter):
    """`[timestamp] [*] message` with the marker colored by level."""

    def __init__(self, *, color: bool = True) -> None:
        super().__init__(fmt="[%(asctime)s] %(marker)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S %Z")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        if self.color:
            record.marker = f"{_COLORS.get(record.levelno, '')}[*]{_RESET}"
        else:
            record.marker = "[*]"
        return super().format(record)


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Configure logging.

    All decisions and captured tool output go to the install log; the console
    only gets INFO and above.

    Notes:
    - When /var/log is not writable we fall back to a file in the current
      working directory and report both paths.
    - Repeated calls are no-ops and return the path chosen by the first call.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()

    if getattr(logger, "_autosensor_configured", False):
        return getattr(logger, "_autosensor_log_path", log_path)

    logger.setLevel(logging.DEBUG)

    chosen_path = log_path
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    file_handler: Optional[logging.Handler] = None
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
    except OSError:
        chosen_path = str(Path.cwd() / Path(log_path).name)
        file_handler = logging.FileHandler(chosen_path)
    file_handler.setFormatter(fmt)
    file_handler.setLevel(logging.DEBUG)
    handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(ConsoleFormatter())
        console.setLevel(level)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_autosensor_configured", True)
    setattr(logger, "_autosensor_log_path", chosen_path)

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
