from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AuditLogger:
    """Append-only JSON-lines record of every step attempt in one run."""

    path: Path

    @classmethod
    def beside_log(cls, log_path: str) -> "AuditLogger":
        p = Path(log_path)
        return cls(path=p.with_name(p.stem + ".audit.jsonl"))

    def log(self, event: Dict[str, Any]) -> None:
        event = dict(event)
        event.setdefault("ts", time.time())
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event, sort_keys=True) + "\n")


def audit_event(
    *,
    step: Optional[str],
    status: str,
    attempt: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
) -> Dict[str, Any]:
    e: Dict[str, Any] = {"step": step, "status": status}
    if attempt is not None:
        e["attempt"] = attempt
    if details:
        e["details"] = details
    if error:
        e["error"] = error
    return e
