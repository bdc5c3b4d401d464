"""autosensor: inline IPS sensor installer (Snort / Suricata on Ubuntu).

Core design goals:
- Explicit, immutable install environment resolved before anything mutates
- Ordered steps with bounded, per-step retry policies
- Validation gates in front of service activation
- Fatal on first exhausted step, re-runnable from scratch
- Centralized logging plus an append-only audit trail
"""

__all__ = []
