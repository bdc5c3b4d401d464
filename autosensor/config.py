from __future__ import annotations

import logging
import re
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from .errors import EnvironmentMismatchError, PreflightError
from .logging_utils import GOOD

logger = logging.getLogger(__name__)

VARIANTS = ("snort", "suricata")

OINKCODE_RE = re.compile(r"[0-9a-fA-F]{40}")

# Shell-style names used by the classic full_*.conf files.
_KEY_ALIASES = {
    "snort_basedir": "base_dir",
    "suricata_basedir": "base_dir",
    "snort_iface_1": "iface_1",
    "suricata_iface_1": "iface_1",
    "snort_iface_2": "iface_2",
    "suricata_iface_2": "iface_2",
    "o_code": "oinkcode",
}

_TRUE = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Environment:
    """Everything the steps need to know, resolved once before they run."""

    variant: str
    base_dir: str
    iface_1: str
    iface_2: str
    distro: str
    oinkcode: Optional[str] = None
    release: str = ""
    strict_platform: bool = False
    reboot: bool = False

    @property
    def interfaces(self) -> Tuple[str, str]:
        return (self.iface_1, self.iface_2)

    @property
    def bridge(self) -> str:
        return f"{self.iface_1}:{self.iface_2}"


def is_valid_oinkcode(code: Optional[str]) -> bool:
    return bool(code) and OINKCODE_RE.fullmatch(str(code)) is not None


def parse_shell_config(text: str) -> Dict[str, str]:
    """Parse `KEY=value` lines as written for `source`-ing by bash.

    Comments, blank lines, `export` prefixes and shell quoting are handled;
    anything that is not an assignment is ignored.
    """

    out: Dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        try:
            tokens = shlex.split(line, comments=True)
        except ValueError as e:
            raise PreflightError(f"Config line {lineno} could not be parsed: {e}") from e
        if tokens and tokens[0] == "export":
            tokens = tokens[1:]
        for tok in tokens:
            if "=" not in tok:
                continue
            key, _, value = tok.partition("=")
            if key.isidentifier():
                out[key] = value
    return out


def load_raw_config(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.is_file():
        raise PreflightError(
            f"{p.name} was NOT found in {p.parent}.",
            remediation="Run the installer from the directory containing its config file.",
        )

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except ImportError as e:
            raise PreflightError(f"PyYAML is required to read {p.name}") from e
        raw = yaml.safe_load(text) or {}
        if not isinstance(raw, dict):
            raise PreflightError(f"{p.name} must contain a mapping/object")
        return raw
    return dict(parse_shell_config(text))


def infer_variant(raw: Dict[str, Any], *, config_name: str = "") -> Optional[str]:
    v = raw.get("variant")
    if v:
        return str(v).strip().lower()
    if any(k.startswith("suricata_") for k in raw) or "suricata" in config_name:
        return "suricata"
    if any(k.startswith("snort_") for k in raw) or "o_code" in raw or "snort" in config_name:
        return "snort"
    return None


def normalize(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map shell-style and YAML-style keys onto one set of names."""

    out: Dict[str, Any] = {}
    for key, value in raw.items():
        out[_KEY_ALIASES.get(key, key)] = value

    ifaces = out.pop("interfaces", None)
    if ifaces is not None:
        if not isinstance(ifaces, (list, tuple)) or len(ifaces) != 2:
            raise PreflightError("interfaces must be a list of exactly two interface names")
        out.setdefault("iface_1", ifaces[0])
        out.setdefault("iface_2", ifaces[1])
    return out


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in _TRUE


def _required(cfg: Dict[str, Any], key: str, what: str) -> str:
    value = str(cfg.get(key) or "").strip()
    if not value:
        raise PreflightError(f"{what} ({key}) is not defined in the config file.")
    return value


def build_environment(
    raw: Dict[str, Any],
    *,
    variant: Optional[str] = None,
    interface_exists: Callable[[str], bool],
    detect_platform: Callable[[bool], Tuple[str, str]],
    config_name: str = "",
) -> Environment:
    """Validate raw config values and return the immutable Environment.

    Nothing here mutates the host: interface lookups and platform detection
    are read-only probes supplied by the caller.
    """

    variant = (variant or infer_variant(raw, config_name=config_name) or "").lower()
    if variant not in VARIANTS:
        raise PreflightError(f"Unknown or missing variant {variant!r} (expected one of {', '.join(VARIANTS)})")

    cfg = normalize(raw)

    base_dir = _required(cfg, "base_dir", "Base install directory")
    if not base_dir.startswith("/"):
        raise PreflightError(f"Base install directory must be an absolute path, got {base_dir!r}")
    iface_1 = _required(cfg, "iface_1", "First bridge interface")
    iface_2 = _required(cfg, "iface_2", "Second bridge interface")
    if iface_1 == iface_2:
        raise PreflightError(f"Bridge interfaces must differ (both are {iface_1})")

    oinkcode: Optional[str] = None
    if variant == "snort":
        oinkcode = str(cfg.get("oinkcode") or "").strip()
        if not is_valid_oinkcode(oinkcode):
            raise PreflightError(
                "Invalid or missing oinkcode. It must be a 40-character hexadecimal string.",
                remediation="Obtain a valid oinkcode from https://www.snort.org/users/sign_in and update o_code.",
            )
    logger.log(GOOD, "Required config fields validated (variant=%s)", variant)

    for iface in (iface_1, iface_2):
        if not interface_exists(iface):
            raise EnvironmentMismatchError(
                f"Network interface {iface} does not exist.",
                remediation="Check the interface names in the config file against `ip link show`.",
            )
        logger.log(GOOD, "Network interface %s exists.", iface)

    strict = _flag(cfg.get("strict_platform"))
    release, distro = detect_platform(strict)
    distro = str(cfg.get("distro") or "").strip() or distro
    if not distro:
        raise PreflightError("Distro identifier could not be determined; set distro in the config file.")

    return Environment(
        variant=variant,
        base_dir=base_dir.rstrip("/") or "/",
        iface_1=iface_1,
        iface_2=iface_2,
        oinkcode=oinkcode,
        distro=distro,
        release=release,
        strict_platform=strict,
        reboot=_flag(cfg.get("reboot")),
    )


def load_environment(
    path: str,
    *,
    variant: Optional[str] = None,
    interface_exists: Callable[[str], bool],
    detect_platform: Callable[[bool], Tuple[str, str]],
) -> Environment:
    raw = load_raw_config(path)
    logger.log(GOOD, "Found config file at %s.", path)
    return build_environment(
        raw,
        variant=variant,
        interface_exists=interface_exists,
        detect_platform=detect_platform,
        config_name=Path(path).name,
    )
