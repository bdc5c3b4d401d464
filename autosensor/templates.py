"""Typed models for every file the installer generates.

Each model renders complete file contents from named fields. The one upstream
file we adapt rather than generate (snort.conf) is rewritten directive by
directive instead of with free-form text substitution.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class SystemdUnit:
    description: str
    exec_start: str
    user: str
    group: str
    pid_file: str
    exec_reload: str = "/bin/kill -HUP $MAINPID"
    exec_stop: str = "/bin/kill -TERM $MAINPID"
    restart: str = "always"
    service_type: Optional[str] = "forking"
    after: str = "network.target"
    wanted_by: str = "multi-user.target"

    def render(self) -> str:
        service = []
        if self.service_type:
            service.append(f"Type={self.service_type}")
        service += [
            f"ExecStart={self.exec_start}",
            f"ExecReload={self.exec_reload}",
            f"ExecStop={self.exec_stop}",
            f"Restart={self.restart}",
            f"User={self.user}",
            f"Group={self.group}",
            f"PIDFile={self.pid_file}",
        ]
        return "\n".join(
            [
                "[Unit]",
                f"Description={self.description}",
                f"After={self.after}",
                "",
                "[Service]",
                *service,
                "",
                "[Install]",
                f"WantedBy={self.wanted_by}",
                "",
            ]
        )


def pulledpork_snort_version(snort_ver: str) -> str:
    """PulledPork wants a four-part version: snort-2.9.20 -> 2.9.20.0."""

    ver = snort_ver.split("-", 1)[1] if snort_ver.startswith("snort-") else snort_ver
    parts = ver.split(".")
    while len(parts) < 4:
        parts.append("0")
    return ".".join(parts)


@dataclass(frozen=True)
class PulledPorkConf:
    """pulledpork.conf for PulledPork 0.8.0."""

    oinkcode: str
    base_dir: str
    snort_version: str
    distro: str
    version: str = "0.8.0"
    temp_path: str = "/tmp"
    sid_changelog: str = "/var/log/sid_changes.log"
    ips_policy: str = "security"
    ignore: Tuple[str, ...] = ("deleted.rules", "experimental.rules", "local.rules")

    def rule_urls(self) -> List[str]:
        return [
            f"https://www.snort.org/reg-rules/|snortrules-snapshot.tar.gz|{self.oinkcode}",
            "https://snort.org/downloads/community/|opensource.gz|Opensource",
            "https://snort.org/downloads/community/|community-rules.tar.gz|Community",
            "https://snort.org/downloads/ip-block-list|IPBLOCKLIST|open",
        ]

    def render(self) -> str:
        b = self.base_dir
        lines = [f"rule_url={u}" for u in self.rule_urls()]
        lines += [
            f"ignore={','.join(self.ignore)}",
            f"temp_path={self.temp_path}",
            f"rule_path={b}/rules/snort.rules",
            f"local_rules={b}/rules/local.rules",
            f"sid_msg={b}/etc/sid-msg.map",
            "sid_msg_version=1",
            f"sid_changelog={self.sid_changelog}",
            f"sorule_path={b}/snort_dynamicrules/",
            f"snort_path={b}/bin/snort",
            f"snort_version={self.snort_version}",
            f"distro={self.distro}",
            f"config_path={b}/etc/snort.conf",
            f"black_list={b}/rules/black_list.rules",
            f"IPRVersion={b}/rules/iplists",
            f"ips_policy={self.ips_policy}",
            f"version={self.version}",
        ]
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class LibDaqPc:
    """pkg-config file for DAQ, for source trees that do not ship one."""

    version: str
    prefix: str = "/usr/local"

    def render(self) -> str:
        return "\n".join(
            [
                f"prefix={self.prefix}",
                "exec_prefix=${prefix}",
                "libdir=${exec_prefix}/lib",
                "includedir=${prefix}/include",
                "",
                "Name: libdaq",
                "Description: Data Acquisition library for Snort",
                f"Version: {self.version}",
                "Libs: -L${libdir} -ldaq_static",
                "Cflags: -I${includedir}",
                "",
            ]
        )


UNIFIED_RULES_COMMENT = "# unified snort.rules entry"
UNIFIED_RULES_INCLUDE = "include $RULE_PATH/snort.rules"


@dataclass(frozen=True)
class SnortConfOverrides:
    """Point a stock snort.conf at our install tree.

    - dynamic preprocessor / engine / detection paths under base_dir
    - unified2 output enabled
    - white/black list paths under base_dir/rules
    - every per-category `include $RULE_PATH/...` disabled in favour of the
      single PulledPork-managed snort.rules

    Applying twice yields the same text.
    """

    base_dir: str

    def _rewrite(self, line: str) -> str:
        s = line.strip()
        b = self.base_dir
        if s.startswith("dynamicpreprocessor directory "):
            return f"dynamicpreprocessor directory {b}/lib/snort_dynamicpreprocessor"
        if s.startswith("dynamicengine "):
            return f"dynamicengine {b}/lib/snort_dynamicengine/libsf_engine.so"
        if s.startswith("dynamicdetection directory "):
            return f"dynamicdetection directory {b}/snort_dynamicrules"
        if s.startswith("# output unified2:"):
            return "output unified2: filename snort.u2, limit 128"
        if s.startswith("var WHITE_LIST_PATH "):
            return f"var WHITE_LIST_PATH {b}/rules"
        if s.startswith("var BLACK_LIST_PATH "):
            return f"var BLACK_LIST_PATH {b}/rules"
        if s.startswith("include $RULE_PATH") and s != UNIFIED_RULES_INCLUDE:
            return "#" + line
        return line

    def apply(self, text: str) -> str:
        out = [self._rewrite(line) for line in text.splitlines()]
        if UNIFIED_RULES_INCLUDE not in (line.strip() for line in out):
            out += [UNIFIED_RULES_COMMENT, UNIFIED_RULES_INCLUDE]
        return "\n".join(out) + "\n"


@dataclass(frozen=True)
class CronEntry:
    """A system crontab line (`/etc/crontab` format, with user field)."""

    schedule: str
    user: str
    command: str
    comment: str

    def render(self) -> str:
        return f"{self.schedule} {self.user} {self.command}"
