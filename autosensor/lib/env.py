from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    src_dir: str = "/usr/src"
    tmp_dir: str = "/tmp"
    systemd_dir: str = "/etc/systemd/system"
    trusted_gpg_dir: str = "/etc/apt/trusted.gpg.d"
    sources_list: str = "/etc/apt/sources.list"
    apt_lists_dir: str = "/var/lib/apt/lists"
    crontab: str = "/etc/crontab"
    pulledpork_dir: str = "/usr/src/pulledpork"
    snort_log_dir: str = "/var/log/snort"
    suricata_log_dir: str = "/var/log/suricata"
    suricata_bin: str = "/usr/bin/suricata"
    snort_install_log: str = "/var/log/autosnort_install.log"
    suricata_install_log: str = "/var/log/suricata_afpacket_install.log"


PATHS = Paths()
