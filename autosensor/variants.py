"""Step lists for the two sensor flavours.

Both pipelines end the same way: validation gates, then service activation.
A gate failure aborts the run before the unit is enabled.
"""

from __future__ import annotations

from typing import List

from .config import Environment
from .gates import config_test, dir_has_rules, file_non_empty, interface_present, path_exists
from .lib.env import PATHS
from .pipeline import Step
from .steps import (
    AptSourcesAndKeysStep,
    ConfigureSnortStep,
    DisableOffloadingStep,
    FetchRulesStep,
    FinalizeStep,
    InstallDaqStep,
    InstallPackagesStep,
    InstallPulledPorkStep,
    InstallServiceStep,
    InstallSnortStep,
    PrepareDirsStep,
    ScheduleRuleUpdatesStep,
    StartServiceStep,
    SystemUpdateStep,
    ValidateStep,
)
from .templates import SystemdUnit

SNORT_UNIT_NAME = "snortd.service"
SURICATA_UNIT_NAME = "suricata-afpacket.service"


def snort_unit(env: Environment) -> SystemdUnit:
    b = env.base_dir
    return SystemdUnit(
        description=f"Snort NIDS Daemon ({env.bridge} AFPACKET bridge)",
        exec_start=(
            f"{b}/bin/snort -D -Q -c {b}/etc/snort.conf -u snort -g snort "
            f"--daq afpacket -i {env.bridge} --create-pidfile --pid-path /var/run"
        ),
        user="root",
        group="root",
        pid_file=f"/var/run/snort_{env.bridge}.pid",
    )


def suricata_unit(env: Environment) -> SystemdUnit:
    return SystemdUnit(
        description="Suricata AFPACKET Bridge",
        exec_start=(
            f"{PATHS.suricata_bin} -c {env.base_dir}/suricata.yaml "
            f"--af-packet={env.bridge} -D -v --pidfile /var/run/suricata.pid"
        ),
        user="suricata",
        group="suricata",
        pid_file="/var/run/suricata.pid",
        service_type=None,
    )


def snort_steps(env: Environment) -> List[Step]:
    b = env.base_dir
    gates = [
        file_non_empty(f"{b}/rules/snort.rules"),
        *[interface_present(i) for i in env.interfaces],
        config_test([f"{b}/bin/snort", "-T", "-c", f"{b}/etc/snort.conf"], description="Snort configuration test"),
    ]
    return [
        SystemUpdateStep(),
        AptSourcesAndKeysStep(),
        InstallPackagesStep(),
        InstallDaqStep(),
        InstallSnortStep(),
        ConfigureSnortStep(),
        InstallPulledPorkStep(),
        FetchRulesStep(),
        ScheduleRuleUpdatesStep(),
        ValidateStep("80_validate", gates),
        DisableOffloadingStep("85_disable_offloading"),
        InstallServiceStep("90_install_service", SNORT_UNIT_NAME, snort_unit(env)),
        FinalizeStep(),
    ]


def suricata_steps(env: Environment) -> List[Step]:
    b = env.base_dir
    yaml_path = f"{b}/suricata.yaml"
    gates = [
        path_exists(yaml_path),
        dir_has_rules(f"{b}/rules"),
        *[interface_present(i) for i in env.interfaces],
        config_test(
            [PATHS.suricata_bin, "-T", "-c", yaml_path, "--af-packet"],
            description="Suricata configuration test",
        ),
    ]
    return [
        ValidateStep("05_check_suricata_binary", [path_exists(PATHS.suricata_bin)]),
        PrepareDirsStep("10_prepare_dirs", [b, PATHS.suricata_log_dir], owner="suricata"),
        DisableOffloadingStep("20_disable_offloading"),
        ValidateStep("30_validate", gates),
        InstallServiceStep("40_install_service", SURICATA_UNIT_NAME, suricata_unit(env)),
        StartServiceStep("50_start_service", SURICATA_UNIT_NAME),
    ]


def build_steps(env: Environment) -> List[Step]:
    if env.variant == "suricata":
        return suricata_steps(env)
    return snort_steps(env)


def log_path_for(variant: str) -> str:
    if variant == "suricata":
        return PATHS.suricata_install_log
    return PATHS.snort_install_log
