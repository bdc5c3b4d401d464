"""Install steps.

Each step exposes a `step_id`, a retry `policy` and `run(ctx) -> Result`.
The variant pipelines in `autosensor.variants` decide the order.
"""

from .step_05_prepare_dirs import PrepareDirsStep
from .step_10_system_update import SystemUpdateStep
from .step_15_apt_keys import AptSourcesAndKeysStep
from .step_20_install_packages import InstallPackagesStep
from .step_30_install_daq import InstallDaqStep
from .step_40_install_snort import InstallSnortStep
from .step_50_configure_snort import ConfigureSnortStep
from .step_60_install_pulledpork import InstallPulledPorkStep
from .step_70_fetch_rules import FetchRulesStep
from .step_75_schedule_updates import ScheduleRuleUpdatesStep
from .step_80_validate import ValidateStep
from .step_85_disable_offloading import DisableOffloadingStep
from .step_90_install_service import InstallServiceStep, StartServiceStep
from .step_95_finalize import FinalizeStep

__all__ = [
    "AptSourcesAndKeysStep",
    "ConfigureSnortStep",
    "DisableOffloadingStep",
    "FetchRulesStep",
    "FinalizeStep",
    "InstallDaqStep",
    "InstallPackagesStep",
    "InstallPulledPorkStep",
    "InstallServiceStep",
    "InstallSnortStep",
    "PrepareDirsStep",
    "ScheduleRuleUpdatesStep",
    "StartServiceStep",
    "SystemUpdateStep",
    "ValidateStep",
]
