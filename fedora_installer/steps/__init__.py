from .step_10_system_update import system_update_steps
from .step_20_repositories import repository_steps
from .step_30_core_packages import core_package_steps
from .step_40_platform_packages import platform_package_steps
from .step_50_auxiliary_tools import auxiliary_tool_steps
from .step_60_config_edits import config_edit_steps
from .step_70_services import service_steps

# Phase order: later phases rely on side effects of earlier ones.
PHASE_BUILDERS = (
    system_update_steps,
    repository_steps,
    core_package_steps,
    platform_package_steps,
    auxiliary_tool_steps,
    config_edit_steps,
    service_steps,
)

__all__ = [
    "PHASE_BUILDERS",
    "system_update_steps",
    "repository_steps",
    "core_package_steps",
    "platform_package_steps",
    "auxiliary_tool_steps",
    "config_edit_steps",
    "service_steps",
]
