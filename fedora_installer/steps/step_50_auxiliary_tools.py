from __future__ import annotations

from typing import List

from ..actions import AppendBlock, Chain, Command, CommandAvailable, CommandSucceeds, MakeDirs
from ..config import InstallerConfig
from ..lib.manifests import load_packages_manifest, load_shell_manifest
from ..model import Facts, Phase, Step, StepCategory, UserChoices, Workflow
from .common import package_group_steps, step_id

AZURE_FUNCTIONS_PKG = "azure-functions-core-tools@4"
POWER_PLATFORM_TOOL = "Microsoft.PowerApps.CLI.Tool"


def _azure_functions_step(cfg: InstallerConfig) -> Step:
    npm_prefix = cfg.home / ".npm-global"
    path_block = (load_shell_manifest().get("blocks") or {})["npm_global_path"]
    return Step(
        step_id=step_id(Phase.AUXILIARY_TOOLS, "azure_functions"),
        category=StepCategory.PACKAGE_GROUP,
        phase=Phase.AUXILIARY_TOOLS,
        description="Azure Functions Core Tools (npm)",
        action=Command(
            argv=("npm", "install", "-g", AZURE_FUNCTIONS_PKG, "--unsafe-perm"),
            elevate=True,
            label=f"sudo npm install -g {AZURE_FUNCTIONS_PKG}",
        ),
        fallback=Chain(
            actions=(
                MakeDirs(paths=(npm_prefix,)),
                Command(argv=("npm", "config", "set", "prefix", str(npm_prefix))),
                AppendBlock(path=cfg.rc_file, block_id="npm-global-path", body=str(path_block["body"])),
                Command(argv=("npm", "install", "-g", AZURE_FUNCTIONS_PKG)),
            ),
            label=f"npm install -g {AZURE_FUNCTIONS_PKG} into {npm_prefix}",
        ),
        fallback_label="user-local npm prefix",
        check=CommandAvailable(name="func", extra_dirs=(npm_prefix / "bin",)),
        capability="Azure Functions Core Tools",
        edits=(cfg.rc_file,),
    )


def _power_platform_step() -> Step:
    return Step(
        step_id=step_id(Phase.AUXILIARY_TOOLS, "power_platform_cli"),
        category=StepCategory.PACKAGE_GROUP,
        phase=Phase.AUXILIARY_TOOLS,
        description="Power Platform CLI (.NET global tool)",
        action=Command(argv=("dotnet", "tool", "install", "--global", POWER_PLATFORM_TOOL)),
        check=CommandSucceeds(argv=("dotnet", "tool", "list", "--global"), output_contains=POWER_PLATFORM_TOOL),
        capability="Power Platform CLI",
    )


def auxiliary_tool_steps(facts: Facts, choices: UserChoices, cfg: InstallerConfig) -> List[Step]:
    steps = package_group_steps(load_packages_manifest(), "auxiliary", choices)
    if choices.wants(Workflow.DEVSTACK):
        steps.append(_azure_functions_step(cfg))
        steps.append(_power_platform_step())
    return steps
