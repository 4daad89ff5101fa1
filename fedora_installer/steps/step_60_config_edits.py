from __future__ import annotations

from typing import List

from ..actions import (
    AppendBlock,
    BlockPresent,
    Command,
    CommandSucceeds,
    GitIdentity,
    GitIdentityConfigured,
    MakeDirs,
    PathsExist,
)
from ..config import InstallerConfig
from ..lib.manifests import load_shell_manifest
from ..model import Facts, Phase, Step, StepCategory, UserChoices, Workflow
from .common import step_id


def _rc_block_step(cfg: InstallerConfig, name: str, spec: dict) -> Step:
    block_id = name.replace("_", "-")
    return Step(
        step_id=step_id(Phase.CONFIG_EDITS, name),
        category=StepCategory.FILE_EDIT,
        phase=Phase.CONFIG_EDITS,
        description=f"{spec.get('description', name)} in {cfg.rc_file}",
        action=AppendBlock(path=cfg.rc_file, block_id=block_id, body=str(spec["body"])),
        check=BlockPresent(path=cfg.rc_file, block_id=block_id),
        capability=str(spec.get("description", name)),
        edits=(cfg.rc_file,),
    )


def config_edit_steps(facts: Facts, choices: UserChoices, cfg: InstallerConfig) -> List[Step]:
    if not choices.wants(Workflow.DEVSTACK):
        return []

    shell = load_shell_manifest()
    blocks = shell.get("blocks") or {}
    dirs = tuple(cfg.dev_root / str(d) for d in shell.get("dev_dirs") or [])

    return [
        _rc_block_step(cfg, "dev_aliases", blocks["dev_aliases"]),
        _rc_block_step(cfg, "dotnet_tools_path", blocks["dotnet_tools_path"]),
        Step(
            step_id=step_id(Phase.CONFIG_EDITS, "dev_dirs"),
            category=StepCategory.FILE_EDIT,
            phase=Phase.CONFIG_EDITS,
            description=f"Development directories under {cfg.dev_root}",
            action=MakeDirs(paths=dirs),
            check=PathsExist(paths=dirs),
            capability="Development directories",
        ),
        Step(
            step_id=step_id(Phase.CONFIG_EDITS, "git_identity"),
            category=StepCategory.FILE_EDIT,
            phase=Phase.CONFIG_EDITS,
            description="Git user.name / user.email",
            action=GitIdentity(name=choices.git_name, email=choices.git_email),
            check=GitIdentityConfigured(),
            capability="Git identity",
        ),
        Step(
            step_id=step_id(Phase.CONFIG_EDITS, "dotnet_dev_certs"),
            category=StepCategory.FILE_EDIT,
            phase=Phase.CONFIG_EDITS,
            description=".NET HTTPS development certificate trust",
            action=Command(argv=("dotnet", "dev-certs", "https", "--trust")),
            check=CommandSucceeds(argv=("dotnet", "dev-certs", "https", "--check", "--trust")),
            capability=".NET HTTPS development certificates",
        ),
    ]
