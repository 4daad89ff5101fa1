from __future__ import annotations

from typing import List

from ..actions import EnableService, ServiceEnabled
from ..config import InstallerConfig
from ..lib.manifests import load_platforms_manifest
from ..model import Facts, Phase, Step, StepCategory, UserChoices, Workflow
from .common import step_id


def _service_step(name: str, unit: str, description: str, *, user: bool = False) -> Step:
    return Step(
        step_id=step_id(Phase.SERVICES, name),
        category=StepCategory.SERVICE,
        phase=Phase.SERVICES,
        description=description,
        action=EnableService(unit=unit, user=user),
        check=ServiceEnabled(unit=unit, user=user),
        capability=description,
    )


def service_steps(facts: Facts, choices: UserChoices, cfg: InstallerConfig) -> List[Step]:
    steps: List[Step] = []

    platform = choices.virtualization
    if platform is not None:
        spec = (load_platforms_manifest().get("virtualization") or {})[platform.value]
        if spec.get("service"):
            steps.append(
                _service_step(
                    f"guest_{platform.value}_service",
                    str(spec["service"]),
                    f"{spec.get('label', platform.value)} guest service ({spec['service']})",
                )
            )

    if choices.wants(Workflow.DEVSTACK):
        steps.append(_service_step("podman_socket", "podman.socket", "Podman socket (Docker API compatibility)", user=True))

    return steps
