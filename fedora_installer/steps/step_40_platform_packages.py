from __future__ import annotations

import logging
from typing import List

from ..actions import DnfInstall, PackagesInstalled
from ..config import InstallerConfig
from ..lib.manifests import load_platforms_manifest
from ..model import Facts, GraphicsVendor, Phase, Step, StepCategory, UserChoices, Workflow
from .common import step_id

logger = logging.getLogger(__name__)


def _graphics_step(vendor: GraphicsVendor, spec: dict) -> Step:
    packages = tuple(str(p) for p in spec.get("packages") or [])
    description = str(spec.get("description") or f"{vendor.value} hardware acceleration")
    if spec.get("note"):
        description = f"{description} ({spec['note']})"
    return Step(
        step_id=step_id(Phase.PLATFORM_PACKAGES, f"hwaccel_{vendor.value}"),
        category=StepCategory.PACKAGE_GROUP,
        phase=Phase.PLATFORM_PACKAGES,
        description=description,
        action=DnfInstall(packages=packages),
        check=PackagesInstalled(packages=packages),
        capability="Hardware acceleration",
    )


def platform_package_steps(facts: Facts, choices: UserChoices, cfg: InstallerConfig) -> List[Step]:
    manifest = load_platforms_manifest()
    steps: List[Step] = []

    # One case per vendor; `skip` contributes nothing.
    if choices.wants(Workflow.CODECS) and choices.graphics is GraphicsVendor.SKIP:
        logger.info("Hardware acceleration skipped by user choice")
    elif choices.wants(Workflow.CODECS):
        spec = (manifest.get("graphics") or {}).get(choices.graphics.value)
        if not spec:
            raise RuntimeError(f"manifests/platforms.yaml: no graphics entry for {choices.graphics.value}")
        steps.append(_graphics_step(choices.graphics, spec))

    platform = choices.virtualization
    if platform is not None:
        spec = (manifest.get("virtualization") or {}).get(platform.value)
        if not spec:
            raise RuntimeError(f"manifests/platforms.yaml: no virtualization entry for {platform.value}")
        packages = tuple(str(p) for p in spec.get("packages") or [])
        steps.append(
            Step(
                step_id=step_id(Phase.PLATFORM_PACKAGES, f"guest_{platform.value}"),
                category=StepCategory.PACKAGE_GROUP,
                phase=Phase.PLATFORM_PACKAGES,
                description=f"{spec.get('label', platform.value)} guest integration",
                action=DnfInstall(packages=packages),
                check=PackagesInstalled(packages=packages),
                capability=f"{spec.get('label', platform.value)} guest tools",
            )
        )

    return steps
