from __future__ import annotations

from typing import List

from ..actions import DnfUpgrade, NoPendingUpdates
from ..config import InstallerConfig
from ..model import Facts, Phase, Step, StepCategory, UserChoices


def system_update_steps(facts: Facts, choices: UserChoices, cfg: InstallerConfig) -> List[Step]:
    return [
        Step(
            step_id="10_system_update",
            category=StepCategory.PACKAGE_GROUP,
            phase=Phase.SYSTEM_UPDATE,
            description=f"Update {facts.os_name} packages",
            action=DnfUpgrade(),
            check=NoPendingUpdates(),
            critical=True,
            capability="System updates",
        )
    ]
