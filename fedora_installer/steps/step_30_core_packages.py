from __future__ import annotations

from typing import List

from ..config import InstallerConfig
from ..lib.manifests import load_packages_manifest
from ..model import Facts, Step, UserChoices
from .common import package_group_steps


def core_package_steps(facts: Facts, choices: UserChoices, cfg: InstallerConfig) -> List[Step]:
    return package_group_steps(load_packages_manifest(), "core", choices)
