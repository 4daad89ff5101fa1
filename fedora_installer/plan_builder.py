from __future__ import annotations

import logging
from typing import List

from .config import InstallerConfig
from .model import Facts, Plan, Step, UserChoices
from .steps import PHASE_BUILDERS

logger = logging.getLogger(__name__)


def build(facts: Facts, choices: UserChoices, *, config: InstallerConfig) -> Plan:
    """Build the ordered Plan for the given facts and choices.

    Deterministic: the only inputs are facts, choices, config and the
    manifests shipped with the package. No system state is read here; Step
    checks run later, in the executor.
    """

    steps: List[Step] = []
    for builder in PHASE_BUILDERS:
        steps.extend(builder(facts, choices, config))

    seen: set[str] = set()
    for step in steps:
        if step.step_id in seen:
            raise RuntimeError(f"Duplicate step id in plan: {step.step_id}")
        seen.add(step.step_id)

    # Phases are already emitted in order; keep that an invariant rather than re-sorting.
    phases = [s.phase.value for s in steps]
    if phases != sorted(phases):
        raise RuntimeError("Plan steps are not in phase order")

    logger.info(
        "Plan: %d steps (workflows=%s graphics=%s virtualization=%s)",
        len(steps),
        ",".join(w.value for w in choices.workflows),
        choices.graphics.value,
        choices.virtualization.value if choices.virtualization else "none",
    )
    return Plan(steps=tuple(steps), facts=facts, choices=choices)
