from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Mapping, Optional, Sequence

from .errors import VerificationGap
from .gate import CATEGORY_TITLES
from .model import BackupRecord, ExecutionResult, GraphicsVendor, Outcome, Plan, StepCategory, Workflow
from .verify import Capability, CapabilityStatus

logger = logging.getLogger(__name__)

RULE = "=" * 60


def verification_gaps(
    verification: Mapping[str, CapabilityStatus], capabilities: Sequence[Capability]
) -> List[VerificationGap]:
    by_name = {c.name: c for c in capabilities}
    gaps: List[VerificationGap] = []
    for name, status in verification.items():
        if status.present:
            continue
        cap = by_name.get(name)
        gaps.append(VerificationGap(name, cap.follow_up if cap else None, critical=status.critical))
    return gaps


def _category_lines(results: Sequence[ExecutionResult], *, dry_run: bool = False) -> List[str]:
    counts: Dict[StepCategory, Counter] = {c: Counter() for c in StepCategory}
    for r in results:
        counts[r.category][r.outcome] += 1

    verb = "would install" if dry_run else "installed"
    lines = []
    for category, c in counts.items():
        if not c:
            continue
        failed = c[Outcome.FAILED_ADVISORY] + c[Outcome.FAILED_FATAL]
        lines.append(
            f"  {CATEGORY_TITLES[category]:<20} {verb} {c[Outcome.SUCCEEDED]}, "
            f"via fallback {c[Outcome.SUCCEEDED_VIA_FALLBACK]}, "
            f"skipped {c[Outcome.SKIPPED_IDEMPOTENT]}, failed {failed}"
        )
    return lines


def _platform_lines(plan: Plan, results_by_id: Mapping[str, ExecutionResult]) -> List[str]:
    lines = []
    choices = plan.choices
    if choices.wants(Workflow.CODECS):
        if choices.graphics is GraphicsVendor.SKIP:
            lines.append("Hardware acceleration: skipped")
        else:
            step = next((s for s in plan.steps if s.step_id.endswith(f"hwaccel_{choices.graphics.value}")), None)
            r = results_by_id.get(step.step_id) if step else None
            state = r.outcome.value if r else "not run"
            lines.append(f"Hardware acceleration: {choices.graphics.value} ({state})")
    if choices.virtualization is not None:
        lines.append(f"Virtualization integration: {choices.virtualization.value}")
    else:
        lines.append("Virtualization integration: none")
    return lines


def report(
    plan: Optional[Plan],
    results: Sequence[ExecutionResult],
    verification: Mapping[str, CapabilityStatus],
    backups: Sequence[BackupRecord],
    *,
    capabilities: Sequence[Capability] = (),
    log_path: Optional[str] = None,
    status: str = "completed",
    dry_run: bool = False,
) -> str:
    """Human-readable run summary; works with partial or empty inputs."""

    results_by_id = {r.step_id: r for r in results}
    steps_by_id = {s.step_id: s for s in plan.steps} if plan else {}

    mode = " (dry run, nothing was changed)" if dry_run else ""
    lines = [RULE, f"Installation summary{mode}: {status}", RULE]

    if plan is not None:
        lines.append(f"Planned steps: {len(plan.steps)}, executed: {len(results)}")
        not_run = len(plan.steps) - len(results)
        if results and not_run:
            lines.append(f"Not run: {not_run} step(s)")
        lines.extend(_category_lines(results, dry_run=dry_run))
        lines.extend(_platform_lines(plan, results_by_id))

    fallbacks = [r for r in results if r.outcome is Outcome.SUCCEEDED_VIA_FALLBACK]
    if fallbacks:
        lines += ["", "Installed via fallback:"]
        for r in fallbacks:
            step = steps_by_id.get(r.step_id)
            label = (step.capability if step else r.step_id) or r.step_id
            how = (step.fallback_label if step else "") or (r.attempted[-1] if r.attempted else "fallback")
            lines.append(f"  • {label}: installed via fallback ({how})")

    failures = [r for r in results if r.failed]
    if failures:
        lines += ["", "Failures:"]
        for r in failures:
            kind = "fatal" if r.outcome is Outcome.FAILED_FATAL else "advisory"
            first = r.diagnostics.splitlines()[0] if r.diagnostics else ""
            lines.append(f"  ✗ [{kind}] {r.step_id}: {first}")

    if backups:
        lines += ["", "Backups (restore manually if needed):"]
        lines += [f"  {b.original} -> {b.backup}" for b in backups]

    if verification:
        lines += ["", "Verification:"]
        for name, st in verification.items():
            mark = "✓" if st.present else "✗"
            extra = st.version or ("" if st.present else ("missing (required)" if st.critical else "missing"))
            lines.append(f"  {mark} {name}: {extra}")

    gaps = verification_gaps(verification, capabilities)
    if gaps:
        lines += ["", "Recommended follow-up:"]
        for gap in gaps:
            lines.append(f"  • {gap.capability}: {gap.follow_up or 'see the log for details'}")

    if log_path:
        lines += ["", f"Log: {log_path}"]

    text = "\n".join(lines)
    for line in lines:
        logger.debug("REPORT %s", line)
    return text
