from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .context import RunContext
from .errors import ActionError, StepFailedAdvisory, StepFailedFatal
from .lib.files import backup_file
from .model import Action, ExecutionResult, Outcome, Plan, Step
from .state_store import record_step_result

logger = logging.getLogger(__name__)


def _attempt(action: Action, ctx: RunContext) -> Optional[str]:
    """Run one action; return None on success or the diagnostic text on failure."""

    try:
        action.run(ctx)
        return None
    except (ActionError, OSError) as e:
        return str(e)


def _backup_edits(step: Step, ctx: RunContext) -> Optional[str]:
    """Back up every file the Step edits; return the diagnostic text on failure."""

    for path in step.edits:
        try:
            record = backup_file(path, ctx.backup_dir, elevate=ctx.sudo, dry_run=ctx.dry_run)
        except (ActionError, OSError) as e:
            return f"backup of {path} failed: {e}"
        if record is not None:
            ctx.backups.append(record)
    return None


def _failed(step: Step, attempted: List[str], text: str) -> ExecutionResult:
    if step.critical:
        error = StepFailedFatal(step.step_id, attempted, text)
        logger.error("%s\n%s", error, text)
        return ExecutionResult(step.step_id, step.category, Outcome.FAILED_FATAL, text, attempted, error)

    error_adv = StepFailedAdvisory(step.step_id, attempted, text)
    logger.warning("%s\n%s", error_adv, text)
    return ExecutionResult(step.step_id, step.category, Outcome.FAILED_ADVISORY, text, attempted, error_adv)


def run_step(step: Step, ctx: RunContext) -> ExecutionResult:
    if step.check.satisfied(ctx):
        logger.info("Skipping %s (already satisfied: %s)", step.step_id, step.check.describe())
        return ExecutionResult(step.step_id, step.category, Outcome.SKIPPED_IDEMPOTENT)

    logger.info("Running %s: %s", step.step_id, step.description)

    # No edit without a backup of the file it touches.
    backup_error = _backup_edits(step, ctx)
    if backup_error is not None:
        return _failed(step, [], backup_error)

    attempted = [step.action.describe()]
    primary_error = _attempt(step.action, ctx)
    if primary_error is None:
        return ExecutionResult(step.step_id, step.category, Outcome.SUCCEEDED, attempted=attempted)

    diagnostics = [f"primary ({step.action.describe()}): {primary_error}"]
    if step.fallback is not None:
        logger.warning("%s: primary channel failed, trying fallback: %s", step.step_id, step.fallback.describe())
        attempted.append(step.fallback.describe())
        fallback_error = _attempt(step.fallback, ctx)
        if fallback_error is None:
            return ExecutionResult(
                step.step_id,
                step.category,
                Outcome.SUCCEEDED_VIA_FALLBACK,
                diagnostics=diagnostics[0],
                attempted=attempted,
            )
        diagnostics.append(f"fallback ({step.fallback.describe()}): {fallback_error}")

    return _failed(step, attempted, "\n".join(diagnostics))


def execute(
    plan: Plan,
    ctx: RunContext,
    *,
    state: Optional[Dict[str, Any]] = None,
    results: Optional[List[ExecutionResult]] = None,
) -> List[ExecutionResult]:
    """Run Steps strictly in plan order.

    A failed critical Step stops the run; results cover Steps 1..k only.
    Results are appended to `results` as each Step finishes, so a caller
    passing its own list keeps them even if a later Step raises.
    """

    if results is None:
        results = []
    for step in plan.steps:
        if state is not None:
            state.setdefault("execution", {})["current_step"] = step.step_id

        result = run_step(step, ctx)
        results.append(result)
        if state is not None:
            record_step_result(state, result, dry_run=ctx.dry_run)

        if result.outcome is Outcome.FAILED_FATAL:
            remaining = len(plan.steps) - plan.steps.index(step) - 1
            logger.error("Stopping after fatal failure in %s (%d steps not run)", step.step_id, remaining)
            break

    if state is not None:
        state.setdefault("execution", {})["current_step"] = None
    return results
