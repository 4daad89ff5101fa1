from __future__ import annotations

import argparse
import logging
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from .actions import GitIdentityConfigured
from .config import DEFAULT_CONFIG_PATH, load_config
from .context import RunContext
from .errors import CommandError, ConfirmationTimeout, EnvironmentProbeError
from .gate import Prompter, confirm
from .lib.command import run_cmd
from .logging_utils import configure_logging
from .model import (
    ExecutionResult,
    Facts,
    GraphicsVendor,
    Outcome,
    Plan,
    UserChoices,
    VirtualizationPlatform,
    Workflow,
)
from .pipeline import execute
from .plan_builder import build
from .probe import probe
from .report import report
from .state_store import begin_run, ensure_defaults, load_state, record_backups, save_state, writable_state_path
from .verify import Capability, CapabilityStatus, expected_capabilities, verify

logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    OK = 0
    FATAL_STEP = 1
    PROBE_FAILED = 2
    CONFIRMATION_TIMEOUT = 3


GRAPHICS_OPTIONS = [
    (GraphicsVendor.INTEL.value, "Intel"),
    (GraphicsVendor.AMD.value, "AMD"),
    (GraphicsVendor.NVIDIA.value, "NVIDIA"),
    (GraphicsVendor.SKIP.value, "Skip hardware acceleration"),
]


def _workflows(selection: Optional[str], configured: List[str]) -> Tuple[Workflow, ...]:
    if selection is None or selection == "all":
        names = configured if selection is None else [w.value for w in Workflow]
    else:
        names = [selection]
    return tuple(Workflow(n) for n in names)


def _ask_text(prompter: Prompter, question: str) -> str:
    return prompter.ask(f"{question}: ", lambda a: a or None, "A value is required.")


def collect_choices(
    facts: Facts,
    ctx: RunContext,
    prompter: Prompter,
    *,
    workflows: Tuple[Workflow, ...],
    graphics: Optional[str] = None,
    virtualization: Optional[str] = None,
    git_name: Optional[str] = None,
    git_email: Optional[str] = None,
    assume_yes: bool = False,
) -> UserChoices:
    """Resolve every user decision up front so the plan can be built in one go."""

    vendor = GraphicsVendor.SKIP
    if Workflow.CODECS in workflows:
        if graphics is not None:
            vendor = GraphicsVendor(graphics)
        elif assume_yes:
            logger.info("No --graphics given with --yes; skipping hardware acceleration")
        else:
            vendor = GraphicsVendor(prompter.ask_choice("Select your graphics hardware", GRAPHICS_OPTIONS))

    platform: Optional[VirtualizationPlatform] = None
    if facts.virtualization.detected:
        platform = facts.virtualization.platform
    elif virtualization is not None:
        platform = VirtualizationPlatform.VMWARE if virtualization == "yes" else None
    elif not assume_yes:
        if prompter.ask_yes_no("Are you running this system in VMware?", default=False):
            platform = VirtualizationPlatform.VMWARE

    if Workflow.DEVSTACK in workflows and not (git_name and git_email) and not assume_yes:
        if not GitIdentityConfigured().satisfied(ctx):
            git_name = git_name or _ask_text(prompter, "Git user name")
            git_email = git_email or _ask_text(prompter, "Git email")

    choices = UserChoices(
        graphics=vendor,
        virtualization=platform,
        workflows=workflows,
        git_name=git_name,
        git_email=git_email,
    )
    logger.info(
        "Choices: workflows=%s graphics=%s virtualization=%s",
        ",".join(w.value for w in workflows),
        vendor.value,
        platform.value if platform else "none",
    )
    return choices


def offer_reboot(ctx: RunContext, prompter: Prompter, reboot: Optional[bool]) -> bool:
    if reboot is False or ctx.dry_run:
        return False
    if reboot is None:
        if not prompter.is_interactive():
            return False
        try:
            reboot = prompter.ask_yes_no("Reboot now to finish the installation?", default=False)
        except ConfirmationTimeout as e:
            logger.warning("Not rebooting: %s", e)
            return False
    if reboot:
        logger.info("Rebooting")
        try:
            run_cmd(ctx.elevated(["systemctl", "reboot"]))
        except CommandError as e:
            logger.error("Reboot failed; reboot manually to finish the installation: %s", e)
            return False
    return bool(reboot)


def run(
    *,
    config_path: Optional[str] = None,
    state_path: Optional[str] = None,
    log_path: Optional[str] = None,
    backup_dir: Optional[str] = None,
    workflow: Optional[str] = None,
    graphics: Optional[str] = None,
    virtualization: Optional[str] = None,
    git_name: Optional[str] = None,
    git_email: Optional[str] = None,
    assume_yes: bool = False,
    dry_run: bool = False,
    reboot: Optional[bool] = None,
    prompter: Optional[Prompter] = None,
) -> int:
    """Probe, plan, confirm, execute, verify and report. Returns an exit code."""

    cfg = load_config(config_path).with_overrides(log=log_path, state=state_path, backup_dir=backup_dir)
    actual_log_path = configure_logging(log_path=cfg.log_path)
    ctx = RunContext(config=cfg, dry_run=dry_run, log_path=actual_log_path)
    prompter = prompter or Prompter(max_attempts=cfg.max_prompt_attempts)

    state_file = writable_state_path(cfg.state_path)
    state = ensure_defaults(load_state(state_file))
    paths = state.setdefault("execution", {}).setdefault("paths", {})
    paths["log_path_requested"] = cfg.log_path
    paths["log_path_actual"] = actual_log_path
    begin_run(state, workflow=workflow or "default", dry_run=dry_run)

    plan: Optional[Plan] = None
    results: List[ExecutionResult] = []
    verification: Dict[str, CapabilityStatus] = {}
    capabilities: List[Capability] = []
    code = ExitCode.OK
    status = "completed"

    try:
        facts = probe(ctx)
        if not facts.version_supported and not assume_yes:
            question = f"{facts.os_name} is older than version {cfg.min_version}. Continue anyway?"
            if not prompter.ask_yes_no(question, default=False):
                status = "cancelled on an unsupported version; nothing was changed"
                return code

        choices = collect_choices(
            facts,
            ctx,
            prompter,
            workflows=_workflows(workflow, cfg.workflows),
            graphics=graphics,
            virtualization=virtualization,
            git_name=git_name,
            git_email=git_email,
            assume_yes=assume_yes,
        )
        plan = build(facts, choices, config=cfg)

        if not confirm(plan, prompter, assume_yes=assume_yes):
            status = "declined; nothing was changed"
            return code

        results = execute(plan, ctx, state=state, results=results)
        capabilities = expected_capabilities(choices, home=cfg.home)
        verification = verify(capabilities)

        if any(r.outcome is Outcome.FAILED_FATAL for r in results):
            code = ExitCode.FATAL_STEP
            status = "stopped after a required step failed"
        elif any(r.failed for r in results):
            status = "completed with warnings"
    except EnvironmentProbeError as e:
        logger.error("%s", e)
        code = ExitCode.PROBE_FAILED
        status = f"aborted before any change: {e}"
    except ConfirmationTimeout as e:
        logger.error("%s", e)
        code = ExitCode.CONFIRMATION_TIMEOUT
        status = f"no confirmation received: {e}"
    except Exception:
        logger.exception("Installer failed")
        status = "crashed; see the log"
        raise
    finally:
        summary = report(
            plan,
            results,
            verification,
            ctx.backups,
            capabilities=capabilities,
            log_path=actual_log_path,
            status=status,
            dry_run=dry_run,
        )
        print(summary)
        logger.info("Run finished: %s", status)
        record_backups(state, ctx.backups)
        state["execution"]["last_status"] = status
        save_state(state_file, state)

    if code is ExitCode.OK and results:
        offer_reboot(ctx, prompter, reboot)
    return code


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="fedora-installer",
        description="Install multimedia codecs and a Microsoft-centric development stack on Fedora.",
    )
    p.add_argument("--config", default=None, help=f"YAML config (default {DEFAULT_CONFIG_PATH} if present)")
    p.add_argument("--state", default=None, help="Path to run state (json|yaml)")
    p.add_argument("--log", default=None, help="Path to installer log")
    p.add_argument("--backup-dir", default=None, help="Directory for backups of edited files")
    p.add_argument("--workflow", choices=["codecs", "devstack", "all"], default=None)
    p.add_argument("--graphics", choices=[k for k, _ in GRAPHICS_OPTIONS], default=None)
    p.add_argument(
        "--virtualization",
        choices=["yes", "no"],
        default=None,
        help="Answer the VMware question when no hypervisor is detected",
    )
    p.add_argument("--git-name", default=None)
    p.add_argument("--git-email", default=None)
    p.add_argument("--yes", action="store_true", help="Approve the plan without asking")
    p.add_argument("--dry-run", action="store_true", help="Evaluate checks and log commands without running them")
    p.add_argument("--reboot", dest="reboot", action="store_true", default=None, help="Reboot when done")
    p.add_argument("--no-reboot", dest="reboot", action="store_false", help="Never offer a reboot")

    args = p.parse_args(argv)

    return int(
        run(
            config_path=args.config,
            state_path=args.state,
            log_path=args.log,
            backup_dir=args.backup_dir,
            workflow=args.workflow,
            graphics=args.graphics,
            virtualization=args.virtualization,
            git_name=args.git_name,
            git_email=args.git_email,
            assume_yes=args.yes,
            dry_run=args.dry_run,
            reboot=args.reboot,
        )
    )
