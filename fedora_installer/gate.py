"""Interactive prompts and the confirmation gate.

Every prompt is a bounded-retry state machine, so a run without a usable
terminal ends with ConfirmationTimeout instead of waiting forever.

Default policy: yes/no prompts show their default in brackets ([Y/n] or
[y/N]) and empty input selects that default. Choice prompts have no default.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple, TypeVar

from .errors import ConfirmationTimeout
from .model import Plan, StepCategory

logger = logging.getLogger(__name__)

T = TypeVar("T")

_YES = {"y", "yes"}
_NO = {"n", "no"}

CATEGORY_TITLES = {
    StepCategory.REPOSITORY: "Repositories",
    StepCategory.PACKAGE_GROUP: "Packages",
    StepCategory.FILE_EDIT: "Configuration edits",
    StepCategory.SERVICE: "Services",
}


class PromptState(str, Enum):
    AWAITING_INPUT = "awaiting-input"
    VALID = "valid"
    INVALID_RETRY = "invalid-retry"
    EXHAUSTED = "exhausted"


def _stdin_is_tty() -> bool:
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


@dataclass
class Prompter:
    max_attempts: int = 3
    input_fn: Callable[[str], str] = field(default=input)
    output_fn: Callable[[str], None] = field(default=print)
    interactive: Optional[bool] = None

    def is_interactive(self) -> bool:
        if self.interactive is None:
            return _stdin_is_tty()
        return self.interactive

    def ask(self, question: str, parse: Callable[[str], Optional[T]], hint: str) -> T:
        if not self.is_interactive():
            raise ConfirmationTimeout(f"No terminal attached to answer: {question.strip()}")

        state = PromptState.AWAITING_INPUT
        attempts = 0
        while True:
            if state is PromptState.EXHAUSTED:
                raise ConfirmationTimeout(f"No valid answer after {attempts} attempts: {question.strip()}")

            try:
                raw = self.input_fn(question)
            except EOFError as e:
                raise ConfirmationTimeout(f"Input closed while waiting for: {question.strip()}") from e
            attempts += 1

            value = parse(raw.strip())
            if value is not None:
                state = PromptState.VALID
                return value

            state = PromptState.INVALID_RETRY if attempts < self.max_attempts else PromptState.EXHAUSTED
            logger.warning("Invalid answer %r (%s)", raw, state.value)
            if state is PromptState.INVALID_RETRY:
                self.output_fn(hint)

    def ask_yes_no(self, question: str, *, default: bool) -> bool:
        suffix = "[Y/n]" if default else "[y/N]"

        def parse(answer: str) -> Optional[bool]:
            a = answer.lower()
            if a == "":
                return default
            if a in _YES:
                return True
            if a in _NO:
                return False
            return None

        return self.ask(f"{question} {suffix}: ", parse, "Please answer 'y' for yes or 'n' for no.")

    def ask_choice(self, question: str, options: Sequence[Tuple[str, str]]) -> str:
        """Numbered menu; accepts the number or the option key."""

        for i, (_, label) in enumerate(options, start=1):
            self.output_fn(f"{i}) {label}")
        keys = [k for k, _ in options]

        def parse(answer: str) -> Optional[str]:
            a = answer.lower()
            if a.isdigit() and 1 <= int(a) <= len(keys):
                return keys[int(a) - 1]
            if a in keys:
                return a
            return None

        return self.ask(
            f"{question} (1-{len(keys)}): ",
            parse,
            f"Please enter a number between 1 and {len(keys)}.",
        )


def render_plan(plan: Plan) -> str:
    lines = ["SOFTWARE TO BE INSTALLED / CONFIGURED", ""]
    for category, steps in plan.by_category().items():
        if not steps:
            continue
        lines.append(f"{CATEGORY_TITLES[category]}:")
        for step in steps:
            flag = " (required)" if step.critical else ""
            lines.append(f"   • {step.description}{flag}")
        lines.append("")
    lines.append("Backups of edited files are kept; nothing is removed automatically.")
    return "\n".join(lines)


def confirm(plan: Plan, prompter: Prompter, *, assume_yes: bool = False) -> bool:
    """Show the plan and ask for approval before anything is mutated."""

    prompter.output_fn(render_plan(plan))
    if assume_yes:
        logger.info("Plan approved non-interactively (--yes)")
        return True

    approved = prompter.ask_yes_no("Proceed with installation?", default=True)
    logger.info("User %s the plan", "approved" if approved else "declined")
    return approved
