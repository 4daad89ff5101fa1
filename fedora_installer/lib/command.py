from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Sequence

from ..errors import CommandError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 1800.0


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def first_line(self) -> str:
        for ln in (self.stdout or self.stderr).splitlines():
            if ln.strip():
                return ln.strip()
        return ""


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
    input_text: str | None = None,
    timeout_s: float | None = DEFAULT_TIMEOUT_S,
    dry_run: bool = False,
    quiet: bool = False,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command (DEBUG when quiet, for read-only probes).
    - Captures stdout/stderr so failures can be reported per Step.
    - dry_run logs but does not execute.
    - A missing executable or a timeout is reported as returncode 127/124
      rather than an OSError, so callers only deal with CmdResult/CommandError.
    """

    argv_list = list(argv)
    logger.log(logging.DEBUG if quiet else logging.INFO, "CMD %s", fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    try:
        p = subprocess.run(
            argv_list,
            input=input_text,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
            timeout=timeout_s,
        )
        result = CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)
    except FileNotFoundError:
        result = CmdResult(argv=argv_list, returncode=127, stdout="", stderr=f"{argv_list[0]}: command not found")
    except subprocess.TimeoutExpired:
        result = CmdResult(argv=argv_list, returncode=124, stdout="", stderr=f"timed out after {timeout_s}s")

    if result.stdout:
        logger.debug("STDOUT %s", result.stdout.strip())
    if result.stderr:
        logger.debug("STDERR %s", result.stderr.strip())

    if check and result.returncode != 0:
        raise CommandError(
            f"Command failed ({result.returncode}): {fmt_argv(argv_list)}\n{result.stderr.strip()}",
            result,
        )

    return result
