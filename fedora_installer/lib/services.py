from __future__ import annotations

from typing import Sequence

from .command import run_cmd


def _systemctl(user: bool) -> list[str]:
    return ["systemctl", "--user"] if user else ["systemctl"]


def is_enabled(unit: str, *, user: bool = False) -> bool:
    r = run_cmd([*_systemctl(user), "is-enabled", unit], check=False, quiet=True)
    return r.returncode == 0


def is_active(unit: str, *, user: bool = False) -> bool:
    r = run_cmd([*_systemctl(user), "is-active", "--quiet", unit], check=False, quiet=True)
    return r.returncode == 0


def enable_now(unit: str, elevate: Sequence[str], *, user: bool = False, dry_run: bool = False) -> None:
    # User units must be managed as the invoking user, never through sudo.
    prefix = [] if user else list(elevate)
    run_cmd([*prefix, *_systemctl(user), "enable", "--now", unit], dry_run=dry_run)
