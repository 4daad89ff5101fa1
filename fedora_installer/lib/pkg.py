from __future__ import annotations

from typing import Sequence

from .command import run_cmd


def dnf_upgrade(elevate: Sequence[str], *, dry_run: bool = False) -> None:
    run_cmd([*elevate, "dnf", "upgrade", "--refresh", "-y"], dry_run=dry_run)


def dnf_has_updates() -> bool:
    """`dnf check-update` exits 100 when updates are pending, 0 when none."""

    r = run_cmd(["dnf", "check-update", "-q"], check=False, quiet=True)
    return r.returncode != 0


def dnf_install(
    elevate: Sequence[str],
    packages: Sequence[str],
    *,
    exclude: Sequence[str] = (),
    options: Sequence[str] = (),
    dry_run: bool = False,
) -> None:
    if not packages:
        return
    argv = [*elevate, "dnf", "install", "-y", *options]
    for name in exclude:
        argv.append(f"--exclude={name}")
    run_cmd([*argv, *packages], dry_run=dry_run)


def rpm_installed(package: str) -> bool:
    r = run_cmd(["rpm", "-q", "--whatprovides", package], check=False, quiet=True)
    return r.returncode == 0


def all_installed(packages: Sequence[str]) -> bool:
    return all(rpm_installed(p) for p in packages)
