"""Concrete Step actions and idempotency checks.

Actions mutate the system and raise ActionError (CommandError) or OSError on
failure. Checks are read-only and return True when the effect already exists.
All of them are frozen dataclasses so two Plans built from the same inputs
compare equal.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .context import RunContext
from .errors import ActionError
from .lib import files, pkg, releases, services
from .lib.command import fmt_argv, run_cmd
from .model import Action

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DnfUpgrade:
    def describe(self) -> str:
        return "dnf upgrade --refresh -y"

    def run(self, ctx: RunContext) -> None:
        pkg.dnf_upgrade(ctx.sudo, dry_run=ctx.dry_run)


@dataclass(frozen=True)
class DnfInstall:
    packages: Tuple[str, ...]
    exclude: Tuple[str, ...] = ()
    options: Tuple[str, ...] = ()

    def describe(self) -> str:
        return f"dnf install {' '.join(self.packages)}"

    def run(self, ctx: RunContext) -> None:
        pkg.dnf_install(ctx.sudo, self.packages, exclude=self.exclude, options=self.options, dry_run=ctx.dry_run)


@dataclass(frozen=True)
class Command:
    argv: Tuple[str, ...]
    elevate: bool = False
    label: str = ""

    def describe(self) -> str:
        return self.label or fmt_argv(self.argv)

    def run(self, ctx: RunContext) -> None:
        argv = ctx.elevated(self.argv) if self.elevate else list(self.argv)
        run_cmd(argv, dry_run=ctx.dry_run, timeout_s=ctx.config.command_timeout_s)


@dataclass(frozen=True)
class Chain:
    actions: Tuple[Action, ...]
    label: str = ""

    def describe(self) -> str:
        return self.label or " && ".join(a.describe() for a in self.actions)

    def run(self, ctx: RunContext) -> None:
        for action in self.actions:
            action.run(ctx)


@dataclass(frozen=True)
class DownloadRepoFile:
    """Fetch a vendor .repo definition and install it under /etc/yum.repos.d."""

    url: str
    path: Path

    def describe(self) -> str:
        return f"download {self.url} -> {self.path}"

    def run(self, ctx: RunContext) -> None:
        if ctx.dry_run:
            logger.info("Would download %s to %s", self.url, self.path)
            return
        with tempfile.TemporaryDirectory(prefix="fedora-installer-") as tmp:
            local = releases.download(self.url, Path(tmp) / self.path.name)
            files.install_file(local, self.path, elevate=ctx.sudo)


@dataclass(frozen=True)
class AppendBlock:
    path: Path
    block_id: str
    body: str

    def describe(self) -> str:
        return f"append block '{self.block_id}' to {self.path}"

    def run(self, ctx: RunContext) -> None:
        files.append_block(self.path, self.block_id, self.body, elevate=ctx.sudo, dry_run=ctx.dry_run)


@dataclass(frozen=True)
class MakeDirs:
    paths: Tuple[Path, ...]

    def describe(self) -> str:
        return "mkdir -p " + " ".join(str(p) for p in self.paths)

    def run(self, ctx: RunContext) -> None:
        for p in self.paths:
            if ctx.dry_run:
                logger.info("Would create %s", p)
                continue
            p.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class GitIdentity:
    name: Optional[str]
    email: Optional[str]

    def describe(self) -> str:
        return "git config --global user.name/user.email"

    def run(self, ctx: RunContext) -> None:
        for key, value in (("user.name", self.name), ("user.email", self.email)):
            if _git_config(key):
                continue
            if not value:
                raise ActionError(f"git {key} is not configured and no value was provided")
            run_cmd(["git", "config", "--global", key, value], dry_run=ctx.dry_run)


@dataclass(frozen=True)
class ReleaseRpm:
    """Secondary channel: install an RPM straight from the latest GitHub release."""

    repo: str
    url_template: str

    def describe(self) -> str:
        return f"install latest {self.repo} release RPM"

    def run(self, ctx: RunContext) -> None:
        if ctx.dry_run:
            logger.info("Would download and install the latest %s release RPM", self.repo)
            return
        version = releases.latest_release_version(self.repo)
        url = self.url_template.format(version=version)
        with tempfile.TemporaryDirectory(prefix="fedora-installer-") as tmp:
            rpm = releases.download(url, Path(tmp) / url.rsplit("/", 1)[-1])
            pkg.dnf_install(ctx.sudo, [str(rpm)])
        logger.info("Installed %s %s from release RPM", self.repo, version)


@dataclass(frozen=True)
class EnableService:
    unit: str
    user: bool = False

    def describe(self) -> str:
        scope = "--user " if self.user else ""
        return f"systemctl {scope}enable --now {self.unit}"

    def run(self, ctx: RunContext) -> None:
        services.enable_now(self.unit, ctx.sudo, user=self.user, dry_run=ctx.dry_run)


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NoPendingUpdates:
    def describe(self) -> str:
        return "no pending dnf updates"

    def satisfied(self, ctx: RunContext) -> bool:
        return not pkg.dnf_has_updates()


@dataclass(frozen=True)
class PackagesInstalled:
    packages: Tuple[str, ...]
    any_of: bool = False

    def describe(self) -> str:
        joiner = " or " if self.any_of else ", "
        return f"installed: {joiner.join(self.packages)}"

    def satisfied(self, ctx: RunContext) -> bool:
        if not self.packages:
            return False
        if self.any_of:
            return any(pkg.rpm_installed(p) for p in self.packages)
        return pkg.all_installed(self.packages)


@dataclass(frozen=True)
class BlockPresent:
    path: Path
    block_id: str

    def describe(self) -> str:
        return f"block '{self.block_id}' present in {self.path}"

    def satisfied(self, ctx: RunContext) -> bool:
        return files.has_block(self.path, self.block_id)


@dataclass(frozen=True)
class RepoDefined:
    """A .repo file already carries our block or defines the section by hand."""

    path: Path
    block_id: str
    section: str

    def describe(self) -> str:
        return f"[{self.section}] defined in {self.path}"

    def satisfied(self, ctx: RunContext) -> bool:
        txt = files.read_text(self.path)
        if txt is None:
            return False
        header = f"[{self.section}]"
        return files.block_start(self.block_id) in txt or any(ln.strip() == header for ln in txt.splitlines())


@dataclass(frozen=True)
class FileContains:
    path: Path
    needle: str

    def describe(self) -> str:
        return f"{self.path} mentions {self.needle}"

    def satisfied(self, ctx: RunContext) -> bool:
        txt = files.read_text(self.path)
        return txt is not None and self.needle in txt


@dataclass(frozen=True)
class PathsExist:
    paths: Tuple[Path, ...]

    def describe(self) -> str:
        return "exists: " + ", ".join(str(p) for p in self.paths)

    def satisfied(self, ctx: RunContext) -> bool:
        return all(p.exists() for p in self.paths)


@dataclass(frozen=True)
class CommandAvailable:
    name: str
    extra_dirs: Tuple[Path, ...] = ()

    def describe(self) -> str:
        return f"'{self.name}' on PATH"

    def satisfied(self, ctx: RunContext) -> bool:
        if shutil.which(self.name):
            return True
        return any((d / self.name).exists() for d in self.extra_dirs)


@dataclass(frozen=True)
class CommandSucceeds:
    argv: Tuple[str, ...]
    output_contains: Optional[str] = None

    def describe(self) -> str:
        if self.output_contains:
            return f"'{fmt_argv(self.argv)}' lists {self.output_contains}"
        return f"'{fmt_argv(self.argv)}' succeeds"

    def satisfied(self, ctx: RunContext) -> bool:
        r = run_cmd(self.argv, check=False, quiet=True, timeout_s=120)
        if r.returncode != 0:
            return False
        if self.output_contains is None:
            return True
        return self.output_contains.lower() in r.stdout.lower()


@dataclass(frozen=True)
class GitIdentityConfigured:
    def describe(self) -> str:
        return "git user.name and user.email configured"

    def satisfied(self, ctx: RunContext) -> bool:
        return bool(_git_config("user.name")) and bool(_git_config("user.email"))


@dataclass(frozen=True)
class ServiceEnabled:
    unit: str
    user: bool = False

    def describe(self) -> str:
        return f"{self.unit} enabled"

    def satisfied(self, ctx: RunContext) -> bool:
        return services.is_enabled(self.unit, user=self.user)


def _git_config(key: str) -> str:
    r = run_cmd(["git", "config", "--global", key], check=False, quiet=True, timeout_s=30)
    return r.stdout.strip() if r.returncode == 0 else ""
