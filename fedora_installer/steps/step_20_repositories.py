from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Mapping

from ..actions import AppendBlock, DnfInstall, DownloadRepoFile, FileContains, PackagesInstalled, RepoDefined
from ..config import InstallerConfig
from ..lib.manifests import load_repositories_manifest
from ..model import Facts, Phase, Step, StepCategory, UserChoices
from .common import selected, step_id

logger = logging.getLogger(__name__)


def _repo_step(entry: Mapping[str, Any], version: int) -> Step:
    kind = entry.get("kind")
    name = str(entry["id"])
    common = dict(
        step_id=step_id(Phase.REPOSITORIES, name),
        category=StepCategory.REPOSITORY,
        phase=Phase.REPOSITORIES,
        description=str(entry.get("description") or name),
        critical=bool(entry.get("critical", False)),
        capability=str(entry.get("description") or name),
    )

    if kind == "release-rpm":
        urls = tuple(str(u).format(version=version) for u in entry.get("urls") or [])
        return Step(
            action=DnfInstall(packages=urls),
            check=PackagesInstalled(packages=tuple(str(p) for p in entry.get("check") or [])),
            **common,
        )

    if kind == "repo-file":
        path = Path(str(entry["path"]).format(version=version))
        return Step(
            action=DownloadRepoFile(url=str(entry["url"]).format(version=version), path=path),
            check=FileContains(path=path, needle=str(entry.get("contains") or entry["url"])),
            edits=(path,),
            **common,
        )

    if kind == "repo-block":
        path = Path(str(entry["path"]))
        block_id = f"repo-{name}"
        return Step(
            action=AppendBlock(path=path, block_id=block_id, body=str(entry["body"])),
            check=RepoDefined(path=path, block_id=block_id, section=str(entry["section"])),
            edits=(path,),
            **common,
        )

    raise RuntimeError(f"manifests/repositories.yaml: unknown kind {kind!r} for {name}")


def repository_steps(facts: Facts, choices: UserChoices, cfg: InstallerConfig) -> List[Step]:
    manifest = load_repositories_manifest()
    entries = selected(manifest.get("repositories") or [], choices)
    logger.debug("Repositories for Fedora %s: %s", facts.version_id, ", ".join(str(e["id"]) for e in entries))
    return [_repo_step(entry, facts.version_id) for entry in entries]
