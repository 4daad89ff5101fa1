from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..actions import Command, DnfInstall, PackagesInstalled, ReleaseRpm
from ..model import Action, Phase, Step, StepCategory, UserChoices, Workflow

_PHASES = {
    "core": Phase.CORE_PACKAGES,
    "auxiliary": Phase.AUXILIARY_TOOLS,
}


def step_id(phase: Phase, name: str) -> str:
    return f"{phase.value}_{name}"


def selected(entries: Iterable[Mapping[str, Any]], choices: UserChoices) -> List[Mapping[str, Any]]:
    """Manifest entries whose `workflow` the user selected (no workflow = always)."""

    out: List[Mapping[str, Any]] = []
    for entry in entries:
        wf = entry.get("workflow")
        if wf is None or choices.wants(Workflow(wf)):
            out.append(entry)
    return out


def _str_tuple(value: Any) -> tuple[str, ...]:
    return tuple(str(v) for v in (value or []))


def _fallback(entry: Mapping[str, Any]) -> Optional[Action]:
    if entry.get("fallback_packages"):
        return DnfInstall(packages=_str_tuple(entry["fallback_packages"]), exclude=_str_tuple(entry.get("exclude")))
    if entry.get("fallback_command"):
        return Command(argv=_str_tuple(entry["fallback_command"]), elevate=True, label=str(entry.get("fallback_label") or ""))
    release = entry.get("fallback_release")
    if release:
        return ReleaseRpm(repo=str(release["repo"]), url_template=str(release["url"]))
    return None


def package_group_step(entry: Mapping[str, Any], phase: Phase) -> Step:
    packages = _str_tuple(entry.get("packages"))
    if not packages:
        raise ValueError(f"package group {entry.get('id')} has no packages")
    check_pkgs = _str_tuple(entry.get("check")) or packages
    if any("*" in p or p.startswith("@") for p in check_pkgs):
        raise ValueError(f"package group {entry.get('id')} needs explicit check packages")

    return Step(
        step_id=step_id(phase, str(entry["id"])),
        category=StepCategory.PACKAGE_GROUP,
        phase=phase,
        description=str(entry.get("description") or entry["id"]),
        action=DnfInstall(
            packages=packages,
            exclude=_str_tuple(entry.get("exclude")),
            options=_str_tuple(entry.get("options")),
        ),
        check=PackagesInstalled(packages=check_pkgs, any_of=bool(entry.get("check_any", False))),
        fallback=_fallback(entry),
        fallback_label=str(entry.get("fallback_label") or ""),
        critical=bool(entry.get("critical", False)),
        capability=str(entry.get("capability") or entry.get("description") or entry["id"]),
    )


def package_group_steps(manifest: Dict[str, Any], phase_name: str, choices: UserChoices) -> List[Step]:
    phase = _PHASES[phase_name]
    groups = manifest.get("package_groups") or []
    if not isinstance(groups, list):
        raise RuntimeError("manifests/packages.yaml: package_groups must be a list")
    return [
        package_group_step(entry, phase)
        for entry in selected(groups, choices)
        if entry.get("phase") == phase_name
    ]
