from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .lib import services
from .lib.command import run_cmd
from .lib.manifests import load_capabilities_manifest
from .model import GraphicsVendor, UserChoices, Workflow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capability:
    name: str
    command: Tuple[str, ...] = ()
    service: Optional[str] = None
    user: bool = False
    critical: bool = False
    follow_up: Optional[str] = None
    # Per-user install locations that are not on PATH until a new shell starts.
    extra_paths: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CapabilityStatus:
    present: bool
    version: Optional[str] = None
    critical: bool = False


def _applies(entry: Mapping[str, Any], choices: UserChoices) -> bool:
    wf = entry.get("workflow")
    if wf is not None and not choices.wants(Workflow(wf)):
        return False
    vendors = entry.get("graphics")
    if vendors is not None:
        allowed = vendors if isinstance(vendors, list) else [vendors]
        if choices.graphics not in {GraphicsVendor(v) for v in allowed}:
            return False
    platform = entry.get("virtualization")
    if platform is not None and (choices.virtualization is None or choices.virtualization.value != platform):
        return False
    return True


def _expand(path: str, home: Path) -> str:
    if path == "~" or path.startswith("~/"):
        return str(home / path[2:])
    return path


def expected_capabilities(choices: UserChoices, *, home: Optional[Path] = None) -> List[Capability]:
    home = home or Path.home()
    entries = load_capabilities_manifest().get("capabilities") or []
    return [
        Capability(
            name=str(e["name"]),
            command=tuple(str(a) for a in e.get("command") or []),
            service=e.get("service"),
            user=bool(e.get("user", False)),
            critical=bool(e.get("critical", False)),
            follow_up=e.get("follow_up"),
            extra_paths=tuple(_expand(str(p), home) for p in e.get("extra_paths") or []),
        )
        for e in entries
        if _applies(e, choices)
    ]


def _check(cap: Capability) -> CapabilityStatus:
    if cap.service:
        active = services.is_active(cap.service, user=cap.user)
        return CapabilityStatus(present=active, version="active" if active else None, critical=cap.critical)

    if not cap.command:
        return CapabilityStatus(present=False, critical=cap.critical)

    search = os.pathsep.join([*cap.extra_paths, os.environ.get("PATH", os.defpath)])
    exe = shutil.which(cap.command[0], path=search)
    if exe is None:
        return CapabilityStatus(present=False, critical=cap.critical)

    r = run_cmd([exe, *cap.command[1:]], check=False, quiet=True, timeout_s=60)
    if r.returncode != 0:
        return CapabilityStatus(present=False, critical=cap.critical)
    return CapabilityStatus(present=True, version=r.first_line() or None, critical=cap.critical)


def verify(capabilities: Sequence[Capability]) -> Dict[str, CapabilityStatus]:
    """Query each capability; never mutates and never raises for a missing one."""

    out: Dict[str, CapabilityStatus] = {}
    for cap in capabilities:
        status = _check(cap)
        out[cap.name] = status
        if status.present:
            logger.info("✓ %s: %s", cap.name, status.version or "present")
        elif cap.critical:
            logger.error("✗ %s is not installed or not on PATH", cap.name)
        else:
            logger.warning("%s is not installed (optional)", cap.name)
    return out
