from __future__ import annotations

import getpass
import logging
import os
import shlex
import shutil
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .config import InstallerConfig
from .context import RunContext
from .errors import InsufficientResources, NetworkUnavailable, PrivilegeError, UnsupportedPlatform
from .lib.command import run_cmd
from .lib.manifests import load_platforms_manifest
from .lib.net import is_online
from .model import Facts, VirtualizationFacts, VirtualizationPlatform

logger = logging.getLogger(__name__)

OS_RELEASE = Path("/etc/os-release")
DMI_DIR = Path("/sys/class/dmi/id")


def _read_text(path: Path) -> Optional[str]:
    try:
        txt = path.read_text(encoding="utf-8", errors="ignore").strip()
        return txt or None
    except OSError:
        return None


def parse_os_release(text: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        parts = shlex.split(value) if value else [""]
        out[key.strip()] = parts[0] if parts else ""
    return out


def check_privileges(cfg: InstallerConfig) -> None:
    if os.geteuid() == 0:
        raise PrivilegeError(
            "Do not run the installer as root; run it as a regular user with sudo access."
        )
    if not cfg.use_sudo:
        return
    r = run_cmd(["sudo", "-n", "true"], check=False, quiet=True, timeout_s=30)
    if r.returncode != 0:
        raise PrivilegeError(
            "The installer needs sudo. Run `sudo -v` first and make sure your user is in the wheel group."
        )
    logger.info("User has sudo privileges")


def detect_os(cfg: InstallerConfig, *, os_release: Path = OS_RELEASE) -> Tuple[str, str, int, bool]:
    text = _read_text(os_release)
    if text is None:
        raise UnsupportedPlatform(f"{os_release} not found; cannot identify the distribution")

    info = parse_os_release(text)
    os_id = info.get("ID", "").lower()
    like = info.get("ID_LIKE", "").lower().split()
    name = info.get("PRETTY_NAME") or info.get("NAME") or os_id
    if cfg.os_family not in {os_id, *like}:
        raise UnsupportedPlatform(f"This installer supports {cfg.os_family}. Detected: {name}")

    try:
        version = int(info.get("VERSION_ID", "0").split(".")[0])
    except ValueError:
        # Rawhide reports VERSION_ID=rawhide
        version = 0
    supported = version >= cfg.min_version
    logger.info("Detected %s (version %s, supported=%s)", name, version or "unknown", supported)
    return os_id, name, version, supported


def _virt_signals(spec: Mapping[str, Any], *, lspci: str, dmi: str) -> List[str]:
    signals: List[str] = []
    for needle in spec.get("lspci") or []:
        if str(needle).lower() in lspci:
            signals.append(f"lspci:{needle}")
            break
    for needle in spec.get("dmi") or []:
        if str(needle).lower() in dmi:
            signals.append(f"dmi:{needle}")
            break
    for pattern in spec.get("processes") or []:
        r = run_cmd(["pgrep", "-f", str(pattern)], check=False, quiet=True, timeout_s=30)
        if r.returncode == 0:
            signals.append(f"process:{pattern}")
            break
    return signals


def detect_virtualization(*, dmi_dir: Path = DMI_DIR) -> VirtualizationFacts:
    """Check bus devices, DMI strings and running processes for a hypervisor.

    Any single signal is enough. Platforms are tried in manifest order.
    """

    lspci = run_cmd(["lspci"], check=False, quiet=True, timeout_s=30).stdout.lower()
    dmi = " ".join(
        v for v in (_read_text(dmi_dir / "sys_vendor"), _read_text(dmi_dir / "product_name")) if v
    ).lower()

    platforms = load_platforms_manifest().get("virtualization") or {}
    for name, spec in platforms.items():
        signals = _virt_signals(spec, lspci=lspci, dmi=dmi)
        if signals:
            logger.info("Virtualization detected: %s (%s)", name, ", ".join(signals))
            return VirtualizationFacts(detected=True, platform=VirtualizationPlatform(name), signals=tuple(signals))

    logger.info("No virtualization platform detected")
    return VirtualizationFacts(detected=False)


def check_network(cfg: InstallerConfig) -> bool:
    if not is_online(cfg.network_host, timeout_s=cfg.network_timeout_s):
        raise NetworkUnavailable(f"Cannot reach {cfg.network_host}. Please check your internet connection.")
    logger.info("Network connectivity to %s verified", cfg.network_host)
    return True


def check_disk(cfg: InstallerConfig, *, path: str = "/") -> int:
    free = shutil.disk_usage(path).free
    if free < cfg.min_free_bytes:
        raise InsufficientResources(
            f"Insufficient disk space on {path}: required {cfg.min_free_bytes // 1024**3} GiB, "
            f"available {free / 1024**3:.1f} GiB"
        )
    logger.info("Free disk space on %s: %.1f GiB", path, free / 1024**3)
    return free


def probe(ctx: RunContext) -> Facts:
    """Gather read-only facts; raise EnvironmentProbeError subclasses on blockers."""

    cfg = ctx.config
    check_privileges(cfg)
    os_id, name, version, supported = detect_os(cfg)
    virt = detect_virtualization()
    online = check_network(cfg)
    free = check_disk(cfg)

    facts = Facts(
        os_id=os_id,
        os_name=name,
        version_id=version,
        version_supported=supported,
        virtualization=virt,
        network_reachable=online,
        free_disk_bytes=free,
        user=getpass.getuser(),
        home=str(cfg.home),
    )
    ctx.facts = facts
    return facts
