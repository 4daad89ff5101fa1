from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml

DEFAULT_CONFIG_PATH = "/etc/fedora-installer/config.yaml"

GIB = 1024 * 1024 * 1024


@dataclass(frozen=True)
class InstallerConfig:
    """Typed view over the raw config mapping; every key has a default."""

    raw: Dict[str, Any]

    def _section(self, name: str) -> Dict[str, Any]:
        return self.raw.get(name) or {}

    @property
    def log_path(self) -> str:
        return str(self._section("paths").get("log") or "/var/log/fedora-installer.log")

    @property
    def backup_dir(self) -> str:
        return str(self._section("paths").get("backup_dir") or "/var/backups/fedora-installer")

    @property
    def state_path(self) -> str:
        return str(self._section("paths").get("state") or "/var/lib/fedora-installer/state.json")

    @property
    def os_family(self) -> str:
        return str(self._section("system").get("os_family") or "fedora")

    @property
    def min_version(self) -> int:
        return int(self._section("system").get("min_version") or 42)

    @property
    def min_free_bytes(self) -> int:
        return int(self._section("system").get("min_free_bytes") or 4 * GIB)

    @property
    def network_host(self) -> str:
        return str(self._section("system").get("network_host") or "packages.microsoft.com")

    @property
    def network_timeout_s(self) -> int:
        return int(self._section("system").get("network_timeout_s") or 3)

    @property
    def command_timeout_s(self) -> float:
        return float(self._section("system").get("command_timeout_s") or 1800)

    @property
    def use_sudo(self) -> bool:
        v = self._section("system").get("use_sudo")
        return True if v is None else bool(v)

    @property
    def home(self) -> Path:
        v = self._section("user").get("home")
        return Path(v).expanduser() if v else Path.home()

    @property
    def rc_file(self) -> Path:
        v = self._section("user").get("rc_file")
        return Path(v).expanduser() if v else self.home / ".bashrc"

    @property
    def dev_root(self) -> Path:
        v = self._section("user").get("dev_root")
        return Path(v).expanduser() if v else self.home / "Development"

    @property
    def max_prompt_attempts(self) -> int:
        return int(self._section("prompts").get("max_attempts") or 3)

    @property
    def workflows(self) -> List[str]:
        return list(self.raw.get("workflows") or ["codecs", "devstack"])

    def with_overrides(self, **paths: Any) -> "InstallerConfig":
        """Return a copy with CLI path overrides applied (None values ignored)."""

        raw = {k: (dict(v) if isinstance(v, dict) else v) for k, v in self.raw.items()}
        section = raw.setdefault("paths", {})
        for key, value in paths.items():
            if value is not None:
                section[key] = value
        return InstallerConfig(raw=raw)


def load_config(path: str | None = None) -> InstallerConfig:
    """Load YAML config; a missing default config file means all defaults."""

    p = Path(path or DEFAULT_CONFIG_PATH)
    if not p.exists():
        if path is not None:
            raise FileNotFoundError(path)
        return InstallerConfig(raw={})

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("installer config must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p} must contain a mapping/object")

    return InstallerConfig(raw=raw)
