from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml


def _manifest_root() -> Path:
    # fedora_installer/lib/manifests.py -> fedora_installer/manifests
    return Path(__file__).resolve().parents[1] / "manifests"


@lru_cache(maxsize=None)
def load_manifest(name: str) -> Dict[str, Any]:
    """Load a YAML manifest shipped with the package (manifests/<name>.yaml)."""

    p = _manifest_root() / f"{name}.yaml"
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {p}")
    return data


def load_packages_manifest() -> Dict[str, Any]:
    return load_manifest("packages")


def load_repositories_manifest() -> Dict[str, Any]:
    return load_manifest("repositories")


def load_platforms_manifest() -> Dict[str, Any]:
    return load_manifest("platforms")


def load_shell_manifest() -> Dict[str, Any]:
    return load_manifest("shell")


def load_capabilities_manifest() -> Dict[str, Any]:
    return load_manifest("capabilities")
