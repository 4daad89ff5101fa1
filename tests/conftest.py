from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import pytest

from fedora_installer.config import InstallerConfig
from fedora_installer.context import RunContext
from fedora_installer.errors import ActionError
from fedora_installer.model import Facts, VirtualizationFacts


def make_facts(**overrides) -> Facts:
    values = dict(
        os_id="fedora",
        os_name="Fedora Linux 42 (Workstation Edition)",
        version_id=42,
        version_supported=True,
        virtualization=VirtualizationFacts(detected=False),
        network_reachable=True,
        free_disk_bytes=50 * 1024**3,
        user="tester",
        home="/home/tester",
    )
    values.update(overrides)
    return Facts(**values)


@dataclass
class FakeAction:
    """Records calls into a shared journal; raises ActionError when `fail` is set."""

    name: str
    journal: List[str] = field(default_factory=list)
    fail: bool = False

    def describe(self) -> str:
        return self.name

    def run(self, ctx) -> None:
        self.journal.append(self.name)
        if self.fail:
            raise ActionError(f"{self.name} exploded")


@dataclass
class FakeCheck:
    result: bool = False

    def describe(self) -> str:
        return f"fake check ({self.result})"

    def satisfied(self, ctx) -> bool:
        return self.result


@pytest.fixture
def cfg(tmp_path) -> InstallerConfig:
    home = tmp_path / "home"
    home.mkdir()
    return InstallerConfig(
        raw={
            "paths": {
                "log": str(tmp_path / "log" / "installer.log"),
                "backup_dir": str(tmp_path / "backups"),
                "state": str(tmp_path / "state.json"),
            },
            "system": {"use_sudo": False},
            "user": {"home": str(home)},
        }
    )


@pytest.fixture
def ctx(cfg) -> RunContext:
    return RunContext(config=cfg)


@pytest.fixture
def facts() -> Facts:
    return make_facts()
