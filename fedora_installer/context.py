from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .config import InstallerConfig
from .model import BackupRecord, Facts


@dataclass
class RunContext:
    """Per-run state threaded through probe, builder, executor and reporter."""

    config: InstallerConfig
    dry_run: bool = False
    log_path: Optional[str] = None
    facts: Optional[Facts] = None
    backups: List[BackupRecord] = field(default_factory=list)

    @property
    def backup_dir(self) -> Path:
        return Path(self.config.backup_dir)

    @property
    def home(self) -> Path:
        return self.config.home

    @property
    def sudo(self) -> list[str]:
        """Command prefix for privileged operations ([] when sudo is disabled)."""

        return ["sudo"] if self.config.use_sudo else []

    def elevated(self, argv: Sequence[str]) -> list[str]:
        return [*self.sudo, *argv]
