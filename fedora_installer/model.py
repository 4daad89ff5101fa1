from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Protocol, Tuple

if TYPE_CHECKING:
    from .context import RunContext
    from .errors import StepFailed


class StepCategory(str, Enum):
    REPOSITORY = "repository"
    PACKAGE_GROUP = "package-group"
    FILE_EDIT = "file-edit"
    SERVICE = "service"


class Phase(int, Enum):
    """Plan phases; Steps are ordered by phase, then by manifest order."""

    SYSTEM_UPDATE = 10
    REPOSITORIES = 20
    CORE_PACKAGES = 30
    PLATFORM_PACKAGES = 40
    AUXILIARY_TOOLS = 50
    CONFIG_EDITS = 60
    SERVICES = 70


class Workflow(str, Enum):
    CODECS = "codecs"
    DEVSTACK = "devstack"


class GraphicsVendor(str, Enum):
    INTEL = "intel"
    AMD = "amd"
    NVIDIA = "nvidia"
    SKIP = "skip"


class VirtualizationPlatform(str, Enum):
    VMWARE = "vmware"
    VIRTUALBOX = "virtualbox"
    KVM = "kvm"
    HYPERV = "hyperv"


class Outcome(str, Enum):
    SUCCEEDED = "succeeded"
    SUCCEEDED_VIA_FALLBACK = "succeeded-via-fallback"
    SKIPPED_IDEMPOTENT = "skipped-idempotent"
    FAILED_ADVISORY = "failed-advisory"
    FAILED_FATAL = "failed-fatal"


class Action(Protocol):
    """Something a Step does. Raises ActionError (or OSError) on failure."""

    def describe(self) -> str:
        ...

    def run(self, ctx: "RunContext") -> None:
        ...


class Check(Protocol):
    """Read-only idempotency predicate: True when the Step's effect exists."""

    def describe(self) -> str:
        ...

    def satisfied(self, ctx: "RunContext") -> bool:
        ...


@dataclass(frozen=True)
class VirtualizationFacts:
    detected: bool
    platform: Optional[VirtualizationPlatform] = None
    signals: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Facts:
    os_id: str
    os_name: str
    version_id: int
    version_supported: bool
    virtualization: VirtualizationFacts
    network_reachable: bool
    free_disk_bytes: int
    user: str
    home: str


@dataclass(frozen=True)
class UserChoices:
    graphics: GraphicsVendor = GraphicsVendor.SKIP
    virtualization: Optional[VirtualizationPlatform] = None
    workflows: Tuple[Workflow, ...] = (Workflow.CODECS, Workflow.DEVSTACK)
    git_name: Optional[str] = None
    git_email: Optional[str] = None

    def wants(self, workflow: Workflow) -> bool:
        return workflow in self.workflows


@dataclass(frozen=True)
class Step:
    step_id: str
    category: StepCategory
    phase: Phase
    description: str
    action: Action
    check: Check
    fallback: Optional[Action] = None
    critical: bool = False
    capability: str = ""
    fallback_label: str = ""
    edits: Tuple[Path, ...] = ()


@dataclass(frozen=True)
class Plan:
    steps: Tuple[Step, ...]
    facts: Facts
    choices: UserChoices

    def by_category(self) -> "dict[StepCategory, list[Step]]":
        grouped: dict[StepCategory, list[Step]] = {c: [] for c in StepCategory}
        for step in self.steps:
            grouped[step.category].append(step)
        return grouped

    def step_ids(self) -> list[str]:
        return [s.step_id for s in self.steps]


@dataclass(frozen=True)
class BackupRecord:
    original: Path
    backup: Path
    timestamp: datetime


@dataclass
class ExecutionResult:
    step_id: str
    category: StepCategory
    outcome: Outcome
    diagnostics: str = ""
    attempted: list[str] = field(default_factory=list)
    error: Optional["StepFailed"] = None

    @property
    def failed(self) -> bool:
        return self.outcome in {Outcome.FAILED_ADVISORY, Outcome.FAILED_FATAL}
