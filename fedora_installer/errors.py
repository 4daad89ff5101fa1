from __future__ import annotations

from typing import Optional, Sequence


class InstallerError(Exception):
    """Base class for every error the installer raises on purpose."""


class EnvironmentProbeError(InstallerError):
    """Raised by the probe; nothing has been mutated when this surfaces."""


class UnsupportedPlatform(EnvironmentProbeError):
    pass


class NetworkUnavailable(EnvironmentProbeError):
    pass


class InsufficientResources(EnvironmentProbeError):
    pass


class PrivilegeError(EnvironmentProbeError):
    pass


class ConfirmationTimeout(InstallerError):
    """No usable answer: no terminal attached, EOF, or retries exhausted."""


class ActionError(InstallerError):
    """A Step action (primary or fallback) did not achieve its effect."""


class CommandError(ActionError):
    def __init__(self, message: str, result=None) -> None:
        super().__init__(message)
        self.result = result


class StepFailed(InstallerError):
    def __init__(self, step_id: str, attempted: Sequence[str], diagnostics: str) -> None:
        self.step_id = step_id
        self.attempted = list(attempted)
        self.diagnostics = diagnostics
        super().__init__(
            f"Step {step_id} failed (attempted: {'; '.join(self.attempted) or 'nothing'})"
        )


class StepFailedAdvisory(StepFailed):
    pass


class StepFailedFatal(StepFailed):
    pass


class VerificationGap(InstallerError):
    def __init__(self, capability: str, follow_up: Optional[str] = None, *, critical: bool = False) -> None:
        self.capability = capability
        self.follow_up = follow_up
        self.critical = critical
        super().__init__(f"{capability} is not present")
