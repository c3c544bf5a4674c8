"""Types for the diffsense temporary checkout protocol."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Literal, TypeVar

DETACHED_REF = "HEAD"

StepStatus = Literal["ok", "failed", "skipped"]

_T = TypeVar("_T")


class ProtocolState(str, Enum):
    """Phases of one temporary checkout invocation."""

    INITIAL = "initial"
    SNAPSHOTTED = "snapshotted"
    VERIFIED_CLEAN = "verified_clean"
    FETCHED = "fetched"
    SWITCHED = "switched"
    OPERATING = "operating"
    RESTORING = "restoring"
    DONE = "done"


@dataclass(frozen=True)
class RepositoryStateSnapshot:
    """Checkout state captured before any mutation."""

    original_ref: str
    original_commit: str
    is_detached: bool

    def __post_init__(self) -> None:
        if not self.original_commit:
            raise ValueError("snapshot requires a commit id")
        if self.is_detached and self.original_ref != DETACHED_REF:
            raise ValueError(f"detached snapshot must use {DETACHED_REF!r} as ref, got {self.original_ref!r}")
        if not self.is_detached and self.original_ref == DETACHED_REF:
            raise ValueError("attached snapshot requires a branch name")

    @property
    def restore_target(self) -> str:
        return self.original_commit if self.is_detached else self.original_ref


@dataclass(frozen=True)
class TemporaryBranchHandle:
    """Local branch created for a single invocation."""

    name: str
    target_branch: str
    tracking_ref: str
    created_at_ms: int


@dataclass(frozen=True)
class RestorationStep:
    """Outcome of one best-effort restoration step."""

    action: str
    status: StepStatus
    command: str = ""
    manual_command: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"


@dataclass(frozen=True)
class RestorationOutcome:
    """Structured restoration report."""

    checkout: RestorationStep
    cleanup: RestorationStep

    @property
    def requires_manual_intervention(self) -> bool:
        return self.checkout.failed or self.cleanup.failed

    @property
    def manual_commands(self) -> list[str]:
        return [
            step.manual_command
            for step in (self.checkout, self.cleanup)
            if step.failed and step.manual_command
        ]

    def to_dict(self) -> dict[str, object]:
        return {
            "requires_manual_intervention": self.requires_manual_intervention,
            "manual_commands": self.manual_commands,
            "checkout": _step_dict(self.checkout),
            "cleanup": _step_dict(self.cleanup),
        }


@dataclass(frozen=True)
class ProtocolResult(Generic[_T]):
    """Operation value paired with the restoration report."""

    value: _T
    snapshot: RepositoryStateSnapshot
    handle: TemporaryBranchHandle
    restoration: RestorationOutcome


def _step_dict(step: RestorationStep) -> dict[str, object]:
    return {
        "action": step.action,
        "status": step.status,
        "command": step.command,
        "manual_command": step.manual_command,
        "error": step.error,
    }
