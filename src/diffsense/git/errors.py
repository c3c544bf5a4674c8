"""Error taxonomy for the temporary checkout protocol."""

from __future__ import annotations

from diffsense.git.types import ProtocolState


class SwitcherError(RuntimeError):
    """Base class for protocol failures; ``phase`` names where it happened."""

    phase: ProtocolState = ProtocolState.INITIAL

    def __init__(self, message: str, *, phase: ProtocolState | None = None):
        super().__init__(message)
        if phase is not None:
            self.phase = phase


class SnapshotError(SwitcherError):
    """Raised when the current checkout state cannot be determined."""

    phase = ProtocolState.INITIAL


class DirtyWorkingTreeError(SwitcherError):
    """Raised when the working tree has uncommitted changes."""

    phase = ProtocolState.SNAPSHOTTED

    def __init__(self, changed_paths: list[str]):
        preview = ", ".join(changed_paths[:5])
        if len(changed_paths) > 5:
            preview += f", ... (+{len(changed_paths) - 5} more)"
        super().__init__(
            "Refused: working tree has uncommitted changes; commit or stash them first "
            f"({preview})."
        )
        self.changed_paths = changed_paths


class InvalidBranchNameError(SwitcherError):
    """Raised when the target is not a valid branch name."""

    phase = ProtocolState.VERIFIED_CLEAN

    def __init__(self, name: str):
        super().__init__(f"Refused: `{name}` is not a valid branch name.")
        self.name = name


class RemoteFetchError(SwitcherError):
    """Raised on network or transport failure while fetching."""

    phase = ProtocolState.VERIFIED_CLEAN


class BranchNotFoundError(SwitcherError):
    """Raised when the target branch does not exist on the remote."""

    phase = ProtocolState.VERIFIED_CLEAN

    def __init__(self, name: str, remote: str = "origin"):
        super().__init__(f"Remote branch {remote}/{name} does not exist; check the branch name.")
        self.name = name
        self.remote = remote


class CheckoutError(SwitcherError):
    """Raised when the temporary branch cannot be created or checked out."""

    phase = ProtocolState.FETCHED


class RestorationWarning(UserWarning):
    """Issued when best-effort restoration needs manual follow-up."""
