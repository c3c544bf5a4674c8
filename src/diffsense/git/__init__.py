"""Temporary checkout protocol for running analysis on another branch."""

from diffsense.git.errors import (
    BranchNotFoundError,
    CheckoutError,
    DirtyWorkingTreeError,
    InvalidBranchNameError,
    RemoteFetchError,
    RestorationWarning,
    SnapshotError,
    SwitcherError,
)
from diffsense.git.switcher import (
    CheckoutSession,
    run_on_branch,
    safe_branch_operation,
    safe_branch_operation_async,
    temporary_checkout,
)
from diffsense.git.types import ProtocolResult, RepositoryStateSnapshot, RestorationOutcome, TemporaryBranchHandle

__all__ = [
    "BranchNotFoundError",
    "CheckoutError",
    "CheckoutSession",
    "DirtyWorkingTreeError",
    "InvalidBranchNameError",
    "ProtocolResult",
    "RemoteFetchError",
    "RepositoryStateSnapshot",
    "RestorationOutcome",
    "RestorationWarning",
    "SnapshotError",
    "SwitcherError",
    "TemporaryBranchHandle",
    "run_on_branch",
    "safe_branch_operation",
    "safe_branch_operation_async",
    "temporary_checkout",
]
