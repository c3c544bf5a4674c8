"""Run an operation against another branch and restore the checkout afterwards.

The protocol snapshots the current checkout, refuses dirty working trees,
fetches the target branch from the remote, and checks it out on a
throwaway local branch. Once the checkout is attempted, restoration runs
exactly once no matter how the operation exits. Restoration problems never
replace the operation's own result or exception; they are reported on the
returned ``ProtocolResult`` (or as notes on the propagating exception).

Invocations against the same clone must be serialized by the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from diffsense.config import SwitcherConfig, load_switcher_config
from diffsense.git.branch_guard import assert_clean, capture_state
from diffsense.git.client import GitClient, SubprocessGitClient
from diffsense.git.naming import next_timestamp_ms
from diffsense.git.restore import restore_state
from diffsense.git.temp_branch import fetch_branch, new_handle, switch_to_handle
from diffsense.git.types import (
    ProtocolResult,
    ProtocolState,
    RepositoryStateSnapshot,
    RestorationOutcome,
    TemporaryBranchHandle,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


@dataclass
class CheckoutSession:
    """In-flight view of one invocation."""

    snapshot: RepositoryStateSnapshot
    handle: TemporaryBranchHandle
    states: list[ProtocolState] = field(default_factory=list)
    restoration: RestorationOutcome | None = None

    @property
    def state(self) -> ProtocolState:
        return self.states[-1]

    def advance(self, state: ProtocolState) -> None:
        logger.debug("checkout protocol: %s -> %s", self.states[-1].value if self.states else "-", state.value)
        self.states.append(state)


@contextmanager
def temporary_checkout(
    repo_root: Path | str,
    target_branch: str,
    *,
    config: SwitcherConfig | None = None,
    client: GitClient | None = None,
    clock: Callable[[], int] = next_timestamp_ms,
) -> Iterator[CheckoutSession]:
    """Check out ``target_branch`` from the remote for the duration of the block."""
    resolved = Path(repo_root).resolve()
    cfg = config or load_switcher_config(resolved)
    git = client or SubprocessGitClient(resolved, cfg)

    snapshot = capture_state(git)
    states = [ProtocolState.INITIAL, ProtocolState.SNAPSHOTTED]

    assert_clean(git, include_untracked=cfg.refuse_untracked)
    states.append(ProtocolState.VERIFIED_CLEAN)

    fetch_branch(git, target_branch, remote=cfg.remote)
    states.append(ProtocolState.FETCHED)

    handle = new_handle(target_branch, remote=cfg.remote, prefix=cfg.branch_prefix, clock=clock)
    session = CheckoutSession(snapshot=snapshot, handle=handle, states=states)

    try:
        switch_to_handle(git, handle)
        session.advance(ProtocolState.SWITCHED)
        session.advance(ProtocolState.OPERATING)
        yield session
    except BaseException as exc:
        session.advance(ProtocolState.RESTORING)
        session.restoration = restore_state(git, snapshot, handle)
        _attach_manual_recovery(exc, session.restoration)
        session.advance(ProtocolState.DONE)
        raise
    else:
        session.advance(ProtocolState.RESTORING)
        session.restoration = restore_state(git, snapshot, handle)
        session.advance(ProtocolState.DONE)


def run_on_branch(
    repo_root: Path | str,
    target_branch: str,
    operation: Callable[[], _T],
    *,
    config: SwitcherConfig | None = None,
    client: GitClient | None = None,
) -> ProtocolResult[_T]:
    """Run ``operation`` on ``target_branch`` content and report restoration."""
    with temporary_checkout(repo_root, target_branch, config=config, client=client) as session:
        value = operation()
    assert session.restoration is not None
    return ProtocolResult(
        value=value,
        snapshot=session.snapshot,
        handle=session.handle,
        restoration=session.restoration,
    )


def safe_branch_operation(
    repo_root: Path | str,
    target_branch: str,
    operation: Callable[[], _T],
    *,
    config: SwitcherConfig | None = None,
    client: GitClient | None = None,
) -> _T:
    """Run ``operation`` on ``target_branch`` content and return its value."""
    return run_on_branch(repo_root, target_branch, operation, config=config, client=client).value


async def safe_branch_operation_async(
    repo_root: Path | str,
    target_branch: str,
    operation: Callable[[], Awaitable[_T]],
    *,
    config: SwitcherConfig | None = None,
    client: GitClient | None = None,
) -> _T:
    """Await ``operation`` on ``target_branch`` content; git steps still block."""
    with temporary_checkout(repo_root, target_branch, config=config, client=client):
        return await operation()


def _attach_manual_recovery(exc: BaseException, outcome: RestorationOutcome) -> None:
    if not outcome.requires_manual_intervention:
        return
    exc.add_note("diffsense: checkout restoration failed; recover manually with:")
    for command in outcome.manual_commands:
        exc.add_note(f"  {command}")
