"""Best-effort restoration of the captured checkout state."""

from __future__ import annotations

import logging
import warnings
from typing import TYPE_CHECKING

from diffsense.git.errors import RestorationWarning
from diffsense.git.exec import CommandError
from diffsense.git.types import RestorationOutcome, RestorationStep

if TYPE_CHECKING:
    from diffsense.git.client import GitClient
    from diffsense.git.types import RepositoryStateSnapshot, TemporaryBranchHandle

logger = logging.getLogger(__name__)


def restore_state(
    client: GitClient,
    snapshot: RepositoryStateSnapshot,
    handle: TemporaryBranchHandle | None = None,
) -> RestorationOutcome:
    """Return to the snapshot and drop the temporary branch.

    Never raises: each step records its own outcome and failures are logged
    and issued as ``RestorationWarning`` with the command to run by hand.
    """
    checkout = _restore_checkout(client, snapshot)
    cleanup = _delete_temp_branch(client, handle)
    return RestorationOutcome(checkout=checkout, cleanup=cleanup)


def _restore_checkout(client: GitClient, snapshot: RepositoryStateSnapshot) -> RestorationStep:
    if snapshot.is_detached:
        action = "switch_detached"
        command = f"git switch --detach {snapshot.original_commit}"
        manual = f"git checkout {snapshot.original_commit}"
        logger.info("Restoring detached HEAD at %s", snapshot.original_commit)
    else:
        action = "switch_branch"
        command = f"git switch {snapshot.original_ref}"
        manual = f"git checkout {snapshot.original_ref}"
        logger.info("Switching back to %s", snapshot.original_ref)

    try:
        if snapshot.is_detached:
            client.switch_detached(snapshot.original_commit)
        else:
            client.switch_branch(snapshot.original_ref)
    except Exception as exc:  # restoration never raises
        return _failed(action, command, manual, exc, "Failed to restore original checkout")
    return RestorationStep(action=action, status="ok", command=command)


def _delete_temp_branch(client: GitClient, handle: TemporaryBranchHandle | None) -> RestorationStep:
    if handle is None:
        return RestorationStep(action="delete_branch", status="skipped")

    command = f"git branch -D {handle.name}"
    try:
        exists = client.ref_exists(f"refs/heads/{handle.name}")
    except Exception as exc:
        return _failed("delete_branch", command, command, exc, "Failed to inspect temporary branch")
    if not exists:
        logger.debug("Temporary branch %s was never created", handle.name)
        return RestorationStep(action="delete_branch", status="skipped", command=command)

    logger.info("Deleting temporary branch %s", handle.name)
    try:
        client.delete_branch(handle.name)
    except Exception as exc:
        return _failed("delete_branch", command, command, exc, "Failed to delete temporary branch")
    return RestorationStep(action="delete_branch", status="ok", command=command)


def _failed(action: str, command: str, manual: str, exc: Exception, summary: str) -> RestorationStep:
    detail = exc.stderr.strip() if isinstance(exc, CommandError) else str(exc)
    logger.warning("%s: %s", summary, detail)
    logger.warning("Recover manually with: %s", manual)
    warnings.warn(f"{summary}; recover manually with: {manual}", RestorationWarning, stacklevel=3)
    return RestorationStep(action=action, status="failed", command=command, manual_command=manual, error=detail)
