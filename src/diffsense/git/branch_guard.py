"""Checkout state capture and cleanliness rails."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from diffsense.git.errors import DirtyWorkingTreeError, SnapshotError
from diffsense.git.exec import CommandError
from diffsense.git.types import DETACHED_REF, RepositoryStateSnapshot

if TYPE_CHECKING:
    from diffsense.git.client import GitClient

logger = logging.getLogger(__name__)


def capture_state(client: GitClient) -> RepositoryStateSnapshot:
    """Capture current branch/detached state and HEAD sha."""
    try:
        branch = client.current_ref()
        head_sha = client.current_commit()
    except CommandError as exc:
        raise SnapshotError(
            f"Refused: cannot read checkout state of {client.repo_root} (not a git repository or no commits?)"
        ) from exc

    if not head_sha:
        raise SnapshotError(f"Refused: empty HEAD commit id in {client.repo_root}")

    if branch == DETACHED_REF:
        logger.info("Detached HEAD at %s", head_sha)
        return RepositoryStateSnapshot(original_ref=DETACHED_REF, original_commit=head_sha, is_detached=True)

    if not branch:
        raise SnapshotError(f"Refused: cannot determine current branch of {client.repo_root}")
    logger.info("Current branch %s at %s", branch, head_sha)
    return RepositoryStateSnapshot(original_ref=branch, original_commit=head_sha, is_detached=False)


def parse_status_paths(status_output: str) -> list[str]:
    """Parse git porcelain status output into repository-relative paths."""
    changed_files: list[str] = []
    for raw_line in status_output.splitlines():
        if not raw_line.strip():
            continue
        path_fragment = raw_line[3:]
        if " -> " in path_fragment:
            path_fragment = path_fragment.split(" -> ", 1)[1]
        if path_fragment.startswith('"') and path_fragment.endswith('"'):
            path_fragment = path_fragment[1:-1]
        changed_files.append(path_fragment)
    return changed_files


def assert_clean(client: GitClient, *, include_untracked: bool = False) -> None:
    """Refuse to continue when the working tree has uncommitted changes."""
    try:
        status = client.status_porcelain(include_untracked=include_untracked)
    except CommandError as exc:
        raise SnapshotError(f"Refused: cannot read working tree status of {client.repo_root}") from exc

    changed = parse_status_paths(status)
    if changed:
        raise DirtyWorkingTreeError(changed)
    logger.info("Working tree is clean")
