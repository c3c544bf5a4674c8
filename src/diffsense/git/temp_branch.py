"""Remote branch fetch and temporary branch checkout."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from diffsense.git.errors import (
    BranchNotFoundError,
    CheckoutError,
    InvalidBranchNameError,
    RemoteFetchError,
)
from diffsense.git.exec import CommandError
from diffsense.git.naming import DEFAULT_PREFIX, build_temp_branch, next_timestamp_ms
from diffsense.git.types import TemporaryBranchHandle

if TYPE_CHECKING:
    from diffsense.git.client import GitClient

logger = logging.getLogger(__name__)

_MISSING_REMOTE_REF_MARKERS = (
    "couldn't find remote ref",
    "could not find remote ref",
)


def tracking_ref(remote: str, name: str) -> str:
    """Fully qualified remote-tracking ref for ``name``."""
    return f"refs/remotes/{remote}/{name}"


def fetch_branch(client: GitClient, name: str, *, remote: str = "origin") -> str:
    """Fetch exactly one remote branch and return its tracking ref."""
    if not client.is_valid_branch_name(name):
        raise InvalidBranchNameError(name)

    logger.info("Fetching %s/%s", remote, name)
    try:
        client.fetch_branch(remote, name)
    except CommandError as exc:
        detail = exc.stderr.lower()
        if any(marker in detail for marker in _MISSING_REMOTE_REF_MARKERS):
            raise BranchNotFoundError(name, remote) from exc
        raise RemoteFetchError(
            f"Failed to fetch {remote}/{name}; check the network connection and remote configuration: "
            f"{exc.stderr.strip()}"
        ) from exc

    ref = tracking_ref(remote, name)
    if not client.ref_exists(ref):
        raise BranchNotFoundError(name, remote)
    logger.info("Fetched %s", ref)
    return ref


def create_and_switch(
    client: GitClient,
    name: str,
    *,
    remote: str = "origin",
    prefix: str = DEFAULT_PREFIX,
    clock: Callable[[], int] = next_timestamp_ms,
) -> TemporaryBranchHandle:
    """Create a fresh temporary branch at the fetched ref and check it out."""
    return switch_to_handle(client, new_handle(name, remote=remote, prefix=prefix, clock=clock))


def new_handle(
    name: str,
    *,
    remote: str = "origin",
    prefix: str = DEFAULT_PREFIX,
    clock: Callable[[], int] = next_timestamp_ms,
) -> TemporaryBranchHandle:
    """Name the temporary branch for ``name`` without touching the repository."""
    created_at = clock()
    return TemporaryBranchHandle(
        name=build_temp_branch(name, created_at, prefix),
        target_branch=name,
        tracking_ref=tracking_ref(remote, name),
        created_at_ms=created_at,
    )


def switch_to_handle(client: GitClient, handle: TemporaryBranchHandle) -> TemporaryBranchHandle:
    """Check out ``handle`` at its tracking ref in one step."""
    logger.info("Creating temporary branch %s from %s", handle.name, handle.tracking_ref)
    try:
        client.create_and_switch(handle.name, handle.tracking_ref)
    except CommandError as exc:
        raise CheckoutError(f"Failed to create temporary branch {handle.name}: {exc.stderr.strip()}") from exc
    logger.info("Switched to temporary branch %s", handle.name)
    return handle
