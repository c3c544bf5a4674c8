"""Narrow git capability surface used by the temporary checkout protocol."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from diffsense.config import SwitcherConfig
from diffsense.git.exec import ExecResult, run_git

logger = logging.getLogger(__name__)


class GitClient(Protocol):
    """Git primitives the protocol depends on.

    Every method raises ``CommandError`` on failure. ``ref_exists`` and
    ``is_valid_branch_name`` answer with a boolean instead.
    """

    repo_root: Path

    def current_ref(self) -> str:
        """Return the abbreviated symbolic ref, ``HEAD`` when detached."""

    def current_commit(self) -> str:
        """Return the full commit id of HEAD."""

    def status_porcelain(self, *, include_untracked: bool) -> str:
        """Return machine-readable working tree status."""

    def is_valid_branch_name(self, name: str) -> bool:
        """Return True when ``name`` is a well-formed branch name."""

    def fetch_branch(self, remote: str, name: str) -> None:
        """Fetch ``refs/heads/<name>`` into ``refs/remotes/<remote>/<name>``."""

    def ref_exists(self, ref: str) -> bool:
        """Return True when the fully qualified ref exists."""

    def create_and_switch(self, branch: str, start_point: str) -> None:
        """Force-create ``branch`` at ``start_point`` and check it out."""

    def switch_branch(self, branch: str) -> None:
        """Check out an existing local branch."""

    def switch_detached(self, commit: str) -> None:
        """Check out ``commit`` with a detached HEAD."""

    def delete_branch(self, branch: str) -> None:
        """Force-delete a local branch."""

    def list_branches(self, pattern: str) -> list[str]:
        """Return local branch names matching a ``refs/heads`` glob."""


class SubprocessGitClient:
    """GitClient backed by the git executable."""

    def __init__(self, repo_root: Path | str, config: SwitcherConfig | None = None):
        self.repo_root = Path(repo_root).resolve()
        self.config = config or SwitcherConfig()

    def _git(self, args: list[str], *, check: bool = True) -> ExecResult:
        logger.debug("git %s (cwd=%s)", " ".join(args), self.repo_root)
        return run_git(
            args,
            repo_root=self.repo_root,
            check=check,
            max_output_bytes=self.config.max_output_bytes,
            git_binary=self.config.git_binary,
        )

    def current_ref(self) -> str:
        return self._git(["rev-parse", "--abbrev-ref", "HEAD"]).stdout.strip()

    def current_commit(self) -> str:
        return self._git(["rev-parse", "HEAD"]).stdout.strip()

    def status_porcelain(self, *, include_untracked: bool) -> str:
        untracked = "all" if include_untracked else "no"
        return self._git(["status", "--porcelain", f"--untracked-files={untracked}"]).stdout

    def is_valid_branch_name(self, name: str) -> bool:
        if not name or name.startswith("-") or name == "HEAD":
            return False
        return self._git(["check-ref-format", f"refs/heads/{name}"], check=False).returncode == 0

    def fetch_branch(self, remote: str, name: str) -> None:
        refspec = f"+refs/heads/{name}:refs/remotes/{remote}/{name}"
        self._git(["fetch", "--no-tags", "--prune", remote, refspec])

    def ref_exists(self, ref: str) -> bool:
        return self._git(["show-ref", "--verify", "--quiet", ref], check=False).returncode == 0

    def create_and_switch(self, branch: str, start_point: str) -> None:
        self._git(["switch", "-C", branch, start_point])

    def switch_branch(self, branch: str) -> None:
        self._git(["switch", branch])

    def switch_detached(self, commit: str) -> None:
        self._git(["switch", "--detach", commit])

    def delete_branch(self, branch: str) -> None:
        self._git(["branch", "-D", branch])

    def list_branches(self, pattern: str) -> list[str]:
        listing = self._git(["for-each-ref", "--format=%(refname:short)", f"refs/heads/{pattern}"]).stdout
        return sorted(line.strip() for line in listing.splitlines() if line.strip())
