"""Shared fixtures for temporary checkout tests."""

from __future__ import annotations

import fnmatch
import subprocess
from pathlib import Path

import pytest

from diffsense.git.exec import CommandError, ExecResult


def _error(args: list[str], stderr: str, code: int = 128) -> CommandError:
    return CommandError(
        ExecResult(argv=tuple(["git", *args]), cwd=Path("/repo"), returncode=code, stdout="", stderr=stderr)
    )


class FakeGitClient:
    """In-memory GitClient: one local repo with an ``origin`` remote."""

    def __init__(self) -> None:
        self.repo_root = Path("/repo")
        self.branches: dict[str, str] = {"main": "a" * 40}
        self.remote_branches: dict[str, str] = {"feature/login": "b" * 40}
        self.tracking: dict[str, str] = {}
        self.head: str | None = "main"
        self.detached_sha: str | None = None
        self.status = ""
        self.untracked = ""
        self.fetch_creates_ref = True
        self.failures: dict[str, CommandError] = {}
        self.calls: list[tuple[str, ...]] = []

    def _record(self, name: str, *args: str) -> None:
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    def fail(self, name: str, stderr: str = "fatal: simulated failure") -> None:
        self.failures[name] = _error([name], stderr)

    def called(self, name: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == name]

    def current_ref(self) -> str:
        self._record("current_ref")
        return self.head if self.head is not None else "HEAD"

    def current_commit(self) -> str:
        self._record("current_commit")
        if self.head is None:
            assert self.detached_sha is not None
            return self.detached_sha
        return self.branches[self.head]

    def status_porcelain(self, *, include_untracked: bool) -> str:
        self._record("status_porcelain")
        return self.status + (self.untracked if include_untracked else "")

    def is_valid_branch_name(self, name: str) -> bool:
        return bool(name) and not name.startswith("-") and ".." not in name and " " not in name

    def fetch_branch(self, remote: str, name: str) -> None:
        self._record("fetch_branch", remote, name)
        if name not in self.remote_branches:
            raise _error(["fetch", remote, name], f"fatal: couldn't find remote ref refs/heads/{name}")
        if self.fetch_creates_ref:
            self.tracking[f"refs/remotes/{remote}/{name}"] = self.remote_branches[name]

    def ref_exists(self, ref: str) -> bool:
        self._record("ref_exists", ref)
        if ref.startswith("refs/heads/"):
            return ref.removeprefix("refs/heads/") in self.branches
        return ref in self.tracking

    def create_and_switch(self, branch: str, start_point: str) -> None:
        self._record("create_and_switch", branch, start_point)
        if start_point not in self.tracking:
            raise _error(["switch", "-C", branch, start_point], f"fatal: invalid reference: {start_point}")
        self.branches[branch] = self.tracking[start_point]
        self.head = branch

    def switch_branch(self, branch: str) -> None:
        self._record("switch_branch", branch)
        if branch not in self.branches:
            raise _error(["switch", branch], f"fatal: invalid reference: {branch}")
        self.head = branch

    def switch_detached(self, commit: str) -> None:
        self._record("switch_detached", commit)
        self.head = None
        self.detached_sha = commit

    def delete_branch(self, branch: str) -> None:
        self._record("delete_branch", branch)
        if branch == self.head:
            raise _error(["branch", "-D", branch], f"error: cannot delete branch '{branch}' checked out")
        if branch not in self.branches:
            raise _error(["branch", "-D", branch], f"error: branch '{branch}' not found")
        del self.branches[branch]

    def list_branches(self, pattern: str) -> list[str]:
        self._record("list_branches", pattern)
        return sorted(name for name in self.branches if fnmatch.fnmatch(name, pattern))

    def temp_branches(self) -> list[str]:
        return [name for name in self.branches if name.startswith("diffsense-temp-")]


@pytest.fixture
def fake_git() -> FakeGitClient:
    return FakeGitClient()


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


@pytest.fixture
def repo_with_origin(tmp_path: Path) -> Path:
    """Clone with ``main`` pushed and a remote-only ``feature/analysis`` branch."""
    remote = tmp_path / "origin.git"
    subprocess.run(["git", "init", "--bare", str(remote)], check=True, capture_output=True)

    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test User")

    (repo / "README.md").write_text("# test\n", encoding="utf-8")
    git(repo, "add", "README.md")
    git(repo, "commit", "-m", "initial")
    git(repo, "branch", "-M", "main")
    git(repo, "remote", "add", "origin", str(remote))
    git(repo, "push", "-u", "origin", "main")

    git(repo, "checkout", "-b", "feature/analysis")
    (repo / "feature.txt").write_text("feature content\n", encoding="utf-8")
    git(repo, "add", "feature.txt")
    git(repo, "commit", "-m", "feature")
    git(repo, "push", "origin", "feature/analysis")
    git(repo, "checkout", "main")
    git(repo, "branch", "-D", "feature/analysis")
    git(repo, "update-ref", "-d", "refs/remotes/origin/feature/analysis")
    return repo


@pytest.fixture
def git_cli():
    return git
