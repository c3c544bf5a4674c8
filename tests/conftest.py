"""Pytest configuration and fixtures for diffsense tests."""
from pathlib import Path

import pytest


def pytest_sessionfinish(session, exitstatus):
    """Fail the run when --cov was requested but no coverage data exists.

    Tests must import the installed ``diffsense`` package, not ``src/diffsense``
    by filesystem path, or coverage silently reports 0%.
    """
    cov_enabled = any("--cov" in str(arg) for arg in session.config.args)
    if not cov_enabled:
        return

    coverage_files = list(Path.cwd().glob(".coverage*"))
    if not coverage_files:
        pytest.exit(
            "Coverage was enabled but no data was collected. "
            "Check that tests import from 'diffsense' (the package) not 'src/diffsense' (filesystem path).",
            returncode=1,
        )


@pytest.fixture(autouse=True)
def _isolate_switcher_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DIFFSENSE_REMOTE", raising=False)
    monkeypatch.delenv("DIFFSENSE_BRANCH_PREFIX", raising=False)
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
