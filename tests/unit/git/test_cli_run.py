"""Tests for the diffsense CLI commands."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from diffsense import __version__
from diffsense.cli import cli

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_run_executes_command_on_target(repo_with_origin: Path, git_cli) -> None:  # type: ignore[no-untyped-def]
    repo = repo_with_origin

    result = runner.invoke(
        cli,
        ["run", "feature/analysis", "--repo", str(repo), "--", "git", "rev-parse", "--abbrev-ref", "HEAD"],
    )

    assert result.exit_code == 0, result.output
    assert "diffsense-temp-feature-analysis-" in result.stdout
    assert git_cli(repo, "rev-parse", "--abbrev-ref", "HEAD") == "main"


def test_run_propagates_command_exit_code(repo_with_origin: Path, git_cli) -> None:  # type: ignore[no-untyped-def]
    repo = repo_with_origin

    result = runner.invoke(
        cli,
        ["run", "feature/analysis", "--repo", str(repo), "--", "git", "rev-parse", "--verify", "--quiet", "nope"],
    )

    assert result.exit_code == 1
    assert git_cli(repo, "rev-parse", "--abbrev-ref", "HEAD") == "main"


def test_run_json_report(repo_with_origin: Path) -> None:
    result = runner.invoke(
        cli,
        ["run", "feature/analysis", "--repo", str(repo_with_origin), "--json", "--", "git", "status", "--short"],
    )

    assert result.exit_code == 0, result.output
    assert '"status": "ok"' in result.output
    assert '"requires_manual_intervention": false' in result.output
    assert '"target": "feature/analysis"' in result.output


def test_run_refuses_missing_branch(repo_with_origin: Path) -> None:
    result = runner.invoke(cli, ["run", "ghost", "--repo", str(repo_with_origin), "--", "git", "status"])

    assert result.exit_code == 2
    assert "origin/ghost" in result.output


def test_run_refuses_dirty_tree(repo_with_origin: Path) -> None:
    (repo_with_origin / "README.md").write_text("# dirty\n", encoding="utf-8")

    result = runner.invoke(cli, ["run", "feature/analysis", "--repo", str(repo_with_origin), "--", "git", "status"])

    assert result.exit_code == 2
    assert "uncommitted changes" in result.output


def test_state_reports_snapshot(repo_with_origin: Path, git_cli) -> None:  # type: ignore[no-untyped-def]
    result = runner.invoke(cli, ["state", "--repo", str(repo_with_origin)])

    assert result.exit_code == 0, result.output
    assert "ref=main" in result.output
    assert f"commit={git_cli(repo_with_origin, 'rev-parse', 'HEAD')}" in result.output
    assert "detached=false" in result.output
    assert "status_porcelain=clean" in result.output


def test_state_outside_repository_fails(tmp_path: Path) -> None:
    result = runner.invoke(cli, ["state", "--repo", str(tmp_path)])
    assert result.exit_code == 1


def test_cleanup_lists_and_deletes_lingering_branches(repo_with_origin: Path, git_cli) -> None:  # type: ignore[no-untyped-def]
    repo = repo_with_origin
    git_cli(repo, "branch", "diffsense-temp-feature-old-1")

    listed = runner.invoke(cli, ["cleanup", "--repo", str(repo)])
    assert listed.exit_code == 0, listed.output
    assert "diffsense-temp-feature-old-1" in listed.output
    assert git_cli(repo, "branch", "--list", "diffsense-temp-*") != ""

    deleted = runner.invoke(cli, ["cleanup", "--repo", str(repo), "--delete"])
    assert deleted.exit_code == 0, deleted.output
    assert "deleted diffsense-temp-feature-old-1" in deleted.output
    assert git_cli(repo, "branch", "--list", "diffsense-temp-*") == ""

    empty = runner.invoke(cli, ["cleanup", "--repo", str(repo)])
    assert "no temporary branches" in empty.output
