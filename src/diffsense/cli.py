"""CLI surface for diffsense temporary checkouts."""

from __future__ import annotations

import json
import logging
import warnings
from dataclasses import replace
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from diffsense import __version__
from diffsense.config import SwitcherConfig, load_switcher_config
from diffsense.git.branch_guard import capture_state, parse_status_paths
from diffsense.git.client import SubprocessGitClient
from diffsense.git.errors import (
    BranchNotFoundError,
    DirtyWorkingTreeError,
    InvalidBranchNameError,
    RestorationWarning,
    SwitcherError,
)
from diffsense.git.exec import CommandError, run_command
from diffsense.git.naming import temp_branch_pattern
from diffsense.git.switcher import run_on_branch
from diffsense.git.types import RestorationOutcome

cli = typer.Typer(
    name="diffsense",
    help="Run commands against another branch without disturbing the working tree.",
    no_args_is_help=True,
)

console = Console(stderr=True)

REFUSAL_ERRORS = (DirtyWorkingTreeError, BranchNotFoundError, InvalidBranchNameError)
EXIT_REFUSED = 2
EXIT_ERROR = 1


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"diffsense {__version__}")
        raise typer.Exit()


@cli.callback()
def main(
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase log verbosity (-v info, -vv debug)."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """diffsense command group."""
    _ = version
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", force=True)


def _resolve_config(repo_root: Path, remote: str | None, prefix: str | None) -> SwitcherConfig:
    try:
        config = load_switcher_config(repo_root)
    except RuntimeError as exc:
        console.print(str(exc), style="red", markup=False)
        raise typer.Exit(EXIT_ERROR) from exc
    overrides: dict[str, Any] = {}
    if remote:
        overrides["remote"] = remote
    if prefix:
        overrides["branch_prefix"] = prefix
    if overrides:
        config = replace(config, **overrides)
    return config


def _render_restoration(outcome: RestorationOutcome) -> None:
    if not outcome.requires_manual_intervention:
        console.print("[green]restored original checkout[/green]")
        return
    console.print("[yellow]restoration incomplete; run manually:[/yellow]")
    for command in outcome.manual_commands:
        console.print(f"  [bold]{command}[/bold]")


@cli.command("run")
def run(
    target: str = typer.Argument(..., metavar="TARGET", help="Remote branch to check out."),
    command: list[str] = typer.Argument(..., metavar="CMD...", help="Command to run (after `--`)."),
    repo: Path = typer.Option(Path("."), "--repo", help="Repository path (defaults to current directory)."),
    remote: str | None = typer.Option(None, "--remote", help="Remote to fetch from (default: origin)."),
    prefix: str | None = typer.Option(None, "--prefix", help="Temporary branch name prefix."),
    json_output: bool = typer.Option(False, "--json", help="Print a JSON report on stdout."),
) -> None:
    """Run CMD with TARGET checked out, then restore the original checkout."""
    repo_root = repo.resolve()
    config = _resolve_config(repo_root, remote, prefix)

    report: dict[str, Any] = {
        "status": "error",
        "repo_root": str(repo_root),
        "target": target,
        "remote": config.remote,
        "command": command,
        "returncode": None,
        "temp_branch": None,
        "captured_state": None,
        "restoration": None,
        "error": None,
        "stdout": None,
    }

    def _operation() -> int:
        result = run_command(command, cwd=repo_root, check=False, max_output_bytes=config.max_output_bytes)
        if json_output:
            report["stdout"] = result.stdout
        else:
            typer.echo(result.stdout, nl=False)
        if result.stderr:
            typer.echo(result.stderr, nl=False, err=True)
        return result.returncode

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", RestorationWarning)
            outcome = run_on_branch(repo_root, target, _operation, config=config)
    except REFUSAL_ERRORS as exc:
        _finish(report, json_output, status="refused", error=str(exc))
        raise typer.Exit(EXIT_REFUSED) from exc
    except (SwitcherError, CommandError) as exc:
        _finish(report, json_output, status="error", error=str(exc))
        raise typer.Exit(EXIT_ERROR) from exc

    report["returncode"] = outcome.value
    report["temp_branch"] = outcome.handle.name
    report["captured_state"] = {
        "ref": outcome.snapshot.original_ref,
        "commit": outcome.snapshot.original_commit,
        "detached": outcome.snapshot.is_detached,
    }
    report["restoration"] = outcome.restoration.to_dict()
    _render_restoration(outcome.restoration)
    _finish(report, json_output, status="ok")
    raise typer.Exit(outcome.value)


def _finish(report: dict[str, Any], json_output: bool, *, status: str, error: str | None = None) -> None:
    report["status"] = status
    report["error"] = error
    if error:
        console.print(error, style="red", markup=False)
    if json_output:
        typer.echo(json.dumps(report, sort_keys=True, indent=2))


@cli.command("state")
def state(
    repo: Path = typer.Option(Path("."), "--repo", help="Repository path (defaults to current directory)."),
) -> None:
    """Show the checkout state that a run would restore."""
    repo_root = repo.resolve()
    config = _resolve_config(repo_root, None, None)
    client = SubprocessGitClient(repo_root, config)
    try:
        snapshot = capture_state(client)
        changed = parse_status_paths(client.status_porcelain(include_untracked=config.refuse_untracked))
    except (SwitcherError, CommandError) as exc:
        console.print(str(exc), style="red", markup=False)
        raise typer.Exit(EXIT_ERROR) from exc

    typer.echo(f"repo_root={repo_root}")
    typer.echo(f"ref={snapshot.original_ref}")
    typer.echo(f"commit={snapshot.original_commit}")
    typer.echo(f"detached={str(snapshot.is_detached).lower()}")
    typer.echo(f"status_porcelain={'dirty' if changed else 'clean'}")


@cli.command("cleanup")
def cleanup(
    repo: Path = typer.Option(Path("."), "--repo", help="Repository path (defaults to current directory)."),
    prefix: str | None = typer.Option(None, "--prefix", help="Temporary branch name prefix."),
    delete: bool = typer.Option(False, "--delete", help="Delete the lingering branches instead of listing them."),
) -> None:
    """List or delete temporary branches left behind by failed restorations."""
    repo_root = repo.resolve()
    config = _resolve_config(repo_root, None, prefix)
    client = SubprocessGitClient(repo_root, config)
    try:
        current = client.current_ref()
        branches = [b for b in client.list_branches(temp_branch_pattern(config.branch_prefix)) if b != current]
    except CommandError as exc:
        console.print(str(exc), style="red", markup=False)
        raise typer.Exit(EXIT_ERROR) from exc

    if not branches:
        typer.echo("no temporary branches")
        return

    failed = False
    for branch in branches:
        if not delete:
            typer.echo(branch)
            continue
        try:
            client.delete_branch(branch)
            typer.echo(f"deleted {branch}")
        except CommandError as exc:
            failed = True
            console.print(f"failed to delete {branch}: {exc.stderr.strip()}", style="red", markup=False)
    if failed:
        raise typer.Exit(EXIT_ERROR)


def app() -> None:
    """Console script entry point."""
    cli()
