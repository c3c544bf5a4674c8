"""Command runners for diffsense git workflows."""

from __future__ import annotations

import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from diffsense.config import DEFAULT_MAX_OUTPUT_BYTES

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ExecResult:
    """Result envelope for subprocess execution."""

    argv: tuple[str, ...]
    cwd: Path
    returncode: int
    stdout: str
    stderr: str


class CommandError(RuntimeError):
    """Raised when a command returns non-zero in check mode."""

    def __init__(self, result: ExecResult):
        rendered = " ".join(result.argv)
        detail = (result.stderr or result.stdout).strip()
        super().__init__(f"command failed ({result.returncode}): {rendered}\n{detail}")
        self.result = result

    @property
    def command(self) -> str:
        return " ".join(self.result.argv)

    @property
    def stderr(self) -> str:
        return self.result.stderr


class OutputLimitExceeded(CommandError):
    """Raised when captured output is larger than the configured ceiling."""

    def __init__(self, result: ExecResult, limit: int):
        super().__init__(result)
        self.args = (f"command output exceeded {limit} bytes: {' '.join(result.argv)}",)
        self.limit = limit


def run_command(
    argv: list[str],
    *,
    cwd: Path,
    check: bool = True,
    ignore_failure: bool = False,
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
) -> ExecResult:
    """Run command and return structured result.

    ``max_output_bytes`` applies to stdout and stderr separately; the child is
    killed as soon as either stream passes it. ``ignore_failure`` turns a
    non-zero exit into an empty-output result instead of raising, and takes
    precedence over ``check``.
    """
    resolved = cwd.resolve()
    try:
        proc = subprocess.Popen(
            argv,
            cwd=resolved,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        result = ExecResult(argv=tuple(argv), cwd=resolved, returncode=127, stdout="", stderr=str(exc))
        if ignore_failure:
            return _empty(result)
        raise CommandError(result) from exc

    exceeded = threading.Event()
    stdout_chunks: list[bytes] = []
    stderr_chunks: list[bytes] = []
    readers = [
        threading.Thread(target=_drain, args=(proc, proc.stdout, stdout_chunks, max_output_bytes, exceeded)),
        threading.Thread(target=_drain, args=(proc, proc.stderr, stderr_chunks, max_output_bytes, exceeded)),
    ]
    for reader in readers:
        reader.start()
    for reader in readers:
        reader.join()
    returncode = proc.wait()

    result = ExecResult(
        argv=tuple(argv),
        cwd=resolved,
        returncode=returncode,
        stdout=b"".join(stdout_chunks).decode("utf-8", errors="replace"),
        stderr=b"".join(stderr_chunks).decode("utf-8", errors="replace"),
    )
    if exceeded.is_set():
        raise OutputLimitExceeded(result, max_output_bytes)
    if result.returncode != 0:
        if ignore_failure:
            return _empty(result)
        if check:
            raise CommandError(result)
    return result


def _drain(
    proc: subprocess.Popen[bytes],
    stream: IO[bytes],
    sink: list[bytes],
    limit: int,
    exceeded: threading.Event,
) -> None:
    total = 0
    with stream:
        while chunk := stream.read1(_CHUNK_SIZE):  # type: ignore[attr-defined]
            total += len(chunk)
            if total > limit:
                sink.append(chunk[: max(limit - (total - len(chunk)), 0)])
                exceeded.set()
                proc.kill()
                return
            sink.append(chunk)


def run_git(
    args: list[str],
    *,
    repo_root: Path,
    check: bool = True,
    ignore_failure: bool = False,
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
    git_binary: str = "git",
) -> ExecResult:
    """Run git command rooted at repo."""
    return run_command(
        [git_binary, *args],
        cwd=repo_root,
        check=check,
        ignore_failure=ignore_failure,
        max_output_bytes=max_output_bytes,
    )


def _empty(result: ExecResult) -> ExecResult:
    return ExecResult(argv=result.argv, cwd=result.cwd, returncode=result.returncode, stdout="", stderr="")
