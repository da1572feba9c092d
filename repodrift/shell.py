"""Local subprocess execution with a hard timeout.

Every command runs in its own process session. When the deadline passes
the whole process group is killed with SIGKILL, so shell pipelines and
anything they spawned die with it and the caller never blocks past the
timeout.

Example:
-------
    >>> from repodrift.shell import run_command
    >>> result = run_command("npm test", cwd="/tmp/repo", timeout_ms=120_000)
    >>> if result.timed_out:
    ...     print(f"killed after {result.duration_ms}ms")
    >>> elif not result.ok:
    ...     print(result.stderr)

"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Grace period for collecting output after the process group was killed
_DRAIN_TIMEOUT_S = 5


@dataclass
class Result:
    """Result of a local command execution."""

    exit_code: int | None  # None when the process never started
    stdout: str
    stderr: str
    duration_ms: int = 0
    timed_out: bool = False
    launch_error: str | None = None

    @property
    def ok(self) -> bool:
        """Return True if command succeeded (exit code 0)."""
        return self.exit_code == 0 and not self.timed_out


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))


def _kill_group(proc: subprocess.Popen) -> None:
    """Kill the process group led by proc."""
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        proc.kill()


def run_command(
    cmd: str | list[str],
    *,
    cwd: str | Path | None = None,
    timeout_ms: int,
) -> Result:
    """Run a command and wait for it, killing it at the deadline.

    A string is run through the shell; a list is executed directly.

    Args:
        cmd: Shell command line, or argv list.
        cwd: Working directory.
        timeout_ms: Hard limit in milliseconds.

    Returns:
        Result with the exit code, captured output and wall-clock duration.
        ``timed_out`` is set when the deadline killed the process;
        ``launch_error`` is set when it could not be started at all.

    """
    start = time.monotonic()
    try:
        proc = subprocess.Popen(
            cmd,
            shell=isinstance(cmd, str),
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            start_new_session=True,
        )
    except OSError as exc:
        logger.debug("Failed to start %r: %s", cmd, exc)
        return Result(
            exit_code=None,
            stdout="",
            stderr=str(exc),
            duration_ms=_elapsed_ms(start),
            launch_error=str(exc),
        )

    try:
        stdout, stderr = proc.communicate(timeout=timeout_ms / 1000)
    except subprocess.TimeoutExpired:
        _kill_group(proc)
        try:
            stdout, stderr = proc.communicate(timeout=_DRAIN_TIMEOUT_S)
        except subprocess.TimeoutExpired:
            # A detached grandchild still holds the pipes open
            stdout, stderr = "", ""
            proc.wait()
        duration = _elapsed_ms(start)
        logger.warning("Command timed out after %dms: %r", timeout_ms, cmd)
        return Result(
            exit_code=proc.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            duration_ms=duration,
            timed_out=True,
        )

    duration = _elapsed_ms(start)
    logger.debug("Command exited %s in %dms: %r", proc.returncode, duration, cmd)
    return Result(
        exit_code=proc.returncode,
        stdout=stdout,
        stderr=stderr,
        duration_ms=duration,
    )
