"""
Unit tests for local command execution with hard timeouts.
"""

from pathlib import Path

import pytest

from repodrift.shell import run_command


@pytest.mark.unit
class TestRunCommand:
    """Test run_command()."""

    def test_success(self) -> None:
        """Exit 0 is ok and stdout is captured."""
        result = run_command("echo hello", timeout_ms=5000)
        assert result.ok
        assert result.exit_code == 0
        assert result.stdout.strip() == "hello"
        assert result.duration_ms >= 0

    def test_nonzero_exit(self) -> None:
        """A non-zero exit code is reported and not ok."""
        result = run_command("echo boom >&2; exit 3", timeout_ms=5000)
        assert not result.ok
        assert result.exit_code == 3
        assert "boom" in result.stderr

    def test_runs_in_cwd(self, tmp_path: Path) -> None:
        """Commands run in the given working directory."""
        (tmp_path / "marker.txt").write_text("x")
        assert run_command("test -f marker.txt", cwd=tmp_path, timeout_ms=5000).ok

    def test_argv_list(self) -> None:
        """A list is executed without a shell."""
        result = run_command(["echo", "a b"], timeout_ms=5000)
        assert result.stdout.strip() == "a b"

    def test_timeout_kills_process(self) -> None:
        """A command past its deadline is killed and flagged."""
        result = run_command("sleep 30", timeout_ms=200)
        assert result.timed_out
        assert not result.ok
        assert 150 <= result.duration_ms < 5000

    def test_timeout_kills_process_group(self) -> None:
        """Background children die with the shell, so output draining cannot hang."""
        result = run_command("sleep 30 & sleep 30; wait", timeout_ms=200)
        assert result.timed_out
        assert result.duration_ms < 4000

    def test_missing_executable(self) -> None:
        """An argv whose program does not exist is a launch error."""
        result = run_command(["definitely-not-a-real-binary-xyz"], timeout_ms=5000)
        assert result.launch_error
        assert result.exit_code is None
        assert not result.ok

    def test_missing_shell_command(self) -> None:
        """The shell reports unknown commands with exit 127."""
        result = run_command("definitely-not-a-real-binary-xyz", timeout_ms=5000)
        assert result.exit_code == 127
