"""
Unit tests for the integrity checker.

Tests match/drift/missing/error verdicts, severity defaults and diff output.
"""

import os
from pathlib import Path

import pytest

from repodrift._config import ProtectedFileRule
from repodrift._integrity import check_all, check_integrity, unified_diff
from tests.helpers import CI_YML


@pytest.mark.unit
class TestCheckIntegrity:
    """Test check_integrity verdicts."""

    def test_identical_file_matches(self, tmp_path: Path) -> None:
        """Byte-identical content is a match with no diff."""
        (tmp_path / "ci.yml").write_text(CI_YML)
        result = check_integrity(ProtectedFileRule(path="ci.yml"), tmp_path, CI_YML.encode())
        assert result.status == "match"
        assert result.diff is None
        assert result.file == "ci.yml"

    def test_changed_file_drifts(self, tmp_path: Path) -> None:
        """A one-line change is drift with a non-empty diff."""
        (tmp_path / "ci.yml").write_text(CI_YML.replace("push", "pull_request"))
        rule = ProtectedFileRule(path="ci.yml", severity="high")
        result = check_integrity(rule, tmp_path, CI_YML.encode())
        assert result.status == "drift"
        assert result.severity == "high"
        assert "-on: push" in result.diff
        assert "+on: pull_request" in result.diff

    def test_drift_defaults_to_low(self, tmp_path: Path) -> None:
        """Drift without explicit severity reports low."""
        (tmp_path / "a.txt").write_text("changed\n")
        result = check_integrity(ProtectedFileRule(path="a.txt"), tmp_path, b"original\n")
        assert result.severity == "low"

    def test_absent_file_missing(self, tmp_path: Path) -> None:
        """An absent file is missing, critical by default, with no diff."""
        result = check_integrity(ProtectedFileRule(path="release.yml"), tmp_path, b"x")
        assert result.status == "missing"
        assert result.severity == "critical"
        assert result.diff is None

    def test_missing_uses_rule_severity(self, tmp_path: Path) -> None:
        """An explicit severity overrides the missing default."""
        result = check_integrity(ProtectedFileRule(path="a", severity="low"), tmp_path, b"x")
        assert result.severity == "low"

    def test_line_endings_are_significant(self, tmp_path: Path) -> None:
        """CRLF vs LF is drift; comparison is byte-exact."""
        (tmp_path / "a.txt").write_bytes(b"line\r\n")
        result = check_integrity(ProtectedFileRule(path="a.txt"), tmp_path, b"line\n")
        assert result.status == "drift"
        assert result.diff

    def test_trailing_whitespace_is_significant(self, tmp_path: Path) -> None:
        """Trailing whitespace differences are drift."""
        (tmp_path / "a.txt").write_text("line \n")
        result = check_integrity(ProtectedFileRule(path="a.txt"), tmp_path, b"line\n")
        assert result.status == "drift"

    def test_directory_at_path_is_error(self, tmp_path: Path) -> None:
        """A path that cannot be read as a file is an error, not a crash."""
        (tmp_path / "a.txt").mkdir()
        result = check_integrity(ProtectedFileRule(path="a.txt"), tmp_path, b"x")
        assert result.status == "error"
        assert result.error
        assert result.diff is None

    @pytest.mark.skipif(os.geteuid() == 0, reason="root ignores file permissions")
    def test_unreadable_file_is_error(self, tmp_path: Path) -> None:
        """Permission denied is reported as error."""
        target = tmp_path / "a.txt"
        target.write_text("secret\n")
        target.chmod(0)
        try:
            result = check_integrity(ProtectedFileRule(path="a.txt"), tmp_path, b"x")
        finally:
            target.chmod(0o644)
        assert result.status == "error"

    def test_no_baseline_is_error(self, tmp_path: Path) -> None:
        """A rule with no approved content is an error."""
        (tmp_path / "a.txt").write_text("x\n")
        result = check_integrity(ProtectedFileRule(path="a.txt"), tmp_path, None)
        assert result.status == "error"
        assert "baseline" in result.error

    def test_nested_path(self, tmp_path: Path) -> None:
        """Rules address files below the repository root."""
        target = tmp_path / ".github" / "workflows" / "ci.yml"
        target.parent.mkdir(parents=True)
        target.write_text(CI_YML)
        result = check_integrity(ProtectedFileRule(path=".github/workflows/ci.yml"), tmp_path, CI_YML.encode())
        assert result.status == "match"


@pytest.mark.unit
class TestCheckAll:
    """Test check_all over a rule set."""

    def test_one_result_per_rule_in_order(self, drift_config, baseline, drifted_repo: Path) -> None:
        """Every protected rule yields exactly one result, in rule order."""
        results = check_all(drift_config.protected, drifted_repo, baseline)
        assert [r.file for r in results] == [r.path for r in drift_config.protected]
        assert [r.status for r in results] == ["drift", "match", "missing"]

    def test_severity_same_across_repositories(self, drift_config, baseline, make_repo) -> None:
        """Severity depends on the rule, not on which repository is scanned."""
        first = make_repo("one", {".github/workflows/ci.yml": "a\n"})
        second = make_repo("two", {".github/workflows/ci.yml": "b\n"})
        ci_rule = drift_config.protected[:1]
        assert check_all(ci_rule, first, baseline)[0].severity == check_all(ci_rule, second, baseline)[0].severity


@pytest.mark.unit
class TestUnifiedDiff:
    """Test diff rendering."""

    def test_headers_name_both_sides(self) -> None:
        """The diff labels the approved and actual files."""
        diff = unified_diff(b"a\n", b"b\n", "x.txt")
        assert "--- approved/x.txt" in diff
        assert "+++ x.txt" in diff

    def test_missing_final_newline_marked(self) -> None:
        """A dropped final newline still produces a visible diff."""
        diff = unified_diff(b"a\n", b"a", "x.txt")
        assert "No newline at end of file" in diff

    def test_binary_content(self) -> None:
        """Undecodable content yields a one-line notice."""
        diff = unified_diff(b"\xff\xfe", b"\x00\x01", "logo.png")
        assert diff.startswith("Binary files")
