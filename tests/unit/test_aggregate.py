"""
Unit tests for repository and org summary reductions.
"""

import pytest

from repodrift._aggregate import has_issues, summarize_org, summarize_repo
from repodrift._types import DiscoveryResult, IntegrityResult, RepoSummary, ScanResult
from repodrift.output import RepoResult, RepoScanResult


def _integrity(*statuses: str) -> list[IntegrityResult]:
    return [IntegrityResult(file=f"f{i}", status=s, severity="low") for i, s in enumerate(statuses)]


def _scans(*statuses: str) -> list[ScanResult]:
    return [ScanResult(scan=f"s{i}", status=s, duration=0) for i, s in enumerate(statuses)]


def _repo(name: str, integrity=(), scans=()) -> RepoResult:
    return RepoResult(
        repo=name,
        results=RepoScanResult(path=name, integrity=_integrity(*integrity), scans=_scans(*scans)),
    )


@pytest.mark.unit
class TestSummarizeRepo:
    """Test summarize_repo()."""

    def test_counts_by_status(self) -> None:
        """Each status lands in its own counter."""
        summary = summarize_repo(
            _integrity("match", "match", "drift", "missing", "error"),
            [],
            _scans("pass", "fail", "error", "skip", "skip"),
        )
        assert summary.integrity_passed == 2
        assert summary.integrity_failed == 2
        assert summary.integrity_missing == 1
        assert summary.scans_passed == 1
        assert summary.scans_failed == 2
        assert summary.scans_skipped == 2

    def test_discovered_counts_unprotected_only(self) -> None:
        """Protected discovery hits are not counted."""
        discovered = [
            DiscoveryResult(file="a", pattern="*", suggestion="", is_protected=True),
            DiscoveryResult(file="b", pattern="*", suggestion="", is_protected=False),
            DiscoveryResult(file="c", pattern="*", suggestion="", is_protected=False),
        ]
        assert summarize_repo([], discovered, []).discovered_files == 2

    def test_empty(self) -> None:
        """No results means all-zero counts."""
        assert summarize_repo([], [], []) == RepoSummary()


@pytest.mark.unit
class TestHasIssues:
    """Test has_issues()."""

    def test_clean(self) -> None:
        """Matches, passes and skips are not issues."""
        assert not has_issues(RepoSummary(integrity_passed=3, scans_passed=1, scans_skipped=2))

    def test_drift(self) -> None:
        """Drift is an issue."""
        assert has_issues(RepoSummary(integrity_failed=1))

    def test_missing(self) -> None:
        """A missing file is an issue."""
        assert has_issues(RepoSummary(integrity_missing=1))

    def test_scan_failure(self) -> None:
        """A failed scan is an issue."""
        assert has_issues(RepoSummary(scans_failed=1))

    def test_discovered_only_is_not_an_issue(self) -> None:
        """Unprotected discoveries alone do not count."""
        assert not has_issues(RepoSummary(discovered_files=4))


@pytest.mark.unit
class TestSummarizeOrg:
    """Test summarize_org()."""

    def test_totals_and_issue_count(self) -> None:
        """Totals sum repository counts; reposWithIssues follows the issue rule."""
        repos = [
            _repo("clean", integrity=("match", "match"), scans=("pass",)),
            _repo("drifted", integrity=("drift", "match", "missing"), scans=("pass", "skip")),
            _repo("failing", integrity=("match",), scans=("fail",)),
        ]
        summary = summarize_org(repos)
        assert summary.repos_scanned == 3
        assert summary.repos_with_issues == 2
        assert summary.repos_skipped == 0
        assert summary.total_integrity_passed == 4
        assert summary.total_integrity_failed == 1
        assert summary.total_integrity_missing == 1
        assert summary.total_scans_passed == 2
        assert summary.total_scans_failed == 1

    def test_fetch_errors_are_skipped(self) -> None:
        """Repositories with an error count as skipped and nothing else."""
        repos = [
            _repo("clean", integrity=("match",)),
            RepoResult(repo="gone", error="Repository acme/gone not found"),
        ]
        summary = summarize_org(repos)
        assert summary.repos_scanned == 1
        assert summary.repos_skipped == 1
        assert summary.repos_with_issues == 0

    def test_order_independent(self) -> None:
        """The reduction does not depend on repository order."""
        repos = [_repo("a", integrity=("drift",)), _repo("b", scans=("pass",)), RepoResult(repo="c", error="x")]
        assert summarize_org(repos) == summarize_org(list(reversed(repos)))
