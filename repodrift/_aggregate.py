"""Summary reductions over per-repository results.

All functions here are pure. They run once, after every repository
worker has finished, over the collected results.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from repodrift._types import (
    DRIFT,
    ERROR,
    FAIL,
    MATCH,
    MISSING,
    PASS,
    SKIP,
    DiscoveryResult,
    IntegrityResult,
    OrgSummary,
    RepoSummary,
    ScanResult,
)

if TYPE_CHECKING:
    from repodrift.output import RepoResult


def summarize_repo(
    integrity: Iterable[IntegrityResult],
    discovered: Iterable[DiscoveryResult],
    scans: Iterable[ScanResult],
) -> RepoSummary:
    """Count integrity, discovery and scan outcomes for one repository."""
    integrity = list(integrity)
    scans = list(scans)
    return RepoSummary(
        integrity_passed=sum(1 for r in integrity if r.status == MATCH),
        integrity_failed=sum(1 for r in integrity if r.status in (DRIFT, ERROR)),
        integrity_missing=sum(1 for r in integrity if r.status == MISSING),
        discovered_files=sum(1 for d in discovered if not d.is_protected),
        scans_passed=sum(1 for s in scans if s.status == PASS),
        scans_failed=sum(1 for s in scans if s.status in (FAIL, ERROR)),
        scans_skipped=sum(1 for s in scans if s.status == SKIP),
    )


def has_issues(summary: RepoSummary) -> bool:
    """True if a repository has drift, missing files or failed scans."""
    return summary.integrity_failed > 0 or summary.integrity_missing > 0 or summary.scans_failed > 0


def summarize_org(repos: Iterable[RepoResult]) -> OrgSummary:
    """Roll repository summaries up into org totals.

    Repositories that could not be fetched count as skipped and add
    nothing to the totals.
    """
    summaries = []
    skipped = 0
    for repo in repos:
        if repo.error is not None or repo.results is None:
            skipped += 1
            continue
        summaries.append(repo.results.summary)

    return OrgSummary(
        repos_scanned=len(summaries),
        repos_with_issues=sum(1 for s in summaries if has_issues(s)),
        repos_skipped=skipped,
        total_integrity_passed=sum(s.integrity_passed for s in summaries),
        total_integrity_failed=sum(s.integrity_failed for s in summaries),
        total_integrity_missing=sum(s.integrity_missing for s in summaries),
        total_scans_passed=sum(s.scans_passed for s in summaries),
        total_scans_failed=sum(s.scans_failed for s in summaries),
    )
