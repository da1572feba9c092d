"""Result containers and output formatting for scan runs.

Results flow through:
    IntegrityResult / DiscoveryResult / ScanResult
        -> RepoScanResult (one repository)
        -> RepoResult (one repository of an org scan, or its fetch error)
        -> OrgScanResult (whole org)
        -> format_json

Summaries are computed on demand from the collected results, never kept
as running counters.

Example:
-------
    >>> from repodrift.output import OrgScanResult, RepoResult, format_json
    >>> run = OrgScanResult(org="acme", config_repo="drift-config")
    >>> run.repos.append(RepoResult(repo="api", error="clone failed"))
    >>> print(run.summary.repos_skipped)
    1
    >>> print(format_json(run))

"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from repodrift._aggregate import has_issues, summarize_org, summarize_repo
from repodrift._types import DiscoveryResult, IntegrityResult, OrgSummary, RepoMetadata, RepoSummary, ScanResult
from repodrift.output.json_fmt import format_json, org_to_dict, repo_to_dict

__all__ = [
    "RepoScanResult",
    "RepoResult",
    "OrgScanResult",
    "format_json",
    "repo_to_dict",
    "org_to_dict",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Result containers ──────────────────────────────────────────────────────


@dataclass
class RepoScanResult:
    """Everything found in one repository.

    Attributes:
        path: Local path (local mode) or repository name (org mode).
        integrity: One IntegrityResult per protected rule.
        discovered: Discovery hits, protected or not.
        scans: One ScanResult per scan definition.
        metadata: The repository's tier/team metadata.
        timestamp: When the scan started (UTC).

    """

    path: str
    integrity: list[IntegrityResult] = field(default_factory=list)
    discovered: list[DiscoveryResult] = field(default_factory=list)
    scans: list[ScanResult] = field(default_factory=list)
    metadata: RepoMetadata = field(default_factory=RepoMetadata)
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def summary(self) -> RepoSummary:
        return summarize_repo(self.integrity, self.discovered, self.scans)

    @property
    def has_issues(self) -> bool:
        """True if anything drifted, is missing or failed."""
        return has_issues(self.summary)


@dataclass
class RepoResult:
    """One repository in an org scan: its results, or why it was skipped."""

    repo: str
    results: RepoScanResult | None = None
    error: str | None = None

    @property
    def has_issues(self) -> bool:
        return self.results is not None and self.results.has_issues


@dataclass
class OrgScanResult:
    """Aggregated results from scanning every repository in an org.

    Attributes:
        org: GitHub organization.
        config_repo: Repository holding drift.config.yaml and approved/.
        repos: Per-repository results, sorted by name once the run ends.
        timestamp: When the run started (UTC).

    """

    org: str
    config_repo: str
    repos: list[RepoResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def summary(self) -> OrgSummary:
        return summarize_org(self.repos)

    @property
    def has_issues(self) -> bool:
        """True if any scanned repository has issues."""
        return self.summary.repos_with_issues > 0
