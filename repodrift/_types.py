"""Result data types for the drift engine."""

from __future__ import annotations

from dataclasses import dataclass

# Integrity statuses
MATCH = "match"
DRIFT = "drift"
MISSING = "missing"
ERROR = "error"

# Scan statuses (ERROR is shared)
PASS = "pass"
FAIL = "fail"
SKIP = "skip"


@dataclass(frozen=True)
class IntegrityResult:
    """Outcome of comparing one protected file against its baseline."""

    file: str
    status: str
    severity: str
    diff: str | None = None  # set only for drift
    error: str | None = None  # set only for error


@dataclass(frozen=True)
class DiscoveryResult:
    """A file matched by a discovery pattern."""

    file: str
    pattern: str
    suggestion: str
    is_protected: bool


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one scan on one repository."""

    scan: str
    status: str
    duration: int  # milliseconds, 0 when skipped
    exit_code: int | None = None
    skipped_reason: str | None = None
    detail: str = ""  # terminal output only, not part of the JSON schema


@dataclass(frozen=True)
class RepoMetadata:
    """Per-repository classification read from repo-metadata.yaml."""

    tier: str | None = None
    team: str | None = None


@dataclass(frozen=True)
class FixResult:
    """Outcome of restoring (or planning to restore) one protected file."""

    file: str
    status: str  # drift or missing, the state before the fix
    success: bool
    detail: str


@dataclass(frozen=True)
class RepoSummary:
    """Counts for one scanned repository."""

    integrity_passed: int = 0
    integrity_failed: int = 0  # drift and unreadable files
    integrity_missing: int = 0
    discovered_files: int = 0  # unprotected hits only
    scans_passed: int = 0
    scans_failed: int = 0  # fail and error
    scans_skipped: int = 0


@dataclass(frozen=True)
class OrgSummary:
    """Counts across every repository in an org scan."""

    repos_scanned: int = 0
    repos_with_issues: int = 0
    repos_skipped: int = 0
    total_integrity_passed: int = 0
    total_integrity_failed: int = 0
    total_integrity_missing: int = 0
    total_scans_passed: int = 0
    total_scans_failed: int = 0
