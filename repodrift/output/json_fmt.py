"""JSON output formatter for drift results.

The field names below are consumed by downstream automation and must
keep their shape.

Single repository:
    {
        "path": str,
        "timestamp": "ISO-8601 datetime",
        "integrity": [{file, status, severity, diff?, error?}],
        "discovered": [{file, pattern, suggestion, isProtected}],
        "scans": [{scan, status, exitCode?, duration, skippedReason?}],
        "summary": {integrityPassed, integrityFailed, integrityMissing,
                    discoveredFiles, scansPassed, scansFailed, scansSkipped}
    }

Organization:
    {
        "org": str,
        "configRepo": str,
        "timestamp": "ISO-8601 datetime",
        "repos": [{repo, results} | {repo, error}],
        "summary": {reposScanned, reposWithIssues, reposSkipped,
                    totalIntegrityPassed, totalIntegrityFailed,
                    totalIntegrityMissing, totalScansPassed, totalScansFailed}
    }

Optional keys are omitted rather than set to null.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from repodrift.output import OrgScanResult, RepoScanResult


def repo_to_dict(result: RepoScanResult) -> dict[str, Any]:
    """Build the single-repository JSON document."""
    summary = result.summary
    integrity = []
    for item in result.integrity:
        entry: dict[str, Any] = {
            "file": item.file,
            "status": item.status,
            "severity": item.severity,
        }
        if item.diff is not None:
            entry["diff"] = item.diff
        if item.error is not None:
            entry["error"] = item.error
        integrity.append(entry)

    scans = []
    for scan in result.scans:
        entry = {"scan": scan.scan, "status": scan.status}
        if scan.exit_code is not None:
            entry["exitCode"] = scan.exit_code
        entry["duration"] = scan.duration
        if scan.skipped_reason is not None:
            entry["skippedReason"] = scan.skipped_reason
        scans.append(entry)

    return {
        "path": result.path,
        "timestamp": result.timestamp.isoformat(),
        "integrity": integrity,
        "discovered": [
            {
                "file": d.file,
                "pattern": d.pattern,
                "suggestion": d.suggestion,
                "isProtected": d.is_protected,
            }
            for d in result.discovered
        ],
        "scans": scans,
        "summary": {
            "integrityPassed": summary.integrity_passed,
            "integrityFailed": summary.integrity_failed,
            "integrityMissing": summary.integrity_missing,
            "discoveredFiles": summary.discovered_files,
            "scansPassed": summary.scans_passed,
            "scansFailed": summary.scans_failed,
            "scansSkipped": summary.scans_skipped,
        },
    }


def org_to_dict(run: OrgScanResult) -> dict[str, Any]:
    """Build the organization JSON document."""
    summary = run.summary
    repos = []
    for repo in run.repos:
        if repo.error is not None or repo.results is None:
            repos.append({"repo": repo.repo, "error": repo.error or "unknown error"})
        else:
            repos.append({"repo": repo.repo, "results": repo_to_dict(repo.results)})

    return {
        "org": run.org,
        "configRepo": run.config_repo,
        "timestamp": run.timestamp.isoformat(),
        "repos": repos,
        "summary": {
            "reposScanned": summary.repos_scanned,
            "reposWithIssues": summary.repos_with_issues,
            "reposSkipped": summary.repos_skipped,
            "totalIntegrityPassed": summary.total_integrity_passed,
            "totalIntegrityFailed": summary.total_integrity_failed,
            "totalIntegrityMissing": summary.total_integrity_missing,
            "totalScansPassed": summary.total_scans_passed,
            "totalScansFailed": summary.total_scans_failed,
        },
    }


def format_json(result: OrgScanResult | RepoScanResult) -> str:
    """Format a repository or org result as pretty-printed JSON (2-space indent)."""
    if hasattr(result, "repos"):
        data = org_to_dict(result)
    else:
        data = repo_to_dict(result)
    return json.dumps(data, indent=2)
