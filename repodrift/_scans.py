"""Scan scheduling: condition gates, tier gates and timed execution.

Each scan ends in exactly one of four states:

    skip   condition or tier gate not met (duration 0)
    pass   command exited 0
    fail   command exited non-zero
    error  command not found, could not be started, or timed out

Scans in one repository run sequentially, in config order.
"""

from __future__ import annotations

import logging
from pathlib import Path

from repodrift._config import All, ScanCondition, ScanDefinition, Single
from repodrift._types import ERROR, FAIL, PASS, SKIP, RepoMetadata, ScanResult
from repodrift.shell import run_command

logger = logging.getLogger(__name__)

# Shell exit codes for "found but not executable" and "not found"
SHELL_NOT_EXECUTABLE = 126
SHELL_NOT_FOUND = 127


def evaluate_condition(condition: ScanCondition, repo_root: str | Path) -> list[str]:
    """Return the condition paths missing from the repository.

    An empty list means the condition holds.
    """
    root = Path(repo_root)
    if isinstance(condition, Single):
        paths: tuple[str, ...] = (condition.path,)
    elif isinstance(condition, All):
        paths = condition.paths
    else:
        return []
    return [p for p in paths if not (root / p).exists()]


def check_tier(scan: ScanDefinition, metadata: RepoMetadata) -> str | None:
    """Return a skip reason if the repository tier is not allowed, else None."""
    if not scan.tiers:
        return None
    if metadata.tier and metadata.tier in scan.tiers:
        return None
    required = " or ".join(scan.tiers)
    if not metadata.tier:
        return f"requires tier {required} (repository has no tier)"
    return f"requires tier {required} (repository tier is {metadata.tier})"


def run_scan(scan: ScanDefinition, repo_root: str | Path, metadata: RepoMetadata) -> ScanResult:
    """Gate and execute one scan against a repository."""
    missing = evaluate_condition(scan.condition, repo_root)
    if missing:
        reason = f"missing required file(s): {', '.join(missing)}"
        logger.debug("Skipping %s: %s", scan.name, reason)
        return ScanResult(scan=scan.name, status=SKIP, duration=0, skipped_reason=reason)

    tier_reason = check_tier(scan, metadata)
    if tier_reason:
        logger.debug("Skipping %s: %s", scan.name, tier_reason)
        return ScanResult(scan=scan.name, status=SKIP, duration=0, skipped_reason=tier_reason)

    logger.debug("Running scan %s (timeout %dms): %s", scan.name, scan.timeout_ms, scan.command)
    result = run_command(scan.command, cwd=repo_root, timeout_ms=scan.timeout_ms)

    if result.launch_error is not None:
        return ScanResult(scan=scan.name, status=ERROR, duration=result.duration_ms, detail=result.launch_error)

    if result.timed_out:
        return ScanResult(
            scan=scan.name,
            status=ERROR,
            duration=result.duration_ms,
            detail=f"timed out after {scan.timeout_ms}ms",
        )

    if result.exit_code == 0:
        return ScanResult(scan=scan.name, status=PASS, duration=result.duration_ms, exit_code=0)

    if result.exit_code in (SHELL_NOT_EXECUTABLE, SHELL_NOT_FOUND):
        return ScanResult(
            scan=scan.name,
            status=ERROR,
            duration=result.duration_ms,
            exit_code=result.exit_code,
            detail=_last_line(result.stderr) or "command not found",
        )

    return ScanResult(
        scan=scan.name,
        status=FAIL,
        duration=result.duration_ms,
        exit_code=result.exit_code,
        detail=_last_line(result.stderr) or _last_line(result.stdout),
    )


def run_scans(scans: list[ScanDefinition], repo_root: str | Path, metadata: RepoMetadata) -> list[ScanResult]:
    """Run every scan sequentially, one result per scan in config order."""
    return [run_scan(scan, repo_root, metadata) for scan in scans]


def _last_line(text: str) -> str:
    lines = [line for line in text.strip().splitlines() if line.strip()]
    return lines[-1].strip() if lines else ""
