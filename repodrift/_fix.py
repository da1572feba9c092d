"""Fix engine: restore drifted and missing protected files.

The set of files to touch comes from the integrity checker, so ``fix``
and ``scan`` always agree on what is out of date.
"""

from __future__ import annotations

import logging
from pathlib import Path

from repodrift._config import DriftConfig, ProtectedFileRule
from repodrift._integrity import check_integrity
from repodrift._types import DRIFT, MISSING, FixResult, IntegrityResult

logger = logging.getLogger(__name__)

FIXABLE = (DRIFT, MISSING)


def select_rules(config: DriftConfig, file_filter: str | None = None) -> list[ProtectedFileRule]:
    """Return the rules a fix applies to.

    With a filter, at most the one rule whose path matches; an empty list
    if the filter names no protected file.
    """
    if not file_filter:
        return list(config.protected)
    rule = config.rule_for(file_filter)
    return [rule] if rule else []


def plan_fixes(
    rules: list[ProtectedFileRule],
    repo_root: str | Path,
    baseline: dict[str, bytes],
) -> list[IntegrityResult]:
    """Integrity results for every rule that needs rewriting."""
    plan = []
    for rule in rules:
        result = check_integrity(rule, repo_root, baseline.get(rule.path))
        if result.status in FIXABLE:
            plan.append(result)
    return plan


def _restore_file(target: Path, content: bytes, *, dry_run: bool, status: str, path: str) -> tuple[bool, str]:
    """Write baseline content to one file.

    Returns:
        Tuple of (success, detail).

    """
    verb = "create" if status == MISSING else "fix"
    if dry_run:
        return True, f"Would {verb} {path} ({status})"

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except OSError as exc:
        return False, f"Failed to write {path}: {exc.strerror or exc}"
    return True, f"Created {path}" if status == MISSING else f"Restored {path}"


def apply_fixes(
    plan: list[IntegrityResult],
    repo_root: str | Path,
    baseline: dict[str, bytes],
    *,
    dry_run: bool = False,
) -> list[FixResult]:
    """Rewrite each planned file with its baseline content."""
    root = Path(repo_root)
    results = []
    for item in plan:
        success, detail = _restore_file(
            root / item.file,
            baseline[item.file],
            dry_run=dry_run,
            status=item.status,
            path=item.file,
        )
        if success:
            logger.debug("%s", detail)
        else:
            logger.warning("%s", detail)
        results.append(FixResult(file=item.file, status=item.status, success=success, detail=detail))
    return results
