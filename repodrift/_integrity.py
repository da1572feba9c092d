"""Protected file comparison against the approved baseline."""

from __future__ import annotations

import difflib
import logging
from pathlib import Path

from repodrift._config import ProtectedFileRule
from repodrift._types import DRIFT, ERROR, MATCH, MISSING, IntegrityResult

logger = logging.getLogger(__name__)


def unified_diff(approved: bytes, actual: bytes, path: str) -> str:
    """Render a unified diff of baseline vs. actual content.

    Never returns an empty string for differing inputs: undecodable
    content and whitespace-only differences the line diff cannot show
    still produce a one-line notice.
    """
    try:
        old = approved.decode("utf-8")
        new = actual.decode("utf-8")
    except UnicodeDecodeError:
        return f"Binary files approved/{path} and {path} differ\n"

    lines = difflib.unified_diff(
        old.splitlines(keepends=True),
        new.splitlines(keepends=True),
        fromfile=f"approved/{path}",
        tofile=path,
    )
    text = "".join(line if line.endswith("\n") else line + "\n\\ No newline at end of file\n" for line in lines)
    return text or f"Files approved/{path} and {path} differ\n"


def check_integrity(
    rule: ProtectedFileRule,
    repo_root: str | Path,
    approved: bytes | None,
) -> IntegrityResult:
    """Compare one protected file in a repository against its baseline.

    Args:
        rule: The protected file rule.
        repo_root: Root of the repository being scanned.
        approved: Baseline content, or None if the config repository has none.

    Returns:
        Exactly one IntegrityResult for the rule.

    """
    target = Path(repo_root) / rule.path

    if approved is None:
        return IntegrityResult(
            file=rule.path,
            status=ERROR,
            severity=rule.severity_for(ERROR),
            error=f"No approved baseline for {rule.path}",
        )

    if not target.exists() and not target.is_symlink():
        return IntegrityResult(file=rule.path, status=MISSING, severity=rule.severity_for(MISSING))

    try:
        actual = target.read_bytes()
    except OSError as exc:
        logger.warning("Cannot read %s: %s", target, exc)
        return IntegrityResult(
            file=rule.path,
            status=ERROR,
            severity=rule.severity_for(ERROR),
            error=exc.strerror or str(exc),
        )

    if actual == approved:
        return IntegrityResult(file=rule.path, status=MATCH, severity=rule.severity_for(MATCH))

    return IntegrityResult(
        file=rule.path,
        status=DRIFT,
        severity=rule.severity_for(DRIFT),
        diff=unified_diff(approved, actual, rule.path),
    )


def check_all(
    rules: list[ProtectedFileRule],
    repo_root: str | Path,
    baseline: dict[str, bytes],
) -> list[IntegrityResult]:
    """Check every protected rule, one result per rule in rule order."""
    return [check_integrity(rule, repo_root, baseline.get(rule.path)) for rule in rules]
