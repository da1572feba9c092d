"""Pattern-based discovery of files worth protecting."""

from __future__ import annotations

import logging
from pathlib import Path

from repodrift._config import DiscoveryPattern
from repodrift._types import DiscoveryResult

logger = logging.getLogger(__name__)

IGNORED_DIRS = frozenset({".git"})


def _matches(repo_root: Path, pattern: str) -> list[str]:
    """Return sorted repository-relative POSIX paths of files matching pattern."""
    try:
        hits = repo_root.glob(pattern.lstrip("/"))
        found = {
            p.relative_to(repo_root).as_posix()
            for p in hits
            if p.is_file() and not IGNORED_DIRS.intersection(p.relative_to(repo_root).parts)
        }
    except (ValueError, NotImplementedError) as exc:
        logger.warning("Skipping invalid discovery pattern %r: %s", pattern, exc)
        return []
    return sorted(found)


def discover(
    pattern: DiscoveryPattern,
    repo_root: str | Path,
    protected_paths: frozenset[str],
) -> list[DiscoveryResult]:
    """Find files matching one discovery pattern.

    Each hit is flagged ``is_protected`` if the path already has a
    protected file rule. No matches yields an empty list.
    """
    return [
        DiscoveryResult(
            file=path,
            pattern=pattern.pattern,
            suggestion=pattern.suggestion,
            is_protected=path in protected_paths,
        )
        for path in _matches(Path(repo_root), pattern.pattern)
    ]


def discover_all(
    patterns: list[DiscoveryPattern],
    repo_root: str | Path,
    protected_paths: frozenset[str],
) -> list[DiscoveryResult]:
    """Run every discovery pattern, in config order."""
    results: list[DiscoveryResult] = []
    for pattern in patterns:
        results.extend(discover(pattern, repo_root, protected_paths))
    return results
