"""Target repository resolution for org scans."""

from __future__ import annotations

import fnmatch
from typing import Iterable

# Never scanned, whatever the config says
BUILTIN_EXCLUDES = ("drift-config",)


def is_excluded(repo: str, patterns: Iterable[str]) -> bool:
    """Check whether a repository name matches any exclude glob."""
    return any(fnmatch.fnmatchcase(repo, p) for p in patterns)


def select_repos(
    all_repos: Iterable[str],
    exclude_patterns: Iterable[str],
    config_repo: str,
    only: str | None = None,
) -> list[str]:
    """Reduce an org's repository list to the ones to scan.

    The config repository is always dropped. An explicit ``only`` repo
    bypasses the exclude patterns and need not be in ``all_repos``;
    fetching it will report whether it exists.

    Returns:
        Sorted, de-duplicated repository names.

    """
    if only:
        return [] if only == config_repo else [only]

    patterns = list(BUILTIN_EXCLUDES) + list(exclude_patterns)
    return sorted({r for r in all_repos if r and r != config_repo and not is_excluded(r, patterns)})
