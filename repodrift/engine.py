"""Drift engine facade: scan one repository, scan an org, fix a repository.

Example:
-------
    Local scan::

        from repodrift.engine import scan_repo
        from repodrift._config import load_config

        config = load_config("drift.config.yaml")
        result = scan_repo(config, ".")
        print(result.summary)

    Org scan::

        import tempfile

        from repodrift.engine import load_org_config, scan_org
        from repodrift.github import GitHubCLI

        gh = GitHubCLI()
        with tempfile.TemporaryDirectory() as tmp:
            config = load_org_config(gh, "acme", "drift-config", tmp)
            run = scan_org(gh, "acme", config, config_repo="drift-config", workers=8)

"""

from __future__ import annotations

import logging
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

from repodrift._config import DriftConfig, find_config, load_baseline, load_config, load_repo_metadata
from repodrift._discovery import discover_all
from repodrift._fix import apply_fixes, plan_fixes, select_rules
from repodrift._integrity import check_all
from repodrift._scans import run_scans
from repodrift._types import FixResult
from repodrift.exceptions import ConfigNotFoundError, FetchError, TargetError
from repodrift.inventory import select_repos
from repodrift.output import OrgScanResult, RepoResult, RepoScanResult

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4


def _require_dir(repo_root: str | Path) -> Path:
    root = Path(repo_root)
    if not root.is_dir():
        raise TargetError(f"Path not found: {root}", context={"path": str(root)})
    return root


def scan_repo(
    config: DriftConfig,
    repo_root: str | Path,
    baseline: dict[str, bytes] | None = None,
    *,
    label: str | None = None,
) -> RepoScanResult:
    """Run integrity, discovery and scans against one repository.

    Args:
        config: Loaded drift config.
        repo_root: Repository checkout to scan.
        baseline: Approved content; loaded from the config if None.
        label: Name reported as ``path``; defaults to repo_root.

    Raises:
        TargetError: If repo_root is not a directory.

    """
    root = _require_dir(repo_root)
    if baseline is None:
        baseline = load_baseline(config)

    started = datetime.now(timezone.utc)
    metadata = load_repo_metadata(root)
    logger.debug("Scanning %s (tier=%s, team=%s)", root, metadata.tier, metadata.team)

    return RepoScanResult(
        path=label or str(repo_root),
        integrity=check_all(config.protected, root, baseline),
        discovered=discover_all(config.discovery, root, config.protected_paths),
        scans=run_scans(config.scans, root, metadata),
        metadata=metadata,
        timestamp=started,
    )


def load_org_config(source, org: str, config_repo: str, dest: str | Path) -> DriftConfig:
    """Clone the config repository into dest and load its drift config.

    Raises:
        ConfigNotFoundError: If the config repository or its config file is missing.

    """
    checkout = Path(dest) / config_repo
    try:
        source.clone(org, config_repo, checkout)
    except FetchError as exc:
        raise ConfigNotFoundError(
            f"Config repository {org}/{config_repo} not found",
            context={"org": org, "config_repo": config_repo},
            cause=exc,
        ) from exc

    path = find_config(checkout)
    if path is None:
        raise ConfigNotFoundError(f"drift.config.yaml not found in {org}/{config_repo}")
    return load_config(path)


def _scan_remote(
    source,
    org: str,
    repo: str,
    config: DriftConfig,
    baseline: dict[str, bytes],
) -> RepoResult:
    """Clone one repository into a private temp dir and scan it."""
    if "/" in repo or repo in (".", ".."):
        logger.warning("Skipping invalid repository name %r", repo)
        return RepoResult(repo=repo, error=f"Invalid repository name {repo} (expected a name within {org})")

    with tempfile.TemporaryDirectory(prefix="drift-repo-") as tmp:
        checkout = Path(tmp) / "checkout"
        try:
            source.clone(org, repo, checkout)
        except FetchError as exc:
            logger.warning("Skipping %s: %s", repo, exc.message)
            return RepoResult(repo=repo, error=exc.message)

        try:
            results = scan_repo(config, checkout, baseline, label=repo)
        except Exception as exc:
            logger.exception("Scan of %s failed", repo)
            return RepoResult(repo=repo, error=f"Scan failed: {exc}")
    return RepoResult(repo=repo, results=results)


def scan_org(
    source,
    org: str,
    config: DriftConfig,
    *,
    config_repo: str,
    only: str | None = None,
    exclude: Iterable[str] = (),
    workers: int = DEFAULT_WORKERS,
    baseline: dict[str, bytes] | None = None,
    on_result: Callable[[RepoResult], None] | None = None,
) -> OrgScanResult:
    """Scan every selected repository of an org in parallel.

    Each repository is cloned and scanned by its own worker. Per-repository
    fetch failures are recorded on that RepoResult; only listing the org
    itself can fail the whole run.

    Args:
        source: Repository source with ``list_repos`` and ``clone``.
        org: Organization name.
        config: Config loaded from the config repository.
        config_repo: Name of the config repository (never scanned).
        only: Scan just this repository, bypassing excludes.
        exclude: Extra exclude globs on top of the config's.
        workers: Maximum repositories scanned at once.
        baseline: Approved content; loaded from the config if None.
        on_result: Called with each RepoResult as it completes.

    Returns:
        OrgScanResult with repos sorted by name.

    """
    started = datetime.now(timezone.utc)
    if baseline is None:
        baseline = load_baseline(config)

    all_repos = [] if only else source.list_repos(org)
    names = select_repos(all_repos, [*config.exclude, *exclude], config_repo, only)
    logger.debug("Scanning %d repositories in %s", len(names), org)

    collected: list[RepoResult] = []
    if names:
        with ThreadPoolExecutor(max_workers=min(workers, len(names))) as pool:
            futures = {pool.submit(_scan_remote, source, org, name, config, baseline): name for name in names}
            for future in as_completed(futures):
                result = future.result()
                collected.append(result)
                if on_result is not None:
                    on_result(result)

    return OrgScanResult(
        org=org,
        config_repo=config_repo,
        repos=sorted(collected, key=lambda r: r.repo),
        timestamp=started,
    )


def fix_repo(
    config: DriftConfig,
    repo_root: str | Path,
    baseline: dict[str, bytes] | None = None,
    *,
    file_filter: str | None = None,
    dry_run: bool = False,
) -> list[FixResult]:
    """Restore drifted and missing protected files from the baseline.

    Args:
        config: Loaded drift config.
        repo_root: Repository checkout to fix.
        baseline: Approved content; loaded from the config if None.
        file_filter: Only fix this protected path.
        dry_run: Report what would change without writing.

    Returns:
        One FixResult per file that was (or would be) rewritten. Empty
        when everything already matches.

    Raises:
        TargetError: If repo_root is not a directory.

    """
    root = _require_dir(repo_root)
    if baseline is None:
        baseline = load_baseline(config)
    plan = plan_fixes(select_rules(config, file_filter), root, baseline)
    return apply_fixes(plan, root, baseline, dry_run=dry_run)
