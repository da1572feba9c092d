"""Repository source backed by the GitHub ``gh`` CLI.

Authentication is whatever ``gh`` is already logged in with (or
``GH_TOKEN`` in the environment). Every call is bounded by a timeout
and killed when it expires.

The engine only needs an object with ``list_repos(org)`` and
``clone(org, repo, dest)``; tests pass a local fake with the same two
methods.
"""

from __future__ import annotations

import logging
from pathlib import Path

from repodrift.exceptions import FetchError, TargetError
from repodrift.shell import run_command

logger = logging.getLogger(__name__)

DEFAULT_LIST_TIMEOUT_MS = 60_000
DEFAULT_CLONE_TIMEOUT_MS = 300_000
DEFAULT_REPO_LIMIT = 1000


class GitHubCLI:
    """List and shallow-clone organization repositories through ``gh``."""

    def __init__(
        self,
        *,
        gh_path: str = "gh",
        list_timeout_ms: int = DEFAULT_LIST_TIMEOUT_MS,
        clone_timeout_ms: int = DEFAULT_CLONE_TIMEOUT_MS,
        repo_limit: int = DEFAULT_REPO_LIMIT,
    ):
        self.gh_path = gh_path
        self.list_timeout_ms = list_timeout_ms
        self.clone_timeout_ms = clone_timeout_ms
        self.repo_limit = repo_limit

    def list_repos(self, org: str) -> list[str]:
        """Return the names of every repository in an organization.

        Raises:
            FetchError: If ``gh`` cannot be run or times out.
            TargetError: If the organization does not exist or is not visible.

        """
        cmd = [
            self.gh_path,
            "repo",
            "list",
            org,
            "--limit",
            str(self.repo_limit),
            "--json",
            "name",
            "--jq",
            ".[].name",
        ]
        result = run_command(cmd, timeout_ms=self.list_timeout_ms)
        if result.launch_error is not None:
            raise FetchError(f"Cannot run {self.gh_path}: {result.launch_error}")
        if result.timed_out:
            raise FetchError(f"Listing repositories for {org} timed out after {self.list_timeout_ms}ms")
        if not result.ok:
            raise TargetError(
                f"Organization {org} not found or not accessible",
                context={"org": org, "stderr": result.stderr.strip()},
            )
        repos = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        logger.debug("Found %d repositories in %s", len(repos), org)
        return repos

    def clone(self, org: str, repo: str, dest: str | Path) -> Path:
        """Shallow-clone ``org/repo`` into dest.

        Raises:
            FetchError: If the clone fails or times out.

        """
        cmd = [self.gh_path, "repo", "clone", f"{org}/{repo}", str(dest), "--", "--depth", "1"]
        result = run_command(cmd, timeout_ms=self.clone_timeout_ms)
        if result.launch_error is not None:
            raise FetchError(f"Cannot run {self.gh_path}: {result.launch_error}", repo=repo)
        if result.timed_out:
            raise FetchError(f"Cloning {org}/{repo} timed out after {self.clone_timeout_ms}ms", repo=repo)
        if not result.ok:
            stderr = result.stderr.strip().splitlines()
            detail = stderr[-1] if stderr else f"exit code {result.exit_code}"
            raise FetchError(f"Repository {org}/{repo} not found or could not be cloned: {detail}", repo=repo)
        logger.debug("Cloned %s/%s into %s", org, repo, dest)
        return Path(dest)
