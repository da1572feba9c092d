"""Test helpers: sample file contents, fixture writers and a fake repository source."""

import shutil
from pathlib import Path
from threading import Lock

import yaml

from repodrift.exceptions import FetchError, TargetError

ORG = "acme"
CONFIG_REPO = "drift-config"

CI_YML = "name: CI\non: push\njobs:\n  build:\n    runs-on: ubuntu-latest\n"
PRETTIERRC = '{\n  "semi": true\n}\n'
RELEASE_YML = "name: Release\non:\n  push:\n    tags: ['v*']\n"

DEFAULT_CONFIG = {
    "integrity": {
        "protected": [
            {"path": ".github/workflows/ci.yml", "severity": "high"},
            {"path": ".prettierrc"},
            {"path": ".github/workflows/release.yml", "severity": "critical"},
        ]
    },
    "discovery": [
        {"pattern": ".github/workflows/*.yml", "suggestion": "Consider protecting this workflow"},
    ],
    "scans": [
        {"name": "quick-check", "command": "true", "timeoutMs": 5000},
        {"name": "full-node-setup", "command": "true", "if": ["package.json", "tsconfig.json"]},
        {"name": "security-audit", "command": "true", "tiers": ["production"]},
    ],
}

CLEAN_FILES = {
    ".github/workflows/ci.yml": CI_YML,
    ".github/workflows/release.yml": RELEASE_YML,
    ".prettierrc": PRETTIERRC,
}


def write_files(root: Path, files: dict) -> Path:
    """Write a {relative path: str | bytes} mapping under root."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content)
    return root


def write_config(config_dir: Path, data: dict, approved: dict | None = None) -> Path:
    """Write drift.config.yaml (and optionally approved/ files) and return the config path."""
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / "drift.config.yaml"
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    if approved:
        write_files(config_dir / "approved", approved)
    return path


class FakeSource:
    """Repository source backed by local directories."""

    def __init__(self, org: str, repos: dict[str, Path]):
        self.org = org
        self.repos = repos
        self.cloned: list[str] = []
        self._lock = Lock()

    def list_repos(self, org: str) -> list[str]:
        if org != self.org:
            raise TargetError(f"Organization {org} not found or not accessible")
        return list(self.repos)

    def clone(self, org: str, repo: str, dest) -> Path:
        if org != self.org or repo not in self.repos:
            raise FetchError(f"Repository {org}/{repo} not found or could not be cloned", repo=repo)
        shutil.copytree(self.repos[repo], dest)
        with self._lock:
            self.cloned.append(repo)
        return Path(dest)
