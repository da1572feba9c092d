"""
Shared test fixtures.

Builds throwaway config repositories and target repositories under
tmp_path. Nothing here touches the network.
"""

from pathlib import Path

import pytest

from repodrift._config import DriftConfig, load_baseline, load_config
from tests.helpers import CI_YML, CLEAN_FILES, CONFIG_REPO, DEFAULT_CONFIG, PRETTIERRC, RELEASE_YML, write_config, write_files


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """A config repository with the default rules and approved baseline."""
    root = tmp_path / CONFIG_REPO
    write_config(
        root,
        DEFAULT_CONFIG,
        approved={"ci.yml": CI_YML, ".prettierrc": PRETTIERRC, "release.yml": RELEASE_YML},
    )
    return root


@pytest.fixture
def config_path(config_dir: Path) -> Path:
    return config_dir / "drift.config.yaml"


@pytest.fixture
def drift_config(config_path: Path) -> DriftConfig:
    return load_config(config_path)


@pytest.fixture
def baseline(drift_config: DriftConfig) -> dict[str, bytes]:
    return load_baseline(drift_config)


@pytest.fixture
def make_repo(tmp_path: Path):
    """Factory: make_repo(name, files) creates a repository under tmp_path/repos."""

    def _make(name: str = "repo", files: dict | None = None) -> Path:
        return write_files(tmp_path / "repos" / name, dict(CLEAN_FILES if files is None else files))

    return _make


@pytest.fixture
def clean_repo(make_repo) -> Path:
    return make_repo("clean")


@pytest.fixture
def drifted_repo(make_repo) -> Path:
    """ci.yml edited, .prettierrc intact, release.yml missing."""
    return make_repo(
        "drifted",
        {
            ".github/workflows/ci.yml": CI_YML.replace("ubuntu-latest", "ubuntu-22.04"),
            ".prettierrc": PRETTIERRC,
        },
    )
