"""
repodrift - configuration drift detection for repositories

Checks that protected files in one repository, or in every repository of a
GitHub organization, match the approved baseline kept in a config
repository. It also runs conditional health scans and can restore drifted
files to the baseline.

Usage:
    from repodrift import load_config, scan_repo

    config = load_config("drift-config/drift.config.yaml")
    result = scan_repo(config, "path/to/repo")
    for item in result.integrity:
        print(f"{item.file}: {item.status}")

Version: 0.1.0
"""

__version__ = "0.1.0"

from repodrift._config import DriftConfig, load_config
from repodrift._types import DiscoveryResult, FixResult, IntegrityResult, RepoMetadata, ScanResult
from repodrift.engine import fix_repo, scan_org, scan_repo
from repodrift.exceptions import DriftError

__all__ = [
    "__version__",
    # Configuration
    "DriftConfig",
    "load_config",
    # Engine
    "scan_repo",
    "scan_org",
    "fix_repo",
    # Types
    "IntegrityResult",
    "DiscoveryResult",
    "ScanResult",
    "FixResult",
    "RepoMetadata",
    # Errors
    "DriftError",
]
