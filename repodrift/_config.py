"""Drift configuration loading and validation.

The config repository holds ``drift.config.yaml`` and an ``approved/``
directory with the canonical content of every protected file.

Example config:
-------
    integrity:
      protected:
        - path: .github/workflows/ci.yml
          severity: high
    discovery:
      - pattern: .github/workflows/*.yml
        suggestion: Consider protecting this workflow
    scans:
      - name: full-node-setup
        command: npm ci
        if: [package.json, tsconfig.json]
        tiers: [production]
        timeoutMs: 180000
    exclude:
      - rd-excluded-*

Scan conditions are normalized here into ``Always``, ``Single`` or ``All``
so the scheduler never inspects the raw YAML shape.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Union

import yaml

from repodrift._types import DRIFT, ERROR, MATCH, MISSING, RepoMetadata
from repodrift.exceptions import BaselineError, ConfigError, ConfigNotFoundError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("drift.config.yaml", "drift.config.yml")
METADATA_FILENAMES = ("repo-metadata.yaml", "repo-metadata.yml")
APPROVED_DIR = "approved"

SEVERITIES = ("critical", "high", "low")
DEFAULT_TIMEOUT_MS = 60_000

# Severity reported when a rule does not set one
DEFAULT_SEVERITY = {
    MISSING: "critical",
    ERROR: "critical",
    DRIFT: "low",
    MATCH: "low",
}


# ── Scan conditions ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Always:
    """Scan runs unconditionally."""


@dataclass(frozen=True)
class Single:
    """Scan runs only if one path exists."""

    path: str


@dataclass(frozen=True)
class All:
    """Scan runs only if every listed path exists."""

    paths: tuple[str, ...]


ScanCondition = Union[Always, Single, All]


# ── Data structures ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProtectedFileRule:
    """A file that must match its approved baseline."""

    path: str
    severity: str | None = None
    approved: str | None = None  # baseline path relative to approved/

    def severity_for(self, status: str) -> str:
        """Return the severity to report for an integrity status."""
        if self.severity:
            return self.severity
        return DEFAULT_SEVERITY.get(status, "low")


@dataclass(frozen=True)
class DiscoveryPattern:
    """Glob pattern for files worth reviewing."""

    pattern: str
    suggestion: str = ""


@dataclass(frozen=True)
class ScanDefinition:
    """A command to run against each repository."""

    name: str
    command: str
    condition: ScanCondition = field(default_factory=Always)
    tiers: tuple[str, ...] = ()
    timeout_ms: int = DEFAULT_TIMEOUT_MS


@dataclass
class DriftConfig:
    """Parsed drift.config.yaml.

    Attributes:
        protected: Protected file rules, in config order.
        discovery: Discovery patterns, in config order.
        scans: Scan definitions, in config order.
        exclude: Repository glob patterns skipped in org scans.
        base_dir: Directory holding the config file; approved/ lives here.

    """

    protected: list[ProtectedFileRule] = field(default_factory=list)
    discovery: list[DiscoveryPattern] = field(default_factory=list)
    scans: list[ScanDefinition] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    base_dir: Path = field(default_factory=Path)

    @property
    def approved_dir(self) -> Path:
        return self.base_dir / APPROVED_DIR

    @property
    def protected_paths(self) -> frozenset[str]:
        return frozenset(rule.path for rule in self.protected)

    def rule_for(self, path: str) -> ProtectedFileRule | None:
        """Look up a protected rule by its path."""
        wanted = _normalize_path(path)
        for rule in self.protected:
            if rule.path == wanted:
                return rule
        return None


# ── Loading ────────────────────────────────────────────────────────────────


def find_config(root: str | Path, override: str | Path | None = None) -> Path | None:
    """Locate the drift config for a local scan.

    An explicit override is returned as-is (load_config reports it if it
    does not exist). Otherwise the conventional file names are tried at
    the repository root.
    """
    if override:
        return Path(override)
    for name in CONFIG_FILENAMES:
        candidate = Path(root) / name
        if candidate.is_file():
            return candidate
    return None


def load_config(path: str | Path) -> DriftConfig:
    """Load and validate a drift config file.

    Args:
        path: Path to drift.config.yaml.

    Returns:
        DriftConfig with base_dir set to the file's directory.

    Raises:
        ConfigNotFoundError: If the file does not exist.
        ConfigError: If the YAML is malformed or fails validation.

    """
    p = Path(path)
    if not p.is_file():
        raise ConfigNotFoundError(f"Config file not found: {p}", path=str(p))

    try:
        data = yaml.safe_load(p.read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {p}", path=str(p), cause=exc) from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read {p}", path=str(p), cause=exc) from exc

    config = parse_config(data or {}, source=str(p))
    config.base_dir = p.resolve().parent
    logger.debug(
        "Loaded %s: %d protected, %d discovery, %d scans",
        p,
        len(config.protected),
        len(config.discovery),
        len(config.scans),
    )
    return config


def parse_config(data: Any, source: str = "<config>") -> DriftConfig:
    """Validate a decoded config mapping and build a DriftConfig."""
    if not isinstance(data, dict):
        raise ConfigError("Config must be a mapping", path=source)

    integrity = data.get("integrity") or {}
    if not isinstance(integrity, dict):
        raise ConfigError("'integrity' must be a mapping", path=source)

    config = DriftConfig(
        protected=[_parse_protected(e, source) for e in _as_list(integrity.get("protected"), "integrity.protected", source)],
        discovery=[_parse_discovery(e, source) for e in _as_list(data.get("discovery"), "discovery", source)],
        scans=[_parse_scan(e, source) for e in _as_list(data.get("scans"), "scans", source)],
        exclude=[str(p) for p in _as_list(data.get("exclude"), "exclude", source)],
    )

    seen_paths: set[str] = set()
    for rule in config.protected:
        if rule.path in seen_paths:
            raise ConfigError(f"Duplicate protected path: {rule.path}", path=source)
        seen_paths.add(rule.path)

    seen_names: set[str] = set()
    for scan in config.scans:
        if scan.name in seen_names:
            raise ConfigError(f"Duplicate scan name: {scan.name}", path=source)
        seen_names.add(scan.name)

    return config


def _as_list(value: Any, key: str, source: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list", path=source)
    return value


def _normalize_path(path: str) -> str:
    """Normalize a repository-relative path to POSIX form without ./ prefix."""
    return PurePosixPath(path.replace("\\", "/")).as_posix().lstrip("/")


def _parse_protected(entry: Any, source: str) -> ProtectedFileRule:
    if isinstance(entry, str):
        entry = {"path": entry}
    if not isinstance(entry, dict) or not entry.get("path"):
        raise ConfigError(f"Protected entry needs a 'path': {entry!r}", path=source)

    severity = entry.get("severity")
    if severity is not None:
        severity = str(severity).lower()
        if severity not in SEVERITIES:
            raise ConfigError(
                f"Invalid severity '{severity}' for {entry['path']} (valid: {', '.join(SEVERITIES)})",
                path=source,
            )

    approved = entry.get("approved")
    return ProtectedFileRule(
        path=_normalize_path(str(entry["path"])),
        severity=severity,
        approved=_normalize_path(str(approved)) if approved else None,
    )


def _parse_discovery(entry: Any, source: str) -> DiscoveryPattern:
    if isinstance(entry, str):
        entry = {"pattern": entry}
    if not isinstance(entry, dict) or not entry.get("pattern"):
        raise ConfigError(f"Discovery entry needs a 'pattern': {entry!r}", path=source)
    return DiscoveryPattern(pattern=str(entry["pattern"]), suggestion=str(entry.get("suggestion") or ""))


def _parse_scan(entry: Any, source: str) -> ScanDefinition:
    if not isinstance(entry, dict):
        raise ConfigError(f"Scan entry must be a mapping: {entry!r}", path=source)
    name = entry.get("name")
    command = entry.get("command")
    if not name or not command:
        raise ConfigError(f"Scan entry needs 'name' and 'command': {entry!r}", path=source)

    tiers = entry.get("tiers") or ()
    if isinstance(tiers, str):
        tiers = (tiers,)

    return ScanDefinition(
        name=str(name),
        command=str(command),
        condition=parse_condition(entry.get("if"), source=source),
        tiers=tuple(str(t) for t in tiers),
        timeout_ms=_parse_timeout(entry, source),
    )


def parse_condition(raw: Any, source: str = "<config>") -> ScanCondition:
    """Normalize a scan's ``if:`` value into a tagged condition."""
    if raw is None:
        return Always()
    if isinstance(raw, str):
        return Single(_normalize_path(raw))
    if isinstance(raw, list) and all(isinstance(p, str) for p in raw):
        if not raw:
            return Always()
        return All(tuple(_normalize_path(p) for p in raw))
    raise ConfigError(f"Scan condition must be a path or list of paths: {raw!r}", path=source)


def _parse_timeout(entry: dict, source: str) -> int:
    raw = entry.get("timeoutMs", entry.get("timeout"))
    if raw is None:
        return DEFAULT_TIMEOUT_MS
    if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
        raise ConfigError(f"Timeout for scan '{entry.get('name')}' must be a positive integer (ms)", path=source)
    return raw


# ── Baseline ───────────────────────────────────────────────────────────────


def baseline_candidates(config: DriftConfig, rule: ProtectedFileRule) -> list[Path]:
    """Paths under approved/ that may hold a rule's baseline, in priority order."""
    approved = config.approved_dir
    candidates = []
    if rule.approved:
        candidates.append(approved / rule.approved)
    candidates.append(approved / rule.path)
    candidates.append(approved / PurePosixPath(rule.path).name)
    return candidates


def load_baseline(config: DriftConfig) -> dict[str, bytes]:
    """Read the approved content for every protected rule.

    Rules without a baseline file are left out of the mapping; the
    integrity check reports them individually.

    Raises:
        BaselineError: If a baseline file exists but cannot be read.

    """
    baseline: dict[str, bytes] = {}
    for rule in config.protected:
        for candidate in baseline_candidates(config, rule):
            if not candidate.is_file():
                continue
            try:
                baseline[rule.path] = candidate.read_bytes()
            except OSError as exc:
                raise BaselineError(
                    f"Cannot read approved baseline {candidate}",
                    context={"rule": rule.path},
                    cause=exc,
                ) from exc
            break
        else:
            logger.warning("No approved baseline for %s under %s", rule.path, config.approved_dir)
    return baseline


# ── Repository metadata ────────────────────────────────────────────────────


def load_repo_metadata(repo_root: str | Path) -> RepoMetadata:
    """Read repo-metadata.yaml from a repository root.

    Missing or malformed metadata yields an empty RepoMetadata (no tier).
    """
    root = Path(repo_root)
    for name in METADATA_FILENAMES:
        path = root / name
        if not path.is_file():
            continue
        try:
            data = yaml.safe_load(path.read_text())
        except (yaml.YAMLError, OSError) as exc:
            logger.warning("Ignoring unreadable %s: %s", path, exc)
            return RepoMetadata()
        if not isinstance(data, dict):
            logger.warning("Ignoring %s: expected a mapping", path)
            return RepoMetadata()
        tier = data.get("tier")
        team = data.get("team")
        return RepoMetadata(
            tier=str(tier) if tier else None,
            team=str(team) if team else None,
        )
    return RepoMetadata()
