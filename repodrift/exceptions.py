"""
Drift Exceptions

This module defines the exception hierarchy for invocation-level failures.
Problems scoped to a single file, scan or repository are recorded in the
result objects instead and never raised.

Exception Hierarchy:
    DriftError (base)
    ├── ConfigError (invalid drift.config.yaml)
    │   └── ConfigNotFoundError (config file or config repo missing)
    ├── BaselineError (approved/ directory unusable)
    ├── TargetError (nonexistent org or path, bad flag combination)
    └── FetchError (listing or cloning repositories failed)

Design Principles:
- All exceptions carry a machine-readable error code
- Context dicts hold the values needed to reproduce the failure
- Only cli.py turns these into exit codes
"""

from typing import Any, Dict, Optional


class DriftError(Exception):
    """
    Base exception for all drift operations.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error identifier
        context: Additional context for debugging
        cause: Original exception if wrapping another error

    Usage:
        try:
            config = load_config(path)
        except DriftError as e:
            logger.error("Drift error %s: %s", e.error_code, e.message)
    """

    def __init__(
        self,
        message: str,
        error_code: str = "DRIFT_ERROR",
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON serialization.

        Returns:
            Dictionary with error code, message, context and cause.
        """
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        """Format exception for logging."""
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            parts.append(f" (context: {self.context})")
        if self.cause:
            parts.append(f" (caused by: {self.cause})")
        return "".join(parts)


class ConfigError(DriftError):
    """
    Raised when drift.config.yaml cannot be parsed or fails validation.

    Attributes:
        path: Config file being loaded, if known
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        error_code: str = "CONFIG_ERROR",
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        ctx = context or {}
        if path:
            ctx["path"] = path
        super().__init__(message, error_code, ctx, cause)
        self.path = path


class ConfigNotFoundError(ConfigError):
    """Raised when the config file, or the config repository holding it, does not exist."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, path, "CONFIG_NOT_FOUND", context, cause)


class BaselineError(DriftError):
    """Raised when the approved baseline directory cannot be read."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, "BASELINE_ERROR", context, cause)


class TargetError(DriftError):
    """
    Raised when the scan target cannot be resolved.

    Covers a nonexistent organization or local path and flag combinations
    that do not describe a target (e.g. --repo without --org).
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, "TARGET_ERROR", context, cause)


class FetchError(DriftError):
    """
    Raised when listing or cloning a repository fails.

    Attributes:
        repo: Repository being fetched, if any
    """

    def __init__(
        self,
        message: str,
        repo: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        ctx = context or {}
        if repo:
            ctx["repo"] = repo
        super().__init__(message, "FETCH_ERROR", ctx, cause)
        self.repo = repo
