"""
Common utilities shared across install_rspack modules.
"""

from __future__ import annotations

import os
import sys


CI_INDICATORS = (
    "CI",
    "CONTINUOUS_INTEGRATION",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "CIRCLECI",
    "TRAVIS",
    "JENKINS_HOME",
    "BUILDKITE",
    "DRONE",
    "SEMAPHORE",
    "APPVEYOR",
    "CODEBUILD_BUILD_ID",
    "TF_BUILD",  # Azure Pipelines
)


class InstallRspackError(Exception):
    """
    Base exception for fatal run errors.

    Attributes:
        message: Human-readable error message
        remediation: Suggested fix for the error
    """
    def __init__(self, message: str, remediation: str | None = None):
        self.message = message
        self.remediation = remediation
        super().__init__(message)


def is_ci_environment() -> bool:
    """
    Check if running in a CI/CD environment.

    Returns:
        True if CI indicators are present, False otherwise.
    """
    return any(os.environ.get(var) for var in CI_INDICATORS)


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log verbose message using structured logging.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or os.environ.get("INSTALL_RSPACK_DEBUG", "0") == "1":
        try:
            from .logging_config import get_logger
            get_logger().debug(msg)
        except Exception:
            print(f"[install_rspack] {msg}", file=sys.stderr)
