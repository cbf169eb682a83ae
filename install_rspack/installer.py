"""
Dependency installation and working-tree checks.

Both run external commands one at a time with captured output. Install
failures are reported, not retried; the manifest stays updated.
"""

from __future__ import annotations

import subprocess
import time
from dataclasses import dataclass

from .common import vlog
from .package_managers import PackageManager


@dataclass(frozen=True)
class InstallResult:
    """
    Result of running the package manager's install command.

    Attributes:
        package_manager: Package manager that was invoked
        success: Whether the command exited with status 0
        stderr: Standard error from command execution
        exit_code: Process exit code (-1 if the command could not start)
        duration_seconds: Time taken to execute the command
        error_message: Human-readable error message if failed
    """
    package_manager: PackageManager
    success: bool
    stderr: str
    exit_code: int
    duration_seconds: float
    error_message: str | None = None

    @property
    def error_output(self) -> str:
        """Text shown to the user when the install failed."""
        return self.stderr or self.error_message or ""


def run_install(
    pm: PackageManager,
    cwd: str | None = None,
    verbose: bool = False,
) -> InstallResult:
    """
    Run ``<pm> install``.

    Args:
        pm: Package manager to invoke
        cwd: Directory to run in (the package.json directory)
        verbose: Enable verbose logging

    Returns:
        InstallResult with execution outcome
    """
    command = list(pm.install_command)
    vlog(f"Executing: {' '.join(command)} (cwd={cwd})", verbose)
    start_time = time.time()

    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            cwd=cwd,
            check=False,
        )
    except FileNotFoundError:
        return InstallResult(
            package_manager=pm,
            success=False,
            stderr="",
            exit_code=-1,
            duration_seconds=time.time() - start_time,
            error_message=f"Command not found: {command[0]}",
        )

    duration = time.time() - start_time
    success = result.returncode == 0

    error_msg = None
    if not success:
        error_msg = f"Command failed with exit code {result.returncode}"

    return InstallResult(
        package_manager=pm,
        success=success,
        stderr=result.stderr,
        exit_code=result.returncode,
        duration_seconds=duration,
        error_message=error_msg,
    )


def has_uncommitted_changes(cwd: str | None = None, verbose: bool = False) -> bool:
    """
    Check ``git status --porcelain`` for uncommitted changes.

    A missing git binary, a directory outside a repository, or any other
    git failure counts as "no changes".
    """
    try:
        result = subprocess.run(
            ["git", "status", "--porcelain"],
            capture_output=True,
            text=True,
            cwd=cwd,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as e:
        vlog(f"Skipping working tree check: {e}", verbose)
        return False

    return bool(result.stdout.strip())
