"""
Package manager detection and selection.

Selection priority:
1. Explicit --pm argument (if it names a supported package manager)
2. Unattended mode: first detected lockfile, else npm
3. Exactly one lockfile present
4. Interactive choice (several lockfiles, or none)
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Callable, Sequence

from .common import vlog
from .logging_config import get_logger


class PackageManager(str, Enum):
    """Supported package managers."""
    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"

    def __str__(self) -> str:
        return self.value

    @property
    def install_command(self) -> tuple[str, ...]:
        return (self.value, "install")


DEFAULT_PACKAGE_MANAGER = PackageManager.NPM

# Lockfile marker -> package manager, in the order candidates are offered
LOCKFILES: tuple[tuple[str, PackageManager], ...] = (
    ("pnpm-lock.yaml", PackageManager.PNPM),
    ("yarn.lock", PackageManager.YARN),
    ("package-lock.json", PackageManager.NPM),
    ("npm-shrinkwrap.json", PackageManager.NPM),
)

# (message, options) -> chosen package manager
Chooser = Callable[[str, Sequence[PackageManager]], PackageManager]


def parse_package_manager(name: str | None) -> PackageManager | None:
    """Return the PackageManager named ``name``, or None if unsupported."""
    if not name:
        return None
    try:
        return PackageManager(name)
    except ValueError:
        return None


def detect_package_managers(
    directory: str,
    exists: Callable[[str], bool] = os.path.exists,
) -> list[PackageManager]:
    """
    Find package managers whose lockfile is present in a directory.

    Args:
        directory: Directory holding package.json
        exists: Filesystem existence check, injectable for tests

    Returns:
        Distinct candidates in lockfile declaration order
    """
    candidates: list[PackageManager] = []
    for lockfile, pm in LOCKFILES:
        if exists(os.path.join(directory, lockfile)) and pm not in candidates:
            candidates.append(pm)
    return candidates


def select_package_manager(
    directory: str,
    explicit: str | None = None,
    unattended: bool = False,
    chooser: Chooser | None = None,
    exists: Callable[[str], bool] = os.path.exists,
    verbose: bool = False,
) -> tuple[PackageManager, str]:
    """
    Decide which package manager the overrides are written for.

    Args:
        directory: Directory holding package.json
        explicit: Value of the --pm argument
        unattended: Whether prompts are forbidden
        chooser: Interactive selection callback (required when a choice is needed)
        exists: Filesystem existence check, injectable for tests
        verbose: Enable verbose logging

    Returns:
        (package_manager, reason)
    """
    pm = parse_package_manager(explicit)
    if pm is not None:
        return (pm, "explicit")
    if explicit:
        get_logger().warning(
            f"Unsupported package manager '{explicit}', "
            f"expected one of: {', '.join(p.value for p in PackageManager)}"
        )

    candidates = detect_package_managers(directory, exists)
    vlog(f"Lockfile candidates in {directory}: {[c.value for c in candidates]}", verbose)

    if unattended:
        if candidates:
            return (candidates[0], "lockfile")
        return (DEFAULT_PACKAGE_MANAGER, "default")

    if len(candidates) == 1:
        return (candidates[0], "lockfile")

    if chooser is None:
        raise ValueError("An interactive chooser is required to pick a package manager")

    if candidates:
        pm = chooser(
            "More than one lockfile found, please select the package manager you would like to use",
            candidates,
        )
    else:
        pm = chooser(
            "Cannot infer which package manager to use, please select",
            list(PackageManager),
        )
    return (pm, "user_choice")
