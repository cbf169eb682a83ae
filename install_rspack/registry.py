"""
Dist-tag resolution against the npm registry.

Tags are resolved with a single ``npm info <package>@<tag> version --json``
call. There is no retry: a failed or unparsable query ends the run before
the manifest is touched.
"""

from __future__ import annotations

import json
import subprocess
from typing import Callable

from .common import InstallRspackError, vlog
from .logging_config import get_logger
from .overrides import RSPACK_SUITE, Suite, to_snapshot_name
from .render import yellow
from .versions import (
    ExactVersion,
    ResolvedVersion,
    SnapshotTag,
    StandardTag,
    VersionSpecifier,
    has_snapshot_marker,
)


# (package name, dist-tag) -> published version
RegistryQuery = Callable[[str, str], str]


class ResolutionError(InstallRspackError):
    """Registry query failed or returned something other than one version."""


def parse_version_output(stdout: str) -> str:
    """
    Parse the JSON output of ``npm info ... version --json``.

    npm prints a JSON string for a single match and a JSON array when
    several versions match; only a single version is accepted.

    Raises:
        ResolutionError: If the output is not exactly one version string
    """
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise ResolutionError(f"Registry returned invalid JSON: {e}")

    if isinstance(data, list) and len(data) == 1:
        data = data[0]

    if not isinstance(data, str) or not data:
        raise ResolutionError(f"Registry returned an unexpected result: {stdout.strip()!r}")

    return data


def npm_view_version(package: str, tag: str, verbose: bool = False) -> str:
    """
    Query the registry for the version published under a dist-tag.

    Args:
        package: Package name (e.g., "@rspack/core")
        tag: Dist-tag (e.g., "latest")
        verbose: Enable verbose logging

    Returns:
        Published version string

    Raises:
        ResolutionError: If npm is missing, exits non-zero, or prints an
            unexpected result
    """
    command = ["npm", "info", f"{package}@{tag}", "version", "--json"]
    vlog(f"Executing: {' '.join(command)}", verbose)

    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        raise ResolutionError(
            "Command not found: npm",
            remediation="Install Node.js/npm, or pass an exact --version",
        )

    if result.returncode != 0:
        error_msg = f"Registry query for {package}@{tag} failed with exit code {result.returncode}"
        if result.stderr:
            error_msg += f": {result.stderr.strip()}"
        raise ResolutionError(error_msg)

    return parse_version_output(result.stdout)


def resolve(
    specifier: VersionSpecifier,
    suite: Suite = RSPACK_SUITE,
    query: RegistryQuery = npm_view_version,
) -> ResolvedVersion:
    """
    Turn a version specifier into a concrete version.

    Exact versions resolve to themselves. Standard tags are looked up on the
    suite's primary package; snapshot tags on its snapshot-renamed package.

    Args:
        specifier: Classified version argument
        suite: Package family being overridden
        query: Registry lookup, injectable for tests

    Returns:
        ResolvedVersion with the snapshot flag set

    Raises:
        ResolutionError: If the registry query fails
    """
    if isinstance(specifier, ExactVersion):
        return ResolvedVersion(specifier.version, specifier.is_snapshot)

    if isinstance(specifier, SnapshotTag):
        package = to_snapshot_name(suite.primary_package, suite)
    elif isinstance(specifier, StandardTag):
        package = suite.primary_package
    else:
        raise AssertionError(f"Unknown version specifier: {specifier!r}")

    logger = get_logger()
    dist_tag = specifier.registry_tag
    logger.info(f"Checking for the latest {dist_tag} version")
    version = query(package, dist_tag)
    logger.info(f"Found {dist_tag} version {yellow(version)}")

    if isinstance(specifier, SnapshotTag):
        return ResolvedVersion(version, is_snapshot=True)
    return ResolvedVersion(version, is_snapshot=has_snapshot_marker(version))
