"""
install-rspack - Override Rspack with a latest/beta/canary/nightly or exact version.

Core Modules:
- Resolution: version classification, dist-tag lookup, snapshot name mapping
- Overrides: per-package-manager override sections in package.json
- Foundation: environment detection, config, package manager detection
- Installation: running the package manager after the manifest is updated
"""

__version__ = "0.3.1"

# Resolution
from .versions import (
    ExactVersion,
    StandardTag,
    SnapshotTag,
    VersionSpecifier,
    ResolvedVersion,
    classify,
    SNAPSHOT_MARKER,
)
from .registry import ResolutionError, npm_view_version, parse_version_output, resolve
from .overrides import Suite, RSPACK_SUITE, to_snapshot_name, build_overrides

# Manifest
from .manifest import (
    Manifest,
    ManifestNotFoundError,
    apply_overrides,
    load_manifest,
    save_manifest,
    resolve_manifest_path,
)

# Foundation
from .common import InstallRspackError
from .environment import Environment, detect_environment
from .config import RunConfig, FileDefaults, load_config, load_config_file
from .package_managers import PackageManager, detect_package_managers, select_package_manager

# Installation
from .installer import InstallResult, run_install, has_uncommitted_changes

# Logging configuration
from .logging_config import setup_logging, get_logger

__all__ = [
    "__version__",
    # Resolution
    "ExactVersion",
    "StandardTag",
    "SnapshotTag",
    "VersionSpecifier",
    "ResolvedVersion",
    "classify",
    "SNAPSHOT_MARKER",
    "ResolutionError",
    "npm_view_version",
    "parse_version_output",
    "resolve",
    "Suite",
    "RSPACK_SUITE",
    "to_snapshot_name",
    "build_overrides",
    # Manifest
    "Manifest",
    "ManifestNotFoundError",
    "apply_overrides",
    "load_manifest",
    "save_manifest",
    "resolve_manifest_path",
    # Foundation
    "InstallRspackError",
    "Environment",
    "detect_environment",
    "RunConfig",
    "FileDefaults",
    "load_config",
    "load_config_file",
    "PackageManager",
    "detect_package_managers",
    "select_package_manager",
    # Installation
    "InstallResult",
    "run_install",
    "has_uncommitted_changes",
    # Logging
    "setup_logging",
    "get_logger",
]
