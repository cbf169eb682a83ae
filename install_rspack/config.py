"""
Run configuration.

A RunConfig is built once per invocation from the command line, an optional
YAML defaults file and the environment, then passed to every step.

Defaults file locations (in priority order):
1. --config FILE (must load)
2. .install-rspack.yml / .install-rspack.yaml next to package.json
3. ~/.config/install-rspack/config.yml
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

from .common import vlog
from .package_managers import PackageManager, parse_package_manager


PROJECT_CONFIG_NAMES = (".install-rspack.yml", ".install-rspack.yaml")
USER_CONFIG_LOCATIONS = (
    os.path.expanduser("~/.config/install-rspack/config.yml"),
    os.path.expanduser("~/.config/install-rspack/config.yaml"),
)


@dataclass(frozen=True)
class FileDefaults:
    """
    Defaults read from a configuration file.

    Attributes:
        version: Default version specifier
        tag: Default dist-tag
        package_manager: Default package manager name
        source: Path to the configuration file that was loaded
    """
    version: str | None = None
    tag: str | None = None
    package_manager: str | None = None
    source: str = ""

    def __post_init__(self):
        """Validate defaults after initialization."""
        for name in ("version", "tag", "package_manager"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Invalid {name}: {value!r}. Must be a string")

        if self.package_manager is not None and parse_package_manager(self.package_manager) is None:
            raise ValueError(
                f"Invalid package_manager: {self.package_manager}. "
                f"Must be one of: {', '.join(pm.value for pm in PackageManager)}"
            )

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> FileDefaults:
        """Create FileDefaults from dictionary."""
        return FileDefaults(
            version=data.get("version"),
            tag=data.get("tag"),
            package_manager=data.get("package_manager"),
            source=source,
        )

    @property
    def has_channel(self) -> bool:
        """Whether a version or tag is set; the two are taken as a pair."""
        return self.version is not None or self.tag is not None

    def merge_with(self, other: FileDefaults) -> FileDefaults:
        """Merge with a lower-priority FileDefaults, preferring this one's values."""
        channel = self if self.has_channel else other
        return FileDefaults(
            version=channel.version,
            tag=channel.tag,
            package_manager=self.package_manager if self.package_manager is not None else other.package_manager,
            source=self.source or other.source,
        )


@dataclass(frozen=True)
class RunConfig:
    """
    Immutable settings for one run.

    Attributes:
        manifest_path: Absolute path of package.json
        version: Raw version argument (None when not supplied)
        tag: Raw tag argument (None when not supplied)
        package_manager: Raw package manager argument (None when not supplied)
        unattended: Whether to run without prompts and without installing
        verbose: Enable verbose logging
    """
    manifest_path: str
    version: str | None = None
    tag: str | None = None
    package_manager: str | None = None
    unattended: bool = False
    verbose: bool = False

    @property
    def manifest_dir(self) -> str:
        return os.path.dirname(self.manifest_path)

    def with_defaults(self, defaults: FileDefaults) -> RunConfig:
        """
        Fill arguments the command line left unset from file defaults.

        Version and tag select one release channel together, so the file
        pair is only used when the command line gave neither.
        """
        if self.version is None and self.tag is None:
            version, tag = defaults.version, defaults.tag
        else:
            version, tag = self.version, self.tag

        return RunConfig(
            manifest_path=self.manifest_path,
            version=version,
            tag=tag,
            package_manager=self.package_manager if self.package_manager is not None else defaults.package_manager,
            unattended=self.unattended,
            verbose=self.verbose,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load YAML configuration file.

    Returns:
        Parsed configuration dictionary, or None if YAML not available or file invalid
    """
    try:
        import yaml
    except ImportError:
        return None  # PyYAML not installed

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def _load_json(file_path: str) -> dict[str, Any] | None:
    """
    Load JSON configuration file.

    Returns:
        Parsed configuration dictionary, or None if file invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, json.JSONDecodeError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> FileDefaults | None:
    """
    Load defaults from a single file.

    Tries YAML first, falls back to a sibling .json file if YAML is not available.

    Returns:
        FileDefaults, or None if the file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    data = _load_yaml(file_path)
    if data is None:
        json_path = file_path.replace(".yml", ".json").replace(".yaml", ".json")
        if json_path != file_path and os.path.exists(json_path):
            vlog(f"YAML not available, trying JSON: {json_path}", verbose)
            data = _load_json(json_path)

    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        defaults = FileDefaults.from_dict(data, source=file_path)
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None

    vlog(f"Loaded config successfully: {file_path}", verbose)
    return defaults


def config_locations(manifest_dir: str) -> list[str]:
    """Standard defaults file locations, highest priority first."""
    locations = [os.path.join(manifest_dir, name) for name in PROJECT_CONFIG_NAMES]
    locations.extend(USER_CONFIG_LOCATIONS)
    return locations


def load_config(
    manifest_dir: str,
    custom_path: str | None = None,
    verbose: bool = False,
) -> FileDefaults:
    """
    Load and merge defaults from all sources.

    Args:
        manifest_dir: Directory holding package.json
        custom_path: Optional path given with --config
        verbose: Enable verbose logging

    Returns:
        Merged FileDefaults (empty defaults if no file found)

    Raises:
        ValueError: If custom_path is provided but cannot be loaded
    """
    found: list[FileDefaults] = []

    if custom_path:
        defaults = load_config_file(custom_path, verbose)
        if defaults is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        found.append(defaults)

    for location in config_locations(manifest_dir):
        defaults = load_config_file(location, verbose)
        if defaults is not None:
            found.append(defaults)

    if not found:
        vlog("No config files found, using defaults", verbose)
        return FileDefaults()

    merged = found[0]
    for defaults in found[1:]:
        merged = merged.merge_with(defaults)
    return merged
