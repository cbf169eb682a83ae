"""
package.json model, storage and override application.

Only the sections the override workflow touches are modelled explicitly;
every other key is kept in ``extra`` and written back unchanged, in its
original position.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from .common import InstallRspackError, vlog
from .overrides import RSPACK_SUITE, Suite
from .package_managers import PackageManager, parse_package_manager


MANIFEST_NAME = "package.json"

# Dependency sections npm checks for direct requests of a suite package
DIRECT_DEPENDENCY_SECTIONS = ("dependencies", "devDependencies", "optionalDependencies")

# attribute -> package.json key
SECTION_KEYS = {
    "overrides": "overrides",
    "resolutions": "resolutions",
    "pnpm": "pnpm",
    "dependencies": "dependencies",
    "dev_dependencies": "devDependencies",
    "optional_dependencies": "optionalDependencies",
}


class ManifestNotFoundError(InstallRspackError):
    """package.json does not exist at the resolved path."""


@dataclass
class Manifest:
    """
    Parsed package.json.

    Attributes:
        overrides: npm "overrides" section
        resolutions: yarn "resolutions" section
        pnpm: pnpm namespace ("overrides", "peerDependencyRules", ...)
        dependencies: "dependencies" section
        dev_dependencies: "devDependencies" section
        optional_dependencies: "optionalDependencies" section
        extra: All other top-level keys, round-tripped verbatim
        key_order: Top-level key order of the loaded document
    """
    overrides: dict[str, Any] | None = None
    resolutions: dict[str, Any] | None = None
    pnpm: dict[str, Any] | None = None
    dependencies: dict[str, Any] | None = None
    dev_dependencies: dict[str, Any] | None = None
    optional_dependencies: dict[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    key_order: list[str] = field(default_factory=list)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Manifest:
        """Create Manifest from a decoded package.json document."""
        known = {key: attr for attr, key in SECTION_KEYS.items()}
        sections: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            if key in known and value is not None:
                sections[known[key]] = value
            else:
                extra[key] = value
        return Manifest(extra=extra, key_order=list(data), **sections)

    def to_dict(self) -> dict[str, Any]:
        """Rebuild the document, keeping the original key order."""
        values = dict(self.extra)
        for attr, key in SECTION_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                values[key] = value

        doc: dict[str, Any] = {}
        for key in self.key_order:
            if key in values:
                doc[key] = values.pop(key)
        doc.update(values)
        return doc

    def dependency_sections(self) -> list[dict[str, Any]]:
        """Direct dependency sections present in the manifest."""
        sections = (self.dependencies, self.dev_dependencies, self.optional_dependencies)
        return [s for s in sections if isinstance(s, dict)]


def resolve_manifest_path(path: str | None = None, cwd: str | None = None) -> str:
    """
    Resolve the --path argument to an absolute package.json path.

    A missing path means ``package.json`` in the working directory; a path
    not ending in ``package.json`` is treated as the directory holding it.
    """
    root = cwd or os.getcwd()
    manifest_path = path if path else os.path.join(root, MANIFEST_NAME)

    if not os.path.isabs(manifest_path):
        manifest_path = os.path.join(root, manifest_path)

    if os.path.basename(manifest_path) != MANIFEST_NAME:
        manifest_path = os.path.join(manifest_path, MANIFEST_NAME)

    return os.path.normpath(manifest_path)


def load_manifest(path: str) -> Manifest:
    """
    Load package.json.

    Raises:
        ManifestNotFoundError: If the file does not exist
        ValueError: If the file is not a JSON object
    """
    if not os.path.exists(path):
        raise ManifestNotFoundError(f"Cannot find package.json in {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return Manifest.from_dict(data)


def dump_manifest(manifest: Manifest) -> str:
    """Serialize with 2-space indentation and a trailing newline."""
    return json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False) + "\n"


def save_manifest(manifest: Manifest, path: str) -> None:
    """Write package.json back: temp file, then rename over the target."""
    target = Path(path)
    temp_path = target.with_suffix(".tmp")
    with open(temp_path, "w", encoding="utf-8") as f:
        f.write(dump_manifest(manifest))
    temp_path.replace(target)


def _apply_npm(overrides: dict[str, str], manifest: Manifest, suite: Suite) -> None:
    # https://github.com/npm/rfcs/blob/main/accepted/0036-overrides.md
    manifest.overrides = {**(manifest.overrides or {}), **overrides}

    # npm ignores an override for a package that is also a direct
    # dependency unless the direct entry matches it
    for name in suite.packages:
        for section in manifest.dependency_sections():
            if section.get(name):
                section[name] = overrides[name]


def _apply_pnpm(overrides: dict[str, str], manifest: Manifest, suite: Suite) -> None:
    # https://pnpm.io/package_json#pnpmoverrides
    pnpm = manifest.pnpm if manifest.pnpm is not None else {}
    pnpm["overrides"] = {**(pnpm.get("overrides") or {}), **overrides}

    # https://pnpm.io/package_json#pnpmpeerdependencyrulesallowany
    rules = pnpm.get("peerDependencyRules") or {}
    pnpm["peerDependencyRules"] = rules
    allow_any = rules.get("allowAny") or []
    rules["allowAny"] = allow_any
    if suite.wildcard not in allow_any:
        allow_any.append(suite.wildcard)

    manifest.pnpm = pnpm


def _apply_yarn(overrides: dict[str, str], manifest: Manifest, suite: Suite) -> None:
    # https://github.com/yarnpkg/rfcs/blob/master/implemented/0000-selective-versions-resolutions.md
    manifest.resolutions = {**(manifest.resolutions or {}), **overrides}


OVERRIDE_STRATEGIES: dict[PackageManager, Callable[[dict[str, str], Manifest, Suite], None]] = {
    PackageManager.NPM: _apply_npm,
    PackageManager.PNPM: _apply_pnpm,
    PackageManager.YARN: _apply_yarn,
}


def apply_overrides(
    pm: PackageManager,
    overrides: dict[str, str],
    manifest: Manifest,
    suite: Suite = RSPACK_SUITE,
    verbose: bool = False,
) -> Manifest:
    """
    Merge overrides into the section the package manager reads them from.

    Existing unrelated keys are preserved; keys present in both are
    overwritten by the new values.

    Args:
        pm: Package manager the manifest is installed with
        overrides: Package name -> override value
        manifest: Manifest to mutate in place
        suite: Package family being overridden
        verbose: Enable verbose logging

    Returns:
        The same manifest object
    """
    strategy = OVERRIDE_STRATEGIES.get(parse_package_manager(str(pm)))
    if strategy is None:
        raise AssertionError(f"Unsupported package manager: {pm!r}")

    vlog(f"Applying {pm} overrides: {overrides}", verbose)
    strategy(overrides, manifest, suite)
    return manifest
