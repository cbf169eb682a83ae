"""
Suite definition, snapshot name mapping and override-set building.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .versions import ResolvedVersion


# Protocol prefix telling the package manager to install a different
# registry package under the declared name
ALIAS_PROTOCOL = "npm"


@dataclass(frozen=True)
class Suite:
    """
    The family of packages whose overrides are managed together.

    Attributes:
        namespace: Scope of the stable packages (e.g., "@rspack")
        snapshot_namespace: Scope the snapshot builds are published under
        primary_package: Package queried when resolving dist-tags
        packages: Packages that receive an override, in write order
        legacy_renames: Unscoped packages with a fixed snapshot name
    """
    namespace: str
    snapshot_namespace: str
    primary_package: str
    packages: tuple[str, ...]
    legacy_renames: dict[str, str] = field(default_factory=dict)

    @property
    def wildcard(self) -> str:
        """Pattern matching every package in the namespace."""
        return f"{self.namespace}/*"


RSPACK_SUITE = Suite(
    namespace="@rspack",
    snapshot_namespace="@rspack-canary",
    primary_package="@rspack/core",
    packages=("@rspack/core", "@rspack/cli"),
    legacy_renames={"create-rspack": "create-rspack-canary"},
)


def to_snapshot_name(name: str, suite: Suite = RSPACK_SUITE) -> str:
    """
    Map a package name to its snapshot-channel package name.

    Examples:
        "@rspack/core" -> "@rspack-canary/core"
        "create-rspack" -> "create-rspack-canary"
        "react" -> "react"
    """
    if name in suite.legacy_renames:
        return suite.legacy_renames[name]

    prefix = f"{suite.namespace}/"
    if name.startswith(prefix):
        return f"{suite.snapshot_namespace}/{name[len(prefix):]}"

    return name


def build_overrides(resolved: ResolvedVersion, suite: Suite = RSPACK_SUITE) -> dict[str, str]:
    """
    Build the override value for every suite package.

    Snapshot builds are recorded as registry aliases
    (``npm:@rspack-canary/core@<version>``) so the declared name and every
    import path stay unchanged; other versions are recorded verbatim.

    Args:
        resolved: Version the suite is pinned to
        suite: Package family to build overrides for

    Returns:
        Mapping of package name to override value
    """
    overrides: dict[str, str] = {}
    for name in suite.packages:
        if resolved.is_snapshot:
            overrides[name] = f"{ALIAS_PROTOCOL}:{to_snapshot_name(name, suite)}@{resolved.version}"
        else:
            overrides[name] = resolved.version
    return overrides
