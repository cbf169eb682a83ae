"""
Version specifier classification.

A raw ``--version``/``--tag`` pair is turned into exactly one of three
specifier kinds:

- ExactVersion: an opaque version string, passed through unvalidated
- StandardTag: a general release channel (latest, beta, alpha)
- SnapshotTag: a snapshot channel (canary, nightly) published under the
  snapshot namespace
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


# Substring that marks a version string as a snapshot build,
# e.g. "1.3.13-canary-e56725ae-20250529070819"
SNAPSHOT_MARKER = "-canary"

STANDARD_TAGS = ("latest", "beta", "alpha")
SNAPSHOT_TAGS = ("canary", "nightly")
DIST_TAGS = STANDARD_TAGS + SNAPSHOT_TAGS

DEFAULT_TAG = "latest"


@dataclass(frozen=True)
class ExactVersion:
    """A concrete version string supplied by the caller."""
    version: str

    @property
    def is_snapshot(self) -> bool:
        return has_snapshot_marker(self.version)

    def __str__(self) -> str:
        return self.version


@dataclass(frozen=True)
class StandardTag:
    """A dist-tag resolved against the stable package."""
    tag: str

    @property
    def registry_tag(self) -> str:
        return self.tag

    def __str__(self) -> str:
        return self.tag


@dataclass(frozen=True)
class SnapshotTag:
    """
    A dist-tag resolved against the snapshot-renamed package.

    ``canary`` means "latest available canary build": the snapshot package
    publishes it under its own ``latest`` tag, not under a tag named canary.
    """
    tag: str

    @property
    def registry_tag(self) -> str:
        return "latest" if self.tag == "canary" else self.tag

    def __str__(self) -> str:
        return self.tag


VersionSpecifier = Union[ExactVersion, StandardTag, SnapshotTag]


@dataclass(frozen=True)
class ResolvedVersion:
    """
    Concrete version the suite is pinned to.

    Attributes:
        version: Version string written into the override values
        is_snapshot: Whether package names are mapped to the snapshot namespace
    """
    version: str
    is_snapshot: bool = False


def has_snapshot_marker(version: str) -> bool:
    return SNAPSHOT_MARKER in version


def is_dist_tag(raw: str | None) -> bool:
    return raw in DIST_TAGS


def _from_tag(tag: str) -> VersionSpecifier:
    if tag in SNAPSHOT_TAGS:
        return SnapshotTag(tag)
    return StandardTag(tag)


def classify(version: str | None = None, tag: str | None = None) -> VersionSpecifier:
    """
    Classify a version argument and an optional tag argument.

    A recognized ``tag`` wins outright. Otherwise ``version`` defaults to
    ``latest``; a recognized dist-tag string becomes a tag specifier and any
    other string, malformed or not, is an exact version.

    Args:
        version: Raw version argument (None when not supplied)
        tag: Raw tag argument (None when not supplied)

    Returns:
        The matching VersionSpecifier
    """
    if tag is not None and is_dist_tag(tag):
        return _from_tag(tag)

    if version is None:
        version = DEFAULT_TAG

    if is_dist_tag(version):
        return _from_tag(version)

    return ExactVersion(version)
