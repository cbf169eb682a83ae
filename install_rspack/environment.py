"""
Environment detection for unattended runs.

Detects whether the tool runs:
- unattended (CI/CD, or explicitly requested): no prompts, no install
- interactive (a terminal is attached): prompts allowed
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .common import CI_INDICATORS, is_ci_environment, vlog


@dataclass(frozen=True)
class Environment:
    """
    Detected environment information.

    Attributes:
        mode: Environment type ('ci' or 'interactive')
        indicators: Evidence for the detection decision
        override: Whether mode was explicitly set by the caller
    """
    mode: str
    indicators: tuple[str, ...] = ()
    override: bool = False

    @property
    def unattended(self) -> bool:
        return self.mode == "ci"

    def __str__(self) -> str:
        override_str = " (override)" if self.override else ""
        return f"{self.mode}{override_str}"


def detect_environment(ci: bool | None = None, verbose: bool = False) -> Environment:
    """
    Detect whether prompts may be shown.

    Detection priority:
    1. Explicit ``--ci`` / ``--no-ci`` flag
    2. CI/CD environment variables
    3. Interactive (default)

    Args:
        ci: Explicit unattended flag, or None to auto-detect
        verbose: Enable verbose logging

    Returns:
        Environment object with detected or overridden mode
    """
    if ci is not None:
        mode = "ci" if ci else "interactive"
        vlog(f"Environment explicitly set to: {mode}", verbose)
        return Environment(
            mode=mode,
            indicators=(f"explicit_override={mode}",),
            override=True,
        )

    if is_ci_environment():
        indicators = tuple(
            f"env:{var}={os.environ[var]}"
            for var in CI_INDICATORS
            if os.environ.get(var)
        )
        vlog(f"CI environment detected: {list(indicators)}", verbose)
        return Environment(mode="ci", indicators=indicators)

    vlog("Interactive environment (no CI indicators)", verbose)
    return Environment(mode="interactive")
