"""
install-rspack - point a project's Rspack packages at a release channel.

Usage:
    install-rspack                          # latest stable release
    install-rspack --version canary         # latest canary build
    install-rspack --version 1.3.13 --pm pnpm
    install-rspack --tag nightly --path packages/app --ci
"""

from __future__ import annotations

import argparse
import sys
from typing import Callable, Sequence

from .common import InstallRspackError, vlog
from .config import RunConfig, load_config
from .environment import detect_environment
from .installer import InstallResult, has_uncommitted_changes, run_install
from .logging_config import get_logger, setup_logging
from .manifest import Manifest, apply_overrides, load_manifest, resolve_manifest_path, save_manifest
from .overrides import RSPACK_SUITE, Suite, build_overrides
from .package_managers import PackageManager, select_package_manager
from .prompts import PromptCancelled, confirm, select
from .registry import RegistryQuery, npm_view_version, resolve
from .render import banner, magenta, outro, red, yellow
from .versions import classify


EXIT_OK = 0
EXIT_FAILURE = 1


def _update_manifest(
    config: RunConfig,
    pm: PackageManager,
    overrides: dict[str, str],
    manifest: Manifest,
    suite: Suite,
) -> None:
    apply_overrides(pm, overrides, manifest, suite, verbose=config.verbose)
    save_manifest(manifest, config.manifest_path)
    get_logger().info(
        f"Updated {yellow('package.json')} for {magenta(str(pm))} dependency overrides"
    )


def run_unattended(
    config: RunConfig,
    suite: Suite = RSPACK_SUITE,
    query: RegistryQuery = npm_view_version,
) -> int:
    """
    Write overrides without prompting and without installing.

    Returns:
        Exit code
    """
    logger = get_logger()
    logger.info("Detected you are in CI mode")

    manifest = load_manifest(config.manifest_path)
    resolved = resolve(classify(config.version, config.tag), suite, query)
    logger.info(f"Adding install-rspack {resolved.version} overrides to {config.manifest_path}")

    pm, reason = select_package_manager(
        config.manifest_dir,
        explicit=config.package_manager,
        unattended=True,
        verbose=config.verbose,
    )
    logger.debug(f"Selected package manager: {pm} (reason: {reason})")

    _update_manifest(config, pm, build_overrides(resolved, suite), manifest, suite)
    logger.info(f"Done! Don't forget to run {magenta(f'{pm} install')} later.")
    return EXIT_OK


def run_interactive(
    config: RunConfig,
    suite: Suite = RSPACK_SUITE,
    query: RegistryQuery = npm_view_version,
    read: Callable[[str], str] | None = None,
    install: Callable[..., InstallResult] = run_install,
    working_tree_dirty: Callable[..., bool] = has_uncommitted_changes,
) -> int:
    """
    Prompt for the missing choices, write overrides, then offer to install.

    Raises:
        PromptCancelled: If the user cancels a prompt
    """
    logger = get_logger()
    manifest = load_manifest(config.manifest_path)
    print(banner("Installing Rspack"))

    if working_tree_dirty(cwd=config.manifest_dir, verbose=config.verbose):
        logger.warning(
            "There are uncommitted changes in the current repository, "
            "it's recommended to commit or stash them first."
        )
        if not confirm("Still proceed?", default=False, read=read):
            print(outro("Operation cancelled."))
            return EXIT_FAILURE

    def choose(message: str, options: Sequence[PackageManager]) -> PackageManager:
        return select(message, options, read=read)

    pm, reason = select_package_manager(
        config.manifest_dir,
        explicit=config.package_manager,
        unattended=False,
        chooser=choose,
        verbose=config.verbose,
    )
    logger.debug(f"Selected package manager: {pm} (reason: {reason})")

    resolved = resolve(classify(config.version, config.tag), suite, query)
    _update_manifest(config, pm, build_overrides(resolved, suite), manifest, suite)

    install_command = magenta(f"{pm} install")
    if not confirm(
        f"Run {install_command} to install the updated dependencies?",
        default=True,
        read=read,
    ):
        print(outro(f"Done! Don't forget to run {install_command} later."))
        return EXIT_OK

    logger.info(f"Installing via {pm}")
    result = install(pm, cwd=config.manifest_dir, verbose=config.verbose)
    vlog(f"{pm} install exited with code {result.exit_code} after {result.duration_seconds:.1f}s", config.verbose)
    if not result.success:
        logger.error(red("Installation failed"))
        logger.error(result.error_output)
        return EXIT_FAILURE

    logger.info(f"Installed via {pm}")
    print(outro("Done!"))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="install-rspack",
        description="Override Rspack with a latest/beta/canary/nightly or exact version",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        help="Version or dist-tag to install (latest, beta, alpha, canary, nightly, or an exact version)",
    )
    parser.add_argument(
        "--tag",
        help="Dist-tag; takes precedence over --version when it is a known tag",
    )
    parser.add_argument(
        "--path",
        help="package.json, or the directory containing it (default: ./package.json)",
    )
    parser.add_argument(
        "--pm",
        help="Package manager to write overrides for (npm, pnpm, yarn)",
    )
    parser.add_argument(
        "--ci",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Run unattended: no prompts, no install (default: on when a CI environment is detected)",
    )
    parser.add_argument(
        "--config",
        help="YAML file with default version/tag/package_manager",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--log-file",
        help="Also write a full debug log to this file",
    )
    return parser


def build_config(args: argparse.Namespace) -> RunConfig:
    """Turn parsed arguments into the run configuration."""
    env = detect_environment(ci=args.ci, verbose=args.verbose)
    config = RunConfig(
        manifest_path=resolve_manifest_path(args.path),
        version=args.version,
        tag=args.tag,
        package_manager=args.pm,
        unattended=env.unattended,
        verbose=args.verbose,
    )
    defaults = load_config(config.manifest_dir, custom_path=args.config, verbose=args.verbose)
    return config.with_defaults(defaults)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose, log_file=args.log_file)
    logger = get_logger()

    try:
        config = build_config(args)
        if config.unattended:
            return run_unattended(config)
        return run_interactive(config)
    except PromptCancelled as e:
        print(outro(e.message))
        return EXIT_OK
    except InstallRspackError as e:
        logger.error(e.message)
        if e.remediation:
            logger.error(f"Hint: {e.remediation}")
        return EXIT_FAILURE
    except ValueError as e:
        logger.error(str(e))
        return EXIT_FAILURE
    except OSError as e:
        logger.error(f"Cannot access {e.filename or 'file'}: {e.strerror or e}")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
