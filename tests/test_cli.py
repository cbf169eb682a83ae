"""
Tests for the command-line workflow (install_rspack/cli.py).
"""

import json
import logging
import os
import pytest
from unittest.mock import patch, MagicMock

from install_rspack.cli import (
    EXIT_FAILURE,
    EXIT_OK,
    build_config,
    build_parser,
    main,
    run_interactive,
    run_unattended,
)
from install_rspack.config import RunConfig
from install_rspack.installer import InstallResult
from install_rspack.package_managers import PackageManager
from install_rspack.prompts import PromptCancelled
from install_rspack.registry import ResolutionError


CANARY_VERSION = "1.3.13-canary-e56725ae-20250529070819"


@pytest.fixture
def project(tmp_path):
    """A project with a package.json depending on @rspack/core."""
    manifest = {
        "name": "app",
        "devDependencies": {"@rspack/core": "1.0.0", "@rspack/cli": "1.0.0"},
    }
    (tmp_path / "package.json").write_text(json.dumps(manifest, indent=2) + "\n")
    return tmp_path


def read_manifest(directory):
    return json.loads((directory / "package.json").read_text())


def fixed_query(version):
    return MagicMock(return_value=version)


def answers(*lines):
    return MagicMock(side_effect=list(lines))


def install_result(success=True, stderr=""):
    return InstallResult(
        package_manager=PackageManager.NPM,
        success=success,
        stderr=stderr,
        exit_code=0 if success else 1,
        duration_seconds=0.1,
        error_message=None if success else "Command failed with exit code 1",
    )


class TestParser:
    """Tests for argument parsing and config building."""

    def test_defaults(self):
        """Test that every option is optional."""
        args = build_parser().parse_args([])
        assert args.version is None
        assert args.tag is None
        assert args.ci is None

    def test_ci_flags(self):
        """Test --ci and --no-ci."""
        assert build_parser().parse_args(["--ci"]).ci is True
        assert build_parser().parse_args(["--no-ci"]).ci is False

    @patch.dict(os.environ, {"CI": "true"}, clear=True)
    def test_build_config_detects_ci(self, project):
        """Test that a CI environment makes the run unattended."""
        args = build_parser().parse_args(["--path", str(project), "--version", "beta"])
        config = build_config(args)
        assert config.unattended is True
        assert config.version == "beta"
        assert config.manifest_path == str(project / "package.json")

    @patch.dict(os.environ, {}, clear=True)
    def test_build_config_applies_file_defaults(self, project):
        """Test that a project defaults file fills unset options."""
        (project / ".install-rspack.yml").write_text("version: nightly\npackage_manager: yarn\n")
        args = build_parser().parse_args(["--path", str(project), "--pm", "pnpm"])

        with patch("install_rspack.config.USER_CONFIG_LOCATIONS", ()):
            config = build_config(args)

        assert config.version == "nightly"
        assert config.package_manager == "pnpm"
        assert config.unattended is False


class TestRunUnattended:
    """Tests for run_unattended."""

    def test_exact_version_npm(self, project):
        """Test an exact version with the default npm package manager."""
        config = RunConfig(manifest_path=str(project / "package.json"), version="1.3.13", unattended=True)
        query = fixed_query("unused")

        assert run_unattended(config, query=query) == EXIT_OK

        doc = read_manifest(project)
        assert doc["overrides"] == {"@rspack/core": "1.3.13", "@rspack/cli": "1.3.13"}
        assert doc["devDependencies"]["@rspack/core"] == "1.3.13"
        query.assert_not_called()

    def test_explicit_yarn(self, project):
        """Test that --pm yarn writes resolutions."""
        (project / "pnpm-lock.yaml").write_text("")
        config = RunConfig(
            manifest_path=str(project / "package.json"),
            version="1.3.13",
            package_manager="yarn",
            unattended=True,
        )

        run_unattended(config, query=fixed_query("unused"))

        doc = read_manifest(project)
        assert doc["resolutions"]["@rspack/cli"] == "1.3.13"
        assert "pnpm" not in doc

    def test_missing_manifest_before_query(self, tmp_path):
        """Test that a missing package.json fails before the registry is asked."""
        config = RunConfig(manifest_path=str(tmp_path / "package.json"), version="canary", unattended=True)
        query = fixed_query(CANARY_VERSION)

        with pytest.raises(Exception) as exc_info:
            run_unattended(config, query=query)

        assert "Cannot find package.json" in str(exc_info.value)
        query.assert_not_called()

    def test_resolution_failure_leaves_manifest(self, project):
        """Test that a registry failure does not touch package.json."""
        before = (project / "package.json").read_text()
        config = RunConfig(manifest_path=str(project / "package.json"), unattended=True)
        query = MagicMock(side_effect=ResolutionError("registry down"))

        with pytest.raises(ResolutionError):
            run_unattended(config, query=query)

        assert (project / "package.json").read_text() == before

    def test_reminds_to_install(self, project, caplog):
        """Test the closing reminder in unattended mode."""
        config = RunConfig(manifest_path=str(project / "package.json"), version="1.3.13", unattended=True)
        run_unattended(config, query=fixed_query("unused"))
        assert "Don't forget to run npm install later" in caplog.text


class TestRunInteractive:
    """Tests for run_interactive."""

    def config(self, project, **kwargs):
        return RunConfig(manifest_path=str(project / "package.json"), **kwargs)

    def test_dirty_tree_declined(self, project):
        """Test that declining the dirty-tree warning exits non-zero untouched."""
        before = (project / "package.json").read_text()
        install = MagicMock()

        code = run_interactive(
            self.config(project, version="1.3.13"),
            read=answers("n"),
            install=install,
            working_tree_dirty=MagicMock(return_value=True),
        )

        assert code == EXIT_FAILURE
        assert (project / "package.json").read_text() == before
        install.assert_not_called()

    def test_dirty_tree_accepted_then_install(self, project):
        """Test proceeding past the warning and installing."""
        (project / "yarn.lock").write_text("")
        install = MagicMock(return_value=install_result())

        code = run_interactive(
            self.config(project, version="1.3.13"),
            read=answers("y", ""),
            install=install,
            working_tree_dirty=MagicMock(return_value=True),
        )

        assert code == EXIT_OK
        assert read_manifest(project)["resolutions"]["@rspack/core"] == "1.3.13"
        install.assert_called_once()
        assert install.call_args[0][0] is PackageManager.YARN

    def test_verbose_install_timing(self, project, caplog):
        """Test that verbose runs log the install exit code and duration."""
        (project / "yarn.lock").write_text("")
        caplog.set_level(logging.DEBUG, logger="install_rspack")

        run_interactive(
            self.config(project, version="1.3.13", verbose=True),
            read=answers("y"),
            install=MagicMock(return_value=install_result()),
            working_tree_dirty=MagicMock(return_value=False),
        )

        assert "yarn install exited with code 0 after 0.1s" in caplog.text

    def test_choose_package_manager(self, project):
        """Test the package manager prompt when no lockfile exists."""
        install = MagicMock()

        code = run_interactive(
            self.config(project, version="1.3.13"),
            read=answers("pnpm", "n"),
            install=install,
            working_tree_dirty=MagicMock(return_value=False),
        )

        assert code == EXIT_OK
        doc = read_manifest(project)
        assert doc["pnpm"]["overrides"]["@rspack/core"] == "1.3.13"
        assert doc["pnpm"]["peerDependencyRules"]["allowAny"] == ["@rspack/*"]
        install.assert_not_called()

    def test_cancel_before_mutation(self, project):
        """Test that cancelling the package manager prompt leaves package.json alone."""
        before = (project / "package.json").read_text()

        with pytest.raises(PromptCancelled):
            run_interactive(
                self.config(project, version="1.3.13"),
                read=MagicMock(side_effect=KeyboardInterrupt),
                install=MagicMock(),
                working_tree_dirty=MagicMock(return_value=False),
            )

        assert (project / "package.json").read_text() == before

    def test_install_failure(self, project, caplog):
        """Test that a failed install reports stderr and keeps the manifest change."""
        (project / "package-lock.json").write_text("{}")
        install = MagicMock(return_value=install_result(False, stderr="npm ERR! code ERESOLVE"))

        code = run_interactive(
            self.config(project, version="canary"),
            query=fixed_query(CANARY_VERSION),
            read=answers("y"),
            install=install,
            working_tree_dirty=MagicMock(return_value=False),
        )

        assert code == EXIT_FAILURE
        assert "npm ERR! code ERESOLVE" in caplog.text
        doc = read_manifest(project)
        assert doc["overrides"]["@rspack/core"] == f"npm:@rspack-canary/core@{CANARY_VERSION}"


class TestMain:
    """Tests for main exit codes."""

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_manifest(self, tmp_path):
        """Test that a missing package.json exits 1."""
        assert main(["--ci", "--path", str(tmp_path), "--version", "1.3.13"]) == EXIT_FAILURE

    @patch.dict(os.environ, {}, clear=True)
    @patch("install_rspack.registry.subprocess.run")
    def test_registry_failure(self, mock_run, project):
        """Test that a failed registry query exits 1."""
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="E404")
        assert main(["--ci", "--path", str(project)]) == EXIT_FAILURE

    @patch.dict(os.environ, {}, clear=True)
    @patch("install_rspack.cli.run_interactive")
    def test_prompt_cancel_exits_zero(self, mock_interactive, project):
        """Test that a cancelled prompt is a clean abort."""
        mock_interactive.side_effect = PromptCancelled()
        assert main(["--no-ci", "--path", str(project)]) == EXIT_OK

    @patch.dict(os.environ, {}, clear=True)
    def test_invalid_config_file(self, project):
        """Test that an unloadable --config exits 1."""
        assert main(["--ci", "--path", str(project), "--config", str(project / "nope.yml")]) == EXIT_FAILURE

    @patch.dict(os.environ, {}, clear=True)
    @patch("install_rspack.registry.subprocess.run")
    def test_cli_version_beats_file_tag(self, mock_run, project):
        """Test that a tag in the defaults file does not override --version."""
        (project / ".install-rspack.yml").write_text("tag: nightly\n")
        mock_run.return_value = MagicMock(returncode=0, stdout='"9.9.9-canary-x"', stderr="")

        code = main(["--version", "1.3.13", "--path", str(project), "--ci", "--pm", "yarn"])

        assert code == EXIT_OK
        mock_run.assert_not_called()
        assert read_manifest(project)["resolutions"] == {
            "@rspack/core": "1.3.13",
            "@rspack/cli": "1.3.13",
        }

    @patch.dict(os.environ, {}, clear=True)
    @patch("install_rspack.registry.subprocess.run")
    def test_file_tag_used_without_cli_channel(self, mock_run, project):
        """Test that the defaults file tag applies when neither --version nor --tag is given."""
        (project / ".install-rspack.yml").write_text("tag: nightly\n")
        mock_run.return_value = MagicMock(returncode=0, stdout='"9.9.9-canary-x"', stderr="")

        code = main(["--path", str(project), "--ci", "--pm", "yarn"])

        assert code == EXIT_OK
        assert mock_run.call_args[0][0][2] == "@rspack-canary/core@nightly"
        assert read_manifest(project)["resolutions"]["@rspack/core"] == (
            "npm:@rspack-canary/core@9.9.9-canary-x"
        )

    @patch.dict(os.environ, {}, clear=True)
    @patch("install_rspack.cli.save_manifest")
    def test_write_error_exits_one(self, mock_save, project, capsys):
        """Test that an unwritable package.json is reported, not raised."""
        mock_save.side_effect = PermissionError(13, "Permission denied", str(project / "package.json"))

        code = main(["--ci", "--path", str(project), "--version", "1.3.13"])

        assert code == EXIT_FAILURE
        assert "Permission denied" in capsys.readouterr().out
