"""Tests for CLI commands."""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from driver_wizard.__main__ import cli
from driver_wizard.wizard.types import Screen


@pytest.mark.cli
class TestCLI:
    """Test cases for CLI commands."""

    @pytest.fixture
    def runner(self) -> CliRunner:
        """Create a Click test runner."""
        return CliRunner()

    @pytest.fixture
    def config_file(self, tmp_path: Path) -> Path:
        """Config without delays so simulated runs finish immediately."""
        path = tmp_path / "driver-wizard.yml"
        path.write_text("step_delay: 0\n")
        return path

    def test_cli_version(self, runner: CliRunner) -> None:
        """Test CLI version command."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0

    def test_cli_help(self, runner: CliRunner) -> None:
        """Test CLI help command."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Install and remove NVIDIA drivers" in result.output
        for command in ("tui", "install", "uninstall", "steps"):
            assert command in result.output

    def test_install_command_help(self, runner: CliRunner) -> None:
        """Test install command help."""
        result = runner.invoke(cli, ["install", "--help"])
        assert result.exit_code == 0
        assert "--driver" in result.output
        assert "--component" in result.output
        assert "--fail-at" in result.output
        assert "--yes" in result.output

    def test_steps_default(self, runner: CliRunner, config_file: Path) -> None:
        """Test listing the default install pipeline."""
        result = runner.invoke(cli, ["--config", str(config_file), "steps"])

        assert result.exit_code == 0
        assert "Install Steps" in result.output
        assert "prepare" in result.output
        assert "install_driver" in result.output
        assert "install_cuda" not in result.output
        assert "verify" in result.output

    def test_steps_with_component(self, runner: CliRunner, config_file: Path) -> None:
        result = runner.invoke(
            cli, ["--config", str(config_file), "steps", "--component", "cuda"]
        )

        assert result.exit_code == 0
        assert "install_cuda" in result.output

    def test_steps_uninstall(self, runner: CliRunner, config_file: Path) -> None:
        result = runner.invoke(
            cli, ["--config", str(config_file), "steps", "--uninstall"]
        )

        assert result.exit_code == 0
        assert "Uninstall Steps" in result.output
        assert "regenerate_initramfs" in result.output

    def test_steps_uninstall_override(self, runner: CliRunner, tmp_path: Path) -> None:
        """Test that configured uninstall steps replace the defaults."""
        config = tmp_path / "custom.yml"
        config.write_text(
            "uninstall_steps:\n  - name: purge_all\n    description: Purge\n"
        )

        result = runner.invoke(cli, ["--config", str(config), "steps", "--uninstall"])

        assert result.exit_code == 0
        assert "purge_all" in result.output
        assert "unload_modules" not in result.output

    def test_install_success(self, runner: CliRunner, config_file: Path) -> None:
        """Test a non-interactive install run."""
        result = runner.invoke(
            cli,
            [
                "--config",
                str(config_file),
                "install",
                "--driver",
                "550",
                "--component",
                "cuda",
                "--yes",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Installation complete" in result.output
        assert "reboot" in result.output

    def test_install_failure(self, runner: CliRunner, config_file: Path) -> None:
        """Test that a failed run exits with status 1."""
        result = runner.invoke(
            cli,
            [
                "--config",
                str(config_file),
                "install",
                "--driver",
                "550",
                "--component",
                "cuda",
                "--fail-at",
                "update",
                "-y",
            ],
        )

        assert result.exit_code == 1
        assert "Updating package lists failed" in result.output
        assert "The run failed" in result.output

    def test_install_unknown_driver(
        self, runner: CliRunner, config_file: Path
    ) -> None:
        result = runner.invoke(
            cli,
            ["--config", str(config_file), "install", "--driver", "999", "-y"],
        )

        assert result.exit_code == 1
        assert "Unknown driver version" in result.output

    def test_install_unknown_component(
        self, runner: CliRunner, config_file: Path
    ) -> None:
        """Test that a mistyped component fails instead of being dropped."""
        result = runner.invoke(
            cli,
            [
                "--config",
                str(config_file),
                "install",
                "--driver",
                "550",
                "--component",
                "cudaa",
                "-y",
            ],
        )

        assert result.exit_code == 1
        assert "Unknown component 'cudaa'" in result.output

    def test_install_unknown_fail_at(
        self, runner: CliRunner, config_file: Path
    ) -> None:
        """Test that a failure step matching no step is rejected."""
        result = runner.invoke(
            cli,
            [
                "--config",
                str(config_file),
                "install",
                "--driver",
                "550",
                "--component",
                "cuda",
                "--fail-at",
                "nosuchstep",
                "-y",
            ],
        )

        assert result.exit_code == 1
        assert "Unknown step 'nosuchstep'" in result.output
        assert "Installation complete" not in result.output

    def test_uninstall_unknown_fail_at(
        self, runner: CliRunner, config_file: Path
    ) -> None:
        result = runner.invoke(
            cli,
            ["--config", str(config_file), "uninstall", "--fail-at", "nope", "-y"],
        )

        assert result.exit_code == 1
        assert "Unknown step 'nope'" in result.output

    def test_steps_unknown_component(
        self, runner: CliRunner, config_file: Path
    ) -> None:
        result = runner.invoke(
            cli, ["--config", str(config_file), "steps", "--component", "cudaa"]
        )

        assert result.exit_code == 1
        assert "Unknown component 'cudaa'" in result.output

    def test_install_declined(self, runner: CliRunner, config_file: Path) -> None:
        """Test that declining the confirmation is not an error."""
        with patch("questionary.confirm") as mock_confirm:
            mock_confirm.return_value.ask.return_value = False
            result = runner.invoke(
                cli,
                [
                    "--config",
                    str(config_file),
                    "install",
                    "--driver",
                    "550",
                    "--component",
                    "cuda",
                ],
            )

        assert result.exit_code == 0
        assert "Wizard cancelled" in result.output

    def test_uninstall_success(self, runner: CliRunner, config_file: Path) -> None:
        result = runner.invoke(cli, ["--config", str(config_file), "uninstall", "-y"])

        assert result.exit_code == 0, result.output
        assert "Uninstall complete" in result.output

    def test_uninstall_failure(self, runner: CliRunner, config_file: Path) -> None:
        result = runner.invoke(
            cli,
            [
                "--config",
                str(config_file),
                "uninstall",
                "--fail-at",
                "remove_packages",
                "-y",
            ],
        )

        assert result.exit_code == 1

    def test_verbose_prints_events(
        self, runner: CliRunner, config_file: Path
    ) -> None:
        result = runner.invoke(
            cli,
            ["--config", str(config_file), "-v", "uninstall", "--yes"],
        )

        assert result.exit_code == 0
        assert "event welcome:" in result.output
        assert "BeginUninstall" in result.output

    def test_missing_config(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(
            cli, ["--config", str(tmp_path / "missing.yml"), "steps"]
        )

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "driver-wizard.yml"
        config.write_text("log_lines: -1\n")

        result = runner.invoke(cli, ["--config", str(config), "steps"])

        assert result.exit_code == 1

    def test_tui_failed_run_exit_code(
        self, runner: CliRunner, config_file: Path
    ) -> None:
        """Test that the tui command reports a failed run."""
        with patch(
            "driver_wizard.wizard.launch_tui_wizard", return_value=Screen.ERROR
        ) as mock_launch:
            result = runner.invoke(cli, ["--config", str(config_file), "tui"])

        assert result.exit_code == 1
        mock_launch.assert_called_once()

    def test_tui_rejects_unknown_configured_component(
        self, runner: CliRunner, tmp_path: Path
    ) -> None:
        config = tmp_path / "driver-wizard.yml"
        config.write_text("components: [cudaa]\n")

        with patch("driver_wizard.wizard.launch_tui_wizard") as mock_launch:
            result = runner.invoke(cli, ["--config", str(config), "tui"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        mock_launch.assert_not_called()

    def test_tui_quit_exit_code(self, runner: CliRunner, config_file: Path) -> None:
        with patch(
            "driver_wizard.wizard.launch_tui_wizard", return_value=Screen.WELCOME
        ):
            result = runner.invoke(cli, ["--config", str(config_file), "tui"])

        assert result.exit_code == 0
