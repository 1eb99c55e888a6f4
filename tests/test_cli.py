"""Tests for the CLI interface."""
import pytest
from typer.testing import CliRunner
from unittest.mock import patch

from swarm_provision.cli import app, prompt_choice, PromptExhausted, MAX_PROMPT_ATTEMPTS
from swarm_provision.models import ProvisioningRole, StepResult, WifiBand

runner = CliRunner()


@pytest.fixture
def log_file(tmp_path):
    return str(tmp_path / "swarm_setup.log")


def test_cli_help():
    """Test CLI help command."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "swarm" in result.stdout.lower()
    assert "--role" in result.stdout
    assert "--dry-run" in result.stdout


@patch('swarm_provision.utils.is_root')
def test_requires_root(mock_is_root):
    """Test the run stops when not running as root."""
    mock_is_root.return_value = False

    result = runner.invoke(app, ["--role", "coordinator", "--yes"])

    assert result.exit_code == 1
    assert "root" in result.stdout.lower()


@patch('swarm_provision.utils.is_root')
@patch('swarm_provision.steps.provision_system')
def test_role_option(mock_provision, mock_is_root, log_file):
    mock_is_root.return_value = True
    mock_provision.return_value = StepResult.success("Setup for SN Manager completed successfully!")

    result = runner.invoke(app, ["--role", "sn-manager", "--yes", "--log-file", log_file])

    assert result.exit_code == 0
    ctx = mock_provision.call_args.args[0]
    assert ctx.role is ProvisioningRole.SN_MANAGER
    assert ctx.dry_run is False
    assert "✅ Setup for SN Manager completed successfully!" in result.stdout


@patch('swarm_provision.utils.is_root')
@patch('swarm_provision.steps.provision_system')
def test_unknown_role_option_is_fatal(mock_provision, mock_is_root, log_file):
    mock_is_root.return_value = True

    result = runner.invoke(app, ["--role", "router", "--yes", "--log-file", log_file])

    assert result.exit_code == 1
    assert "Invalid role choice" in result.stdout
    mock_provision.assert_not_called()


@patch('swarm_provision.utils.is_root')
@patch('swarm_provision.steps.provision_system')
def test_role_menu_reprompts_on_invalid_choice(mock_provision, mock_is_root, log_file):
    """Entering 9 at the role menu asks again; 2 selects AP Manager."""
    mock_is_root.return_value = True
    mock_provision.return_value = StepResult.success("Setup for AP Manager completed successfully!")

    result = runner.invoke(app, ["--log-file", log_file], input="\n9\n2\n")

    assert result.exit_code == 0
    assert "1) Coordinator" in result.stdout
    assert "Invalid choice. Please enter a valid number." in result.stdout
    assert mock_provision.call_args.args[0].role is ProvisioningRole.AP_MANAGER


@patch('swarm_provision.utils.is_root')
@patch('swarm_provision.steps.provision_system')
def test_role_menu_gives_up(mock_provision, mock_is_root, log_file):
    mock_is_root.return_value = True

    answers = "abc\n" * MAX_PROMPT_ATTEMPTS
    result = runner.invoke(app, ["--yes", "--log-file", log_file], input=answers)

    assert result.exit_code == 1
    mock_provision.assert_not_called()


@patch('swarm_provision.utils.is_root')
@patch('swarm_provision.steps.provision_system')
def test_fatal_result_exits_non_zero(mock_provision, mock_is_root, log_file):
    mock_is_root.return_value = True
    mock_provision.return_value = StepResult.fatal("Selected interface wlx001122 cannot act as an access point.")

    result = runner.invoke(app, ["--role", "2", "--yes", "--log-file", log_file])

    assert result.exit_code == 1
    assert "✅" not in result.stdout


@patch('swarm_provision.utils.is_root')
@patch('swarm_provision.steps.provision_system')
def test_unsupported_platform(mock_provision, mock_is_root, log_file):
    mock_is_root.return_value = True
    mock_provision.side_effect = NotImplementedError("Platform Darwin is not supported")

    result = runner.invoke(app, ["--role", "1", "--yes", "--log-file", log_file])

    assert result.exit_code == 1
    assert "Platform Darwin is not supported" in result.stdout


@patch('swarm_provision.utils.get_real_home')
@patch('swarm_provision.utils.is_root')
@patch('swarm_provision.steps.provision_system')
def test_access_point_and_project_options(mock_provision, mock_is_root, mock_home, log_file):
    mock_is_root.return_value = True
    mock_home.return_value = "/home/operator"
    mock_provision.return_value = StepResult.success("done")

    result = runner.invoke(app, [
        "--role", "ap-manager", "--yes", "--dry-run", "--log-file", log_file,
        "--ssid", "SwarmNet", "--passphrase", "correcthorse", "--band", "a",
    ])

    assert result.exit_code == 0
    ctx = mock_provision.call_args.args[0]
    assert ctx.ap_spec.ssid == "SwarmNet"
    assert ctx.ap_spec.passphrase == "correcthorse"
    assert ctx.ap_spec.band is WifiBand.A
    assert ctx.dry_run is True
    assert str(ctx.project_dir) == "/home/operator/smartedge"


@patch('swarm_provision.utils.is_root')
@patch('swarm_provision.steps.provision_system')
def test_short_passphrase_rejected(mock_provision, mock_is_root, log_file):
    mock_is_root.return_value = True

    result = runner.invoke(app, ["--role", "2", "--yes", "--passphrase", "short", "--log-file", log_file])

    assert result.exit_code == 2
    mock_provision.assert_not_called()


@patch('swarm_provision.utils.setup_logging')
@patch('swarm_provision.utils.is_root')
@patch('swarm_provision.steps.provision_system')
def test_verbose(mock_provision, mock_is_root, mock_logging, tmp_path):
    """Test --verbose and --log-file reach the logging setup."""
    mock_is_root.return_value = True
    mock_provision.return_value = StepResult.success("done")
    log_path = tmp_path / "custom.log"

    result = runner.invoke(app, ["--role", "1", "--yes", "--verbose", "--log-file", str(log_path)])

    assert result.exit_code == 0
    mock_logging.assert_called_once_with(True, log_path)


class TestPromptChoice:
    """Tests for numbered prompts."""

    @patch('swarm_provision.cli.typer.prompt')
    def test_accepts_valid_number(self, mock_prompt):
        mock_prompt.return_value = "2"

        assert prompt_choice("Select", 3) == 2

    @patch('swarm_provision.cli.typer.prompt')
    def test_reprompts_out_of_range(self, mock_prompt):
        mock_prompt.side_effect = ["0", "4", "-1", "3"]

        assert prompt_choice("Select", 3) == 3
        assert mock_prompt.call_count == 4

    @patch('swarm_provision.cli.typer.prompt')
    def test_gives_up(self, mock_prompt):
        mock_prompt.return_value = "x"

        with pytest.raises(PromptExhausted):
            prompt_choice("Select", 3)
        assert mock_prompt.call_count == MAX_PROMPT_ATTEMPTS
