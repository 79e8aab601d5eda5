"""Tests for CLI interface."""

from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from src.infra_test_framework.cli import main
from src.infra_test_framework.config import ScenarioConfig
from src.infra_test_framework.exceptions import ProvisioningFailed
from src.infra_test_framework.models import CheckResult, ScenarioOutcome, TestStatus
from src.infra_test_framework.results import aggregate_results

CLI = "src.infra_test_framework.cli"


def _passing_summary():
    return aggregate_results(
        [
            ScenarioOutcome(
                "alb-basic",
                "examples/basic",
                checks=[CheckResult("alb_state_active", TestStatus.PASS, 1.0)],
                destroyed=True,
            )
        ]
    )


def _failing_summary():
    return aggregate_results(
        [
            ScenarioOutcome(
                "alb-basic",
                "examples/basic",
                checks=[CheckResult("alb_state_active", TestStatus.FAIL, 1.0, "mismatch")],
                destroyed=True,
            )
        ]
    )


def _mock_config(**kwargs):
    defaults = dict(
        report_format="console",
        terraform_binary="terraform",
        terraform_timeout_seconds=60,
        region="us-west-2",
        parallelism=1,
        scenarios=[ScenarioConfig(name="alb-basic", terraform_dir="examples/basic")],
    )
    defaults.update(kwargs)
    return MagicMock(**defaults)


class TestCLI:
    """Tests for CLI commands."""

    def test_help(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Infrastructure Test Framework" in result.output
        assert "--mode" in result.output
        assert "--config" in result.output
        assert "--dry-run" in result.output

    def test_invalid_mode(self):
        result = CliRunner().invoke(main, ["--mode", "invalid"])
        assert result.exit_code != 0

    def test_scenario_mode_without_scenario(self):
        with patch(f"{CLI}.load_config", return_value=_mock_config()):
            with patch(f"{CLI}.validate_config", return_value=[]):
                result = CliRunner().invoke(main, ["--mode", "scenario"])
        assert result.exit_code == 1
        assert "--scenario is required" in result.output

    def test_config_validation_errors(self, tmp_path):
        config_file = tmp_path / "bad_config.yaml"
        config_file.write_text(
            "report_format: html\nscenarios:\n  - name: a\n    terraform_dir: missing\n"
        )
        result = CliRunner().invoke(main, ["--config", str(config_file)])
        assert result.exit_code == 1
        assert "Configuration errors" in result.output
        assert "does not exist" in result.output

    def test_quoted_retry_count_is_configuration_error(self, tmp_path):
        (tmp_path / "basic").mkdir()
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "scenarios:\n  - name: a\n    terraform_dir: basic\n    max_retries: '3'\n"
        )
        result = CliRunner().invoke(main, ["--config", str(config_file)])
        assert result.exit_code == 1
        assert "Configuration errors" in result.output
        assert "max_retries must be an integer" in result.output
        assert "Unexpected error" not in result.output

    def test_invalid_yaml_is_configuration_error(self, tmp_path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("scenarios: [unclosed\n")
        result = CliRunner().invoke(main, ["--config", str(config_file)])
        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_exit_code_on_failure(self):
        with patch(f"{CLI}.load_config", return_value=_mock_config()):
            with patch(f"{CLI}.validate_config", return_value=[]):
                with patch(f"{CLI}.TestRunner") as MockRunner:
                    MockRunner.return_value.run_full_tests.return_value = _failing_summary()
                    result = CliRunner().invoke(main, ["--mode", "full"])
        assert result.exit_code == 1

    def test_exit_code_on_success(self):
        with patch(f"{CLI}.load_config", return_value=_mock_config()):
            with patch(f"{CLI}.validate_config", return_value=[]):
                with patch(f"{CLI}.TestRunner") as MockRunner:
                    MockRunner.return_value.run_full_tests.return_value = _passing_summary()
                    result = CliRunner().invoke(main, ["--mode", "full"])
        assert result.exit_code == 0
        assert "ALL SCENARIOS PASSED" in result.output

    def test_smoke_mode(self):
        with patch(f"{CLI}.load_config", return_value=_mock_config()):
            with patch(f"{CLI}.validate_config", return_value=[]):
                with patch(f"{CLI}.TestRunner") as MockRunner:
                    MockRunner.return_value.run_smoke_tests.return_value = _passing_summary()
                    result = CliRunner().invoke(main, ["--mode", "smoke"])
        assert result.exit_code == 0
        MockRunner.return_value.run_smoke_tests.assert_called_once()

    def test_scenario_mode_success(self):
        with patch(f"{CLI}.load_config", return_value=_mock_config()):
            with patch(f"{CLI}.validate_config", return_value=[]):
                with patch(f"{CLI}.TestRunner") as MockRunner:
                    MockRunner.return_value.run_scenario.return_value = _passing_summary()
                    result = CliRunner().invoke(
                        main, ["--mode", "scenario", "--scenario", "alb-basic"]
                    )
        assert result.exit_code == 0
        MockRunner.return_value.run_scenario.assert_called_once_with("alb-basic")

    def test_scenario_mode_invalid_name(self):
        with patch(f"{CLI}.load_config", return_value=_mock_config()):
            with patch(f"{CLI}.validate_config", return_value=[]):
                with patch(f"{CLI}.TestRunner") as MockRunner:
                    MockRunner.return_value.run_scenario.side_effect = ValueError("not found")
                    result = CliRunner().invoke(
                        main, ["--mode", "scenario", "--scenario", "bogus"]
                    )
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_output_to_file(self, tmp_path):
        output_file = tmp_path / "reports" / "report.json"
        config = _mock_config(report_format="json")
        with patch(f"{CLI}.load_config", return_value=config):
            with patch(f"{CLI}.validate_config", return_value=[]):
                with patch(f"{CLI}.TestRunner") as MockRunner:
                    MockRunner.return_value.run_full_tests.return_value = _passing_summary()
                    result = CliRunner().invoke(
                        main, ["--report-format", "json", "--output", str(output_file)]
                    )
        assert result.exit_code == 0
        assert output_file.exists()
        assert '"total_scenarios": 1' in output_file.read_text()

    def test_overrides_applied(self):
        config = _mock_config()
        with patch(f"{CLI}.load_config", return_value=config):
            with patch(f"{CLI}.validate_config", return_value=[]):
                with patch(f"{CLI}.TestRunner") as MockRunner:
                    MockRunner.return_value.run_full_tests.return_value = _passing_summary()
                    CliRunner().invoke(main, ["--report-format", "junit", "--parallelism", "3"])
        assert config.report_format == "junit"
        assert config.parallelism == 3

    def test_unexpected_error(self):
        with patch(f"{CLI}.load_config", return_value=_mock_config()):
            with patch(f"{CLI}.validate_config", return_value=[]):
                with patch(f"{CLI}.TestRunner") as MockRunner:
                    MockRunner.return_value.run_full_tests.side_effect = RuntimeError("boom")
                    result = CliRunner().invoke(main, [])
        assert result.exit_code == 1
        assert "Unexpected error: boom" in result.output


class TestDryRun:
    """Tests for --dry-run flag."""

    def test_dry_run_success(self):
        with patch(f"{CLI}.load_config", return_value=_mock_config()):
            with patch(f"{CLI}.validate_config", return_value=[]):
                with patch(f"{CLI}.TerraformClient") as MockClient:
                    MockClient.return_value.version.return_value = "1.7.5"
                    with patch(f"{CLI}.TestRunner") as MockRunner:
                        result = CliRunner().invoke(main, ["--dry-run"])
        assert result.exit_code == 0
        assert "1.7.5" in result.output
        assert "alb-basic" in result.output
        MockRunner.assert_not_called()

    def test_dry_run_missing_terraform(self):
        with patch(f"{CLI}.load_config", return_value=_mock_config()):
            with patch(f"{CLI}.validate_config", return_value=[]):
                with patch(f"{CLI}.TerraformClient") as MockClient:
                    MockClient.return_value.version.side_effect = ProvisioningFailed(
                        "version", ".", "cannot execute 'terraform'"
                    )
                    result = CliRunner().invoke(main, ["--dry-run"])
        assert result.exit_code == 1
        assert "Dry-run failed" in result.output
