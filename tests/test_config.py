"""Tests for configuration management."""

import os
from unittest.mock import patch

import pytest
import yaml

from src.infra_test_framework.config import (
    DEFAULT_RETRYABLE_ERRORS,
    ConfigurationError,
    ScenarioConfig,
    TestConfig,
    _parse_env_int,
    load_config,
    validate_config,
)


def _scenario(tmp_path, name="alb-basic", kind="basic", subdir=None, **kwargs):
    target = tmp_path / (subdir or name)
    target.mkdir(exist_ok=True)
    return ScenarioConfig(name=name, kind=kind, terraform_dir=str(target), **kwargs)


class TestScenarioConfig:
    """Tests for ScenarioConfig dataclass."""

    def test_defaults(self):
        scenario = ScenarioConfig(name="alb-basic", terraform_dir="examples/basic")
        assert scenario.kind == "basic"
        assert scenario.max_retries == 3
        assert scenario.time_between_retries_seconds == 5.0
        assert scenario.vars == {}
        assert scenario.smoke is None

    def test_retryable_errors_merged_with_defaults(self):
        scenario = ScenarioConfig(
            name="alb-basic",
            terraform_dir="examples/basic",
            retryable_errors={"timeout": "Retry on timeout errors"},
        )
        merged = scenario.effective_retryable_errors
        assert merged["timeout"] == "Retry on timeout errors"
        for pattern in DEFAULT_RETRYABLE_ERRORS:
            assert pattern in merged

    def test_defaults_can_be_disabled(self):
        scenario = ScenarioConfig(
            name="alb-basic",
            terraform_dir="examples/basic",
            retryable_errors={"timeout": "Retry on timeout errors"},
            use_default_retryable_errors=False,
        )
        assert scenario.effective_retryable_errors == {"timeout": "Retry on timeout errors"}


class TestTestConfig:
    """Tests for TestConfig dataclass."""

    def test_defaults(self):
        config = TestConfig()
        assert config.terraform_binary == "terraform"
        assert config.region == "us-west-2"
        assert config.parallelism == 1
        assert config.report_format == "console"
        assert config.scenarios == []

    def test_scenario_dicts_converted(self):
        config = TestConfig(
            scenarios=[{"name": "alb-basic", "terraform_dir": "examples/basic"}]
        )
        assert isinstance(config.scenarios[0], ScenarioConfig)

    def test_invalid_scenario_dict(self):
        with pytest.raises(ConfigurationError, match="Invalid scenario"):
            TestConfig(scenarios=[{"name": "x", "terraform_dir": "y", "bogus": 1}])

    def test_scenario_region_precedence(self):
        config = TestConfig(region="eu-west-1")
        plain = ScenarioConfig(name="a", terraform_dir="a")
        from_env = ScenarioConfig(
            name="b", terraform_dir="b", env_vars={"AWS_DEFAULT_REGION": "us-east-1"}
        )
        explicit = ScenarioConfig(
            name="c",
            terraform_dir="c",
            region="ap-south-1",
            env_vars={"AWS_DEFAULT_REGION": "us-east-1"},
        )
        assert config.scenario_region(plain) == "eu-west-1"
        assert config.scenario_region(from_env) == "us-east-1"
        assert config.scenario_region(explicit) == "ap-south-1"

    def test_scenario_env_injects_region(self):
        config = TestConfig(region="us-west-2")
        scenario = ScenarioConfig(name="a", terraform_dir="a", env_vars={"TF_LOG": "WARN"})
        env = config.scenario_env(scenario)
        assert env == {"AWS_DEFAULT_REGION": "us-west-2", "TF_LOG": "WARN"}


class TestParseEnvInt:
    """Tests for _parse_env_int."""

    def test_unset(self):
        with patch.dict(os.environ, {}, clear=True):
            assert _parse_env_int("INFRA_TEST_PARALLELISM") is None

    def test_valid(self):
        with patch.dict(os.environ, {"INFRA_TEST_PARALLELISM": "4"}):
            assert _parse_env_int("INFRA_TEST_PARALLELISM") == 4

    def test_invalid(self):
        with patch.dict(os.environ, {"INFRA_TEST_PARALLELISM": "many"}):
            with pytest.raises(ConfigurationError, match="valid integer"):
                _parse_env_int("INFRA_TEST_PARALLELISM")


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self):
        with patch.dict(os.environ, {}, clear=True):
            config = load_config()
        assert config.terraform_binary == "terraform"

    def test_loads_yaml_and_resolves_dirs(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            yaml.safe_dump(
                {
                    "region": "eu-central-1",
                    "scenarios": [
                        {"name": "alb-basic", "kind": "basic", "terraform_dir": "examples/basic"}
                    ],
                }
            )
        )
        with patch.dict(os.environ, {}, clear=True):
            config = load_config(str(config_file))
        assert config.region == "eu-central-1"
        assert config.scenarios[0].terraform_dir == os.path.join(
            str(tmp_path), "examples/basic"
        )

    def test_absolute_dir_kept(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            yaml.safe_dump({"scenarios": [{"name": "a", "terraform_dir": "/opt/tf/basic"}]})
        )
        with patch.dict(os.environ, {}, clear=True):
            config = load_config(str(config_file))
        assert config.scenarios[0].terraform_dir == "/opt/tf/basic"

    def test_env_overrides_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("region: eu-central-1\nreport_format: console\n")
        env = {
            "AWS_DEFAULT_REGION": "us-east-2",
            "INFRA_TEST_REPORT_FORMAT": "junit",
            "INFRA_TEST_TERRAFORM_BINARY": "/usr/local/bin/tofu",
            "INFRA_TEST_TERRAFORM_TIMEOUT": "600",
            "INFRA_TEST_PARALLELISM": "2",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config(str(config_file))
        assert config.region == "us-east-2"
        assert config.report_format == "junit"
        assert config.terraform_binary == "/usr/local/bin/tofu"
        assert config.terraform_timeout_seconds == 600
        assert config.parallelism == 2

    def test_non_positive_timeout_env(self):
        with patch.dict(os.environ, {"INFRA_TEST_TERRAFORM_TIMEOUT": "0"}, clear=True):
            with pytest.raises(ConfigurationError, match="positive"):
                load_config()

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yaml")

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("scenarios: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(str(config_file))

    def test_non_mapping_yaml(self, tmp_path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(str(config_file))

    def test_unknown_key(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("unknown_option: 1\n")
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError, match="Invalid configuration"):
                load_config(str(config_file))


class TestValidateConfig:
    """Tests for validate_config."""

    def test_valid(self, tmp_path):
        config = TestConfig(
            scenarios=[
                _scenario(tmp_path),
                _scenario(tmp_path, name="alb-advanced", kind="advanced"),
            ]
        )
        assert validate_config(config) == []

    def test_no_scenarios(self):
        errors = validate_config(TestConfig())
        assert any("At least one scenario" in e for e in errors)

    def test_missing_dir(self):
        config = TestConfig(scenarios=[ScenarioConfig(name="a", terraform_dir="/nonexistent/tf")])
        errors = validate_config(config)
        assert any("does not exist" in e for e in errors)

    def test_unknown_kind(self, tmp_path):
        config = TestConfig(scenarios=[_scenario(tmp_path, kind="nlb")])
        errors = validate_config(config)
        assert any("kind must be one of" in e for e in errors)

    def test_duplicate_names(self, tmp_path):
        config = TestConfig(
            scenarios=[_scenario(tmp_path, subdir="one"), _scenario(tmp_path, subdir="two")]
        )
        errors = validate_config(config)
        assert any("Duplicate scenario name" in e for e in errors)

    def test_shared_dir_allowed_sequentially(self, tmp_path):
        config = TestConfig(
            scenarios=[
                _scenario(tmp_path, name="a", subdir="shared"),
                _scenario(tmp_path, name="b", subdir="shared"),
            ]
        )
        assert validate_config(config) == []

    def test_shared_dir_rejected_in_parallel(self, tmp_path):
        config = TestConfig(
            parallelism=2,
            scenarios=[
                _scenario(tmp_path, name="a", subdir="shared"),
                _scenario(tmp_path, name="b", subdir="shared"),
            ],
        )
        errors = validate_config(config)
        assert any("cannot run in parallel" in e for e in errors)

    def test_negative_retry_settings(self, tmp_path):
        config = TestConfig(
            scenarios=[_scenario(tmp_path, max_retries=-1, time_between_retries_seconds=-5)]
        )
        errors = validate_config(config)
        assert any("max_retries" in e for e in errors)
        assert any("time_between_retries_seconds" in e for e in errors)

    def test_invalid_pattern(self, tmp_path):
        config = TestConfig(scenarios=[_scenario(tmp_path, retryable_errors={"(unclosed": "x"})])
        errors = validate_config(config)
        assert any("invalid retryable error pattern" in e for e in errors)

    def test_invalid_report_format(self, tmp_path):
        config = TestConfig(report_format="html", scenarios=[_scenario(tmp_path)])
        errors = validate_config(config)
        assert any("report_format" in e for e in errors)

    def test_invalid_parallelism_and_timeout(self, tmp_path):
        config = TestConfig(
            parallelism=0, terraform_timeout_seconds=0, scenarios=[_scenario(tmp_path)]
        )
        errors = validate_config(config)
        assert any("parallelism" in e for e in errors)
        assert any("terraform_timeout_seconds" in e for e in errors)

    def test_non_numeric_retry_settings(self, tmp_path):
        config = TestConfig(
            scenarios=[
                _scenario(tmp_path, max_retries="3", time_between_retries_seconds="5s")
            ]
        )
        errors = validate_config(config)
        assert any("max_retries must be an integer: '3'" in e for e in errors)
        assert any("time_between_retries_seconds must be a number" in e for e in errors)

    def test_non_numeric_settings_from_yaml(self, tmp_path):
        (tmp_path / "basic").mkdir()
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "parallelism: 'two'\n"
            "scenarios:\n"
            "  - name: alb-basic\n"
            "    terraform_dir: basic\n"
            "    max_retries: '3'\n"
        )
        errors = validate_config(load_config(str(config_file)))
        assert any("parallelism must be an integer" in e for e in errors)
        assert any("max_retries must be an integer" in e for e in errors)
