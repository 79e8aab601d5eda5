"""
Configuration management for the infrastructure test framework.
"""

import logging
import os
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# Module-level lock for thread-safe config loading
_config_lock = threading.Lock()

DEFAULT_REGION = "us-west-2"
SCENARIO_KINDS = ("basic", "advanced")
REPORT_FORMATS = ("console", "junit", "json")

# Transient Terraform and provider errors that are worth another attempt.
DEFAULT_RETRYABLE_ERRORS: Dict[str, str] = {
    r".*read: connection reset by peer.*": "Failed to reach provider registry.",
    r".*transport is closing.*": "Provider plugin connection was closed.",
    r".*unable to verify signature.*": "Failed to retrieve plugin due to transient network error.",
    r".*unable to verify checksum.*": "Failed to retrieve plugin due to transient network error.",
    r".*no provider exists with the given name.*": "Failed to retrieve plugin due to transient network error.",
    r".*registry service is unreachable.*": "Failed to retrieve plugin due to transient network error.",
    r".*Error installing provider.*": "Failed to retrieve plugin due to transient network error.",
    r".*Failed to query available provider packages.*": "Failed to retrieve plugin due to transient network error.",
    r".*timeout while waiting for plugin to start.*": "Failed to retrieve plugin due to transient network error.",
    r".*timed out waiting for server handshake.*": "Failed to retrieve plugin due to transient network error.",
    r"could not query provider registry for": "Failed to retrieve plugin due to transient network error.",
    r".*Provider produced inconsistent result after apply.*": "Provider eventual consistency error.",
    r".*RequestLimitExceeded.*": "AWS API rate limit hit.",
    r".*Throttling: Rate exceeded.*": "AWS API rate limit hit.",
}


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


@dataclass
class ScenarioConfig:
    """Definition of one provisioning scenario.

    Example config YAML::

        scenarios:
          - name: alb-basic
            kind: basic
            terraform_dir: examples/basic
            env_vars:
              AWS_DEFAULT_REGION: us-west-2
            max_retries: 3
            time_between_retries_seconds: 5
            retryable_errors:
              "timeout": "Retry on timeout errors"
    """

    name: str
    terraform_dir: str
    kind: str = "basic"
    vars: Dict[str, Any] = field(default_factory=dict)
    env_vars: Dict[str, str] = field(default_factory=dict)
    max_retries: int = 3
    time_between_retries_seconds: float = 5.0
    retryable_errors: Dict[str, str] = field(default_factory=dict)
    use_default_retryable_errors: bool = True
    region: Optional[str] = None
    smoke: Optional[bool] = None

    @property
    def effective_retryable_errors(self) -> Dict[str, str]:
        """Scenario patterns merged over the built-in transient error patterns."""
        if not self.use_default_retryable_errors:
            return dict(self.retryable_errors)
        merged = dict(DEFAULT_RETRYABLE_ERRORS)
        merged.update(self.retryable_errors)
        return merged


@dataclass
class TestConfig:
    """Main configuration for the infrastructure test framework."""

    __test__ = False

    # Terraform configuration
    terraform_binary: str = "terraform"
    terraform_timeout_seconds: int = 1800

    # AWS configuration
    region: str = DEFAULT_REGION

    # Scenario configuration
    scenarios: List[ScenarioConfig] = field(default_factory=list)
    parallelism: int = 1

    # Reporting configuration
    report_format: str = "console"  # console, junit, json

    def __post_init__(self) -> None:
        """Post-initialization conversion and region defaults."""
        converted = []
        for scenario in self.scenarios:
            if isinstance(scenario, dict):
                try:
                    scenario = ScenarioConfig(**scenario)
                except TypeError as e:
                    raise ConfigurationError(f"Invalid scenario definition: {e}")
            converted.append(scenario)
        self.scenarios = converted

    def scenario_region(self, scenario: ScenarioConfig) -> str:
        """Region used to inspect a scenario's resources."""
        return (
            scenario.region
            or scenario.env_vars.get("AWS_DEFAULT_REGION")
            or self.region
        )

    def scenario_env(self, scenario: ScenarioConfig) -> Dict[str, str]:
        """Environment variables passed to every Terraform call of a scenario."""
        env = {"AWS_DEFAULT_REGION": self.scenario_region(scenario)}
        env.update({k: str(v) for k, v in scenario.env_vars.items()})
        return env


def _parse_env_int(var_name: str) -> Optional[int]:
    """
    Safely parse an integer from an environment variable.

    Args:
        var_name: Name of the environment variable

    Returns:
        Parsed integer value, or None if the variable is not set

    Raises:
        ConfigurationError: If the value cannot be parsed as an integer
    """
    value = os.environ.get(var_name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"Environment variable {var_name} must be a valid integer, got: '{value}'"
        )


def load_config(config_file: Optional[str] = None) -> TestConfig:
    """
    Load configuration from file and environment variables.

    Configuration precedence (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Default values

    Relative ``terraform_dir`` entries are resolved against the directory
    holding the configuration file.

    Args:
        config_file: Path to YAML configuration file (optional)

    Returns:
        TestConfig object with merged configuration

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
        ConfigurationError: If config file has invalid YAML or env vars are invalid
    """
    with _config_lock:
        config_data: Dict[str, Any] = {}

        if config_file:
            logger.info("Loading configuration from %s", config_file)
            try:
                with open(config_file, "r") as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in config file '{config_file}': {e}")
            except FileNotFoundError:
                raise FileNotFoundError(f"Configuration file not found: {config_file}")
            except PermissionError:
                raise ConfigurationError(f"Permission denied reading config file '{config_file}'")
            except OSError as e:
                raise ConfigurationError(f"Unable to read config file '{config_file}': {e}")

            if not isinstance(file_config, dict):
                raise ConfigurationError(
                    f"Config file '{config_file}' must contain a mapping at the top level"
                )
            base_dir = os.path.dirname(os.path.abspath(config_file))
            for scenario in file_config.get("scenarios") or []:
                if isinstance(scenario, dict) and scenario.get("terraform_dir"):
                    scenario["terraform_dir"] = os.path.join(base_dir, scenario["terraform_dir"])
            config_data.update(file_config)

        env_overrides = _load_from_env()
        config_data.update(env_overrides)
        if env_overrides:
            logger.debug("Applied environment variable overrides: %s", list(env_overrides.keys()))

        try:
            return TestConfig(**config_data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")


def _load_from_env() -> Dict[str, Any]:
    """
    Load configuration from environment variables.

    Supported environment variables:
    - INFRA_TEST_TERRAFORM_BINARY: Terraform executable name or path
    - INFRA_TEST_TERRAFORM_TIMEOUT: Per-command Terraform timeout in seconds
    - AWS_DEFAULT_REGION: Region for provisioning and inspection
    - INFRA_TEST_REPORT_FORMAT: Report format (console, junit, json)
    - INFRA_TEST_PARALLELISM: Number of scenarios run concurrently

    Returns:
        Dictionary of configuration values from environment

    Raises:
        ConfigurationError: If environment variable values are invalid
    """
    env_config: Dict[str, Any] = {}

    if "INFRA_TEST_TERRAFORM_BINARY" in os.environ:
        env_config["terraform_binary"] = os.environ["INFRA_TEST_TERRAFORM_BINARY"]

    timeout = _parse_env_int("INFRA_TEST_TERRAFORM_TIMEOUT")
    if timeout is not None:
        if timeout <= 0:
            raise ConfigurationError(
                "Environment variable INFRA_TEST_TERRAFORM_TIMEOUT must be a positive "
                f"integer, got: {timeout}"
            )
        env_config["terraform_timeout_seconds"] = timeout

    if os.environ.get("AWS_DEFAULT_REGION"):
        env_config["region"] = os.environ["AWS_DEFAULT_REGION"]

    if "INFRA_TEST_REPORT_FORMAT" in os.environ:
        env_config["report_format"] = os.environ["INFRA_TEST_REPORT_FORMAT"]

    parallelism = _parse_env_int("INFRA_TEST_PARALLELISM")
    if parallelism is not None:
        env_config["parallelism"] = parallelism

    return env_config


def _validate_patterns(scenario: ScenarioConfig) -> List[str]:
    errors: List[str] = []
    for pattern in scenario.retryable_errors:
        try:
            re.compile(pattern)
        except re.error as e:
            errors.append(
                f"Scenario '{scenario.name}' has invalid retryable error pattern '{pattern}': {e}"
            )
    return errors


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: TestConfig) -> List[str]:
    """
    Validate configuration and return list of errors.

    Args:
        config: TestConfig to validate

    Returns:
        List of error messages (empty if valid)
    """
    errors: List[str] = []

    if not config.terraform_binary:
        errors.append("terraform_binary is required")

    if not _is_int(config.terraform_timeout_seconds):
        errors.append(
            f"terraform_timeout_seconds must be an integer: {config.terraform_timeout_seconds!r}"
        )
    elif config.terraform_timeout_seconds <= 0:
        errors.append(
            f"terraform_timeout_seconds must be positive: {config.terraform_timeout_seconds}"
        )

    if not config.region:
        errors.append("region is required")

    parallel = False
    if not _is_int(config.parallelism):
        errors.append(f"parallelism must be an integer: {config.parallelism!r}")
    elif config.parallelism < 1:
        errors.append(f"parallelism must be at least 1: {config.parallelism}")
    else:
        parallel = config.parallelism > 1

    if config.report_format not in REPORT_FORMATS:
        errors.append(
            f"report_format must be one of {list(REPORT_FORMATS)}: {config.report_format}"
        )

    if not config.scenarios:
        errors.append("At least one scenario must be configured")

    seen_names = set()
    seen_dirs: Dict[str, str] = {}
    for i, scenario in enumerate(config.scenarios):
        if not scenario.name:
            errors.append(f"Scenario {i} is missing name")
        elif scenario.name in seen_names:
            errors.append(f"Duplicate scenario name: {scenario.name}")
        seen_names.add(scenario.name)

        if scenario.kind not in SCENARIO_KINDS:
            errors.append(
                f"Scenario '{scenario.name}' kind must be one of {list(SCENARIO_KINDS)}: "
                f"{scenario.kind}"
            )

        if not scenario.terraform_dir:
            errors.append(f"Scenario '{scenario.name}' is missing terraform_dir")
        elif not os.path.isdir(scenario.terraform_dir):
            errors.append(
                f"Scenario '{scenario.name}' terraform_dir does not exist: "
                f"{scenario.terraform_dir}"
            )
        else:
            resolved = os.path.realpath(scenario.terraform_dir)
            if parallel and resolved in seen_dirs:
                errors.append(
                    f"Scenarios '{seen_dirs[resolved]}' and '{scenario.name}' share "
                    f"terraform_dir {scenario.terraform_dir} and cannot run in parallel"
                )
            seen_dirs.setdefault(resolved, scenario.name)

        if not _is_int(scenario.max_retries):
            errors.append(
                f"Scenario '{scenario.name}' max_retries must be an integer: "
                f"{scenario.max_retries!r}"
            )
        elif scenario.max_retries < 0:
            errors.append(
                f"Scenario '{scenario.name}' max_retries must not be negative: "
                f"{scenario.max_retries}"
            )
        if not _is_number(scenario.time_between_retries_seconds):
            errors.append(
                f"Scenario '{scenario.name}' time_between_retries_seconds must be a number: "
                f"{scenario.time_between_retries_seconds!r}"
            )
        elif scenario.time_between_retries_seconds < 0:
            errors.append(
                f"Scenario '{scenario.name}' time_between_retries_seconds must not be "
                f"negative: {scenario.time_between_retries_seconds}"
            )

        errors.extend(_validate_patterns(scenario))

    return errors
