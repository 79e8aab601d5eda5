"""
Command-line interface for the infrastructure test framework.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .config import ConfigurationError, TestConfig, load_config, validate_config
from .exceptions import ProvisioningFailed
from .reporting import ConsoleReporter, JSONReporter, JUnitReporter
from .runner import TestRunner
from .terraform import TerraformClient

logger = logging.getLogger(__name__)


def _run_dry_run(test_config: TestConfig) -> None:
    """Validate config and the Terraform installation without provisioning anything.

    Prints a summary of what *would* be provisioned, probes ``terraform
    version``, and exits 0 on success or 1 on any failure.
    """
    click.echo("Dry-run mode: validating configuration and tooling only.")
    click.echo(f"  Terraform    : {test_config.terraform_binary}")
    click.echo(f"  Region       : {test_config.region}")
    click.echo(f"  Parallelism  : {test_config.parallelism}")
    click.echo(f"  Report format: {test_config.report_format}")
    click.echo(f"  Scenarios    : {len(test_config.scenarios)} configured")
    for scenario in test_config.scenarios:
        click.echo(f"    - {scenario.name} ({scenario.kind}): {scenario.terraform_dir}")

    click.echo("\nProbing Terraform...")
    try:
        version = TerraformClient(
            binary=test_config.terraform_binary,
            timeout=test_config.terraform_timeout_seconds,
        ).version()
        click.echo(f"  Terraform available: {version}")
        click.echo("\nDry-run passed. Configuration is valid and Terraform is installed.")
        sys.exit(0)
    except ProvisioningFailed as e:
        click.echo(f"  Terraform check failed: {e}", err=True)
        click.echo(
            "\nDry-run failed: check terraform_binary and that Terraform is on PATH.",
            err=True,
        )
        sys.exit(1)


@click.command()
@click.option(
    "--mode",
    type=click.Choice(["smoke", "full", "scenario"]),
    default="full",
    help="Test execution mode",
)
@click.option(
    "--scenario",
    type=str,
    help="Scenario name (required when mode=scenario)",
)
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to configuration file (YAML)",
)
@click.option(
    "--report-format",
    type=click.Choice(["console", "junit", "json"]),
    help="Report format (overrides config)",
)
@click.option(
    "--output",
    type=click.Path(),
    help="Output file for report (default: stdout)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="INFO",
    help="Logging level",
)
@click.option(
    "--parallelism",
    type=click.IntRange(min=1),
    help="Number of scenarios to run concurrently (overrides config)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help=(
        "Validate configuration and probe the Terraform binary without provisioning. "
        "Exits 0 if everything is in place, 1 otherwise."
    ),
)
def main(
    mode: str,
    scenario: Optional[str],
    config: Optional[str],
    report_format: Optional[str],
    output: Optional[str],
    log_level: str,
    parallelism: Optional[int],
    dry_run: bool,
) -> None:
    """
    Infrastructure Test Framework - provision, verify and destroy Terraform modules.

    Examples:

      # Validate config and Terraform installation only
      infra-test --dry-run --config config.example.yaml

      # Run smoke scenarios
      infra-test --mode smoke --config config.example.yaml

      # Run every scenario, two at a time
      infra-test --mode full --parallelism 2 --config config.example.yaml

      # Run one scenario with JUnit output
      infra-test --mode scenario --scenario alb-basic --report-format junit --output results.xml
    """
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    try:
        logger.info("Loading configuration...")
        test_config = load_config(config)

        if report_format:
            test_config.report_format = report_format
        if parallelism:
            test_config.parallelism = parallelism

        errors = validate_config(test_config)
        if errors:
            click.echo("Configuration errors:", err=True)
            for error in errors:
                click.echo(f"  - {error}", err=True)
            sys.exit(1)

        if dry_run:
            _run_dry_run(test_config)
            return  # _run_dry_run calls sys.exit internally

        runner = TestRunner(test_config)

        if mode == "smoke":
            click.echo("Running smoke scenarios...")
            summary = runner.run_smoke_tests()
        elif mode == "scenario":
            if not scenario:
                click.echo("Error: --scenario is required when mode=scenario", err=True)
                sys.exit(1)
            click.echo(f"Running scenario: {scenario}")
            try:
                summary = runner.run_scenario(scenario)
            except ValueError as e:
                click.echo(f"Error: {e}", err=True)
                sys.exit(1)
        else:  # full
            click.echo("Running all scenarios...")
            summary = runner.run_full_tests()

        if test_config.report_format == "junit":
            reporter = JUnitReporter()
        elif test_config.report_format == "json":
            reporter = JSONReporter()
        else:
            reporter = ConsoleReporter()

        report = reporter.generate(summary)

        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(report)
            click.echo(f"Report written to: {output}")
            if test_config.report_format != "console":
                click.echo(ConsoleReporter().generate(summary))
        else:
            click.echo(report)

        logger.info(
            "Run complete: %d passed, %d failed, %d errors, %d teardown failures",
            summary.passed,
            summary.failed,
            summary.errors,
            summary.teardown_failures,
        )

        sys.exit(0 if summary.success else 1)

    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except FileNotFoundError as e:
        logger.error("File not found: %s", e)
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
