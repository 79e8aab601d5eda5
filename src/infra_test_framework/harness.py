"""
Harness that provisions a scenario, checks it, and always tears it down.
"""

import logging
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Union

from .checks.base import CheckContext, Scenario
from .config import TestConfig
from .exceptions import InfraTestError, ProvisioningFailed, TeardownFailed
from .inspector import LoadBalancerInspector
from .models import LoadBalancerSnapshot, OutputSet, ScenarioOutcome
from .terraform import TerraformClient

logger = logging.getLogger(__name__)


class InfraTestHarness:
    """
    Runs one scenario end to end.

    The lifecycle is linear: init, apply (with bounded retry), read outputs,
    inspect the live resource, evaluate checks, destroy. Destroy is registered
    as soon as init succeeds, so it runs exactly once whatever happens after.
    """

    def __init__(
        self,
        config: TestConfig,
        terraform: Optional[TerraformClient] = None,
        inspector: Optional[LoadBalancerInspector] = None,
    ):
        self.config = config
        self.terraform = terraform or TerraformClient(
            binary=config.terraform_binary,
            timeout=config.terraform_timeout_seconds,
        )
        self.inspector = inspector or LoadBalancerInspector()

    @contextmanager
    def provisioned(self, scenario: Scenario, outcome: ScenarioOutcome) -> Iterator[None]:
        """
        Initialize the scenario's Terraform directory and destroy it on exit.

        Destroy failures are recorded on ``outcome`` rather than raised, so they
        never replace an exception already propagating out of the block.
        """
        cfg = scenario.config
        env = self.config.scenario_env(cfg)
        self.terraform.init(cfg.terraform_dir, env)
        try:
            yield
        finally:
            try:
                self.terraform.destroy(
                    cfg.terraform_dir,
                    cfg.vars,
                    env,
                    max_retries=cfg.max_retries,
                    time_between_retries=cfg.time_between_retries_seconds,
                    retryable_errors=cfg.effective_retryable_errors,
                )
                logger.info("Destroyed infrastructure of scenario %s", scenario.name)
            except TeardownFailed as e:
                logger.error("Teardown of scenario %s failed: %s", scenario.name, e)
                outcome.teardown_error = e
            finally:
                outcome.destroyed = True

    def _capture_outputs(self, scenario: Scenario, env: Dict[str, str]) -> OutputSet:
        target = scenario.config.terraform_dir
        values: Dict[str, Union[str, Dict[str, str]]] = {}
        for name in scenario.required_outputs:
            values[name] = self.terraform.output(target, name, env)
        for name in scenario.required_output_maps:
            values[name] = self.terraform.output_map(target, name, env)
        logger.debug("Captured outputs of %s: %s", scenario.name, sorted(values))
        return OutputSet(values, target=target)

    def _inspect(self, scenario: Scenario, outputs: OutputSet) -> Optional[LoadBalancerSnapshot]:
        if not scenario.needs_snapshot:
            return None
        identifier = outputs.scalar(scenario.identifier_output)
        if not identifier.strip():
            # The output check reports this; snapshot checks error out without a snapshot
            logger.warning("Output %s is empty; skipping inspection", scenario.identifier_output)
            return None
        region = self.config.scenario_region(scenario.config)
        return self.inspector.get_load_balancer(identifier, region)

    def run(self, scenario: Scenario) -> ScenarioOutcome:
        """
        Provision, check and destroy a scenario.

        Args:
            scenario: Scenario to run

        Returns:
            ScenarioOutcome with check results and any provisioning,
            output, inspection or teardown error
        """
        cfg = scenario.config
        outcome = ScenarioOutcome(scenario_name=scenario.name, target=cfg.terraform_dir)
        env = self.config.scenario_env(cfg)
        logger.info("Running scenario %s against %s", scenario.name, cfg.terraform_dir)

        start_time = time.time()
        try:
            with self.provisioned(scenario, outcome):
                outcome.apply_attempts = self.terraform.apply_with_retry(
                    cfg.terraform_dir,
                    cfg.vars,
                    env,
                    max_retries=cfg.max_retries,
                    time_between_retries=cfg.time_between_retries_seconds,
                    retryable_errors=cfg.effective_retryable_errors,
                )
                outputs = self._capture_outputs(scenario, env)
                snapshot = self._inspect(scenario, outputs)
                outcome.checks = scenario.evaluate_all(CheckContext(cfg, outputs, snapshot))
        except InfraTestError as e:
            if isinstance(e, ProvisioningFailed) and e.step == "apply":
                outcome.apply_attempts = e.attempts
            logger.error("Scenario %s failed: %s", scenario.name, e)
            outcome.error = e
        finally:
            outcome.duration_seconds = time.time() - start_time

        logger.info(
            "Scenario %s finished: %s",
            scenario.name,
            "passed" if outcome.success else "failed",
        )
        return outcome
