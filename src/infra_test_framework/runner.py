"""
Test runner for executing infrastructure scenarios.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List

from .checks.alb import build_scenario
from .checks.base import Scenario
from .config import TestConfig
from .harness import InfraTestHarness
from .models import ScenarioOutcome, TestResultsSummary
from .results import aggregate_results

logger = logging.getLogger(__name__)


class TestRunner:
    """Orchestrates scenario execution."""

    __test__ = False

    def __init__(self, config: TestConfig):
        self.config = config

    def _get_all_scenarios(self) -> List[Scenario]:
        """Get all configured scenarios, sorted by priority."""
        scenarios = [build_scenario(s) for s in self.config.scenarios]
        scenarios.sort(key=lambda s: s.get_priority())
        return scenarios

    def _get_smoke_scenarios(self) -> List[Scenario]:
        """Get only smoke scenarios."""
        return [s for s in self._get_all_scenarios() if s.is_smoke_test()]

    def run_smoke_tests(self) -> TestResultsSummary:
        """
        Run smoke scenarios only.

        Returns:
            TestResultsSummary with results
        """
        return self._run_scenarios(self._get_smoke_scenarios(), fail_fast=True)

    def run_full_tests(self) -> TestResultsSummary:
        """
        Run all scenarios.

        Returns:
            TestResultsSummary with results
        """
        return self._run_scenarios(self._get_all_scenarios(), fail_fast=False)

    def run_scenario(self, scenario_name: str) -> TestResultsSummary:
        """
        Run a single named scenario.

        Args:
            scenario_name: Name of the scenario to run

        Returns:
            TestResultsSummary with results

        Raises:
            ValueError: If scenario name is not found
        """
        all_scenarios = self._get_all_scenarios()
        scenario = next((s for s in all_scenarios if s.name == scenario_name), None)

        if not scenario:
            available = [s.name for s in all_scenarios]
            raise ValueError(
                f"Scenario '{scenario_name}' not found. "
                f"Available scenarios: {', '.join(available)}"
            )

        return self._run_scenarios([scenario], fail_fast=False)

    def _run_scenarios(
        self, scenarios: List[Scenario], fail_fast: bool = False
    ) -> TestResultsSummary:
        """
        Run the given scenarios.

        Scenarios run one after another unless ``parallelism`` is above one,
        in which case they run in a thread pool and fail_fast is ignored.

        Args:
            scenarios: List of Scenario objects to run
            fail_fast: If True, stop after the first failing scenario

        Returns:
            TestResultsSummary with aggregated results
        """
        harness = InfraTestHarness(self.config)
        outcomes: List[ScenarioOutcome] = []

        logger.info(
            "Running %d scenario(s) in %s with parallelism %d",
            len(scenarios),
            self.config.region,
            self.config.parallelism,
        )

        start_time = time.time()
        if self.config.parallelism > 1 and len(scenarios) > 1:
            with ThreadPoolExecutor(max_workers=self.config.parallelism) as pool:
                outcomes = list(pool.map(harness.run, scenarios))
        else:
            for scenario in scenarios:
                outcome = harness.run(scenario)
                outcomes.append(outcome)
                if fail_fast and not outcome.success:
                    logger.info("Stopping after failed scenario %s", scenario.name)
                    break

        summary = aggregate_results(outcomes)
        summary.duration_seconds = time.time() - start_time
        return summary
