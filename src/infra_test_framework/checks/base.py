"""
Base classes for scenarios and the checks they evaluate.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..config import ScenarioConfig
from ..models import CheckResult, LoadBalancerSnapshot, OutputSet, TestStatus


@dataclass
class CheckContext:
    """What a check can look at once the scenario is provisioned."""

    scenario: ScenarioConfig
    outputs: OutputSet
    snapshot: Optional[LoadBalancerSnapshot] = None


class Check(ABC):
    """Base class for individual checks."""

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description

    @abstractmethod
    def evaluate(self, context: CheckContext) -> CheckResult:
        """
        Evaluate the check.

        Args:
            context: Captured outputs and live resource snapshot

        Returns:
            CheckResult with check outcome
        """
        pass

    def execute(self, context: CheckContext) -> CheckResult:
        """Evaluate the check, turning unexpected exceptions into an ERROR result."""
        start_time = time.time()
        try:
            result = self.evaluate(context)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            return self._create_result(
                status=TestStatus.ERROR,
                duration_ms=duration_ms,
                message=f"Unexpected error: {str(e)}",
                details={"error": str(e)},
            )
        result.duration_ms = (time.time() - start_time) * 1000
        return result

    def _create_result(
        self,
        status: TestStatus,
        duration_ms: float = 0.0,
        message: str = "",
        details: Optional[Dict[str, Any]] = None,
    ) -> CheckResult:
        """
        Helper to create a CheckResult.

        Args:
            status: Check status
            duration_ms: Check duration in milliseconds
            message: Optional message
            details: Optional details dictionary

        Returns:
            CheckResult object
        """
        return CheckResult(
            check_name=self.name,
            status=status,
            duration_ms=duration_ms,
            message=message,
            details=details or {},
        )


class Scenario(ABC):
    """Base class for provisioning scenarios.

    A scenario declares which Terraform outputs it reads, whether it needs a
    live snapshot of the load balancer, and the fixed list of checks run
    against them.
    """

    # Scalar outputs read after apply
    required_outputs: List[str] = []
    # Map outputs read after apply
    required_output_maps: List[str] = []
    # Output holding the identifier passed to the inspector; None skips inspection
    identifier_output: Optional[str] = None

    def __init__(self, config: ScenarioConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def needs_snapshot(self) -> bool:
        return self.identifier_output is not None

    @abstractmethod
    def get_checks(self) -> List[Check]:
        """
        Get all checks of this scenario.

        Returns:
            List of Check objects
        """
        pass

    @abstractmethod
    def default_smoke(self) -> bool:
        """Whether the scenario is part of the smoke subset unless configured otherwise."""
        pass

    @abstractmethod
    def get_priority(self) -> int:
        """
        Get execution priority (lower number = higher priority).

        Returns:
            Priority value (0-100)
        """
        pass

    def is_smoke_test(self) -> bool:
        if self.config.smoke is not None:
            return self.config.smoke
        return self.default_smoke()

    def evaluate_all(self, context: CheckContext) -> List[CheckResult]:
        """
        Evaluate every check; a failing check never stops the rest.

        Args:
            context: Captured outputs and live resource snapshot

        Returns:
            List of CheckResult objects
        """
        return [check.execute(context) for check in self.get_checks()]
